"""Standard API response envelope

Success: {"success": true, "message": str, "data": any, "meta"?: {...}}
Error:   {"success": false, "message": str, "error": {"type": str, "details": any}}
"""

import math
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder


def success_response(message: str, data: Any = None, meta: Optional[dict] = None) -> dict:
    response = {"success": True, "message": message, "data": jsonable_encoder(data)}
    if meta:
        response["meta"] = meta
    return response


def error_response(message: str, error_type: str = "GENERIC_ERROR", details: Any = None) -> dict:
    return {
        "success": False,
        "message": message,
        "error": {"type": error_type, "details": jsonable_encoder(details)},
    }


def pagination_meta(page: int, limit: int, total: int) -> dict:
    """Pagination block; pages is ceil(total / limit)"""
    pages = math.ceil(total / limit) if limit else 0
    return {
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": pages,
            "hasNext": page < pages,
            "hasPrev": page > 1,
        }
    }


def paginated_response(message: str, data: list, page: int, limit: int, total: int) -> dict:
    return success_response(message, data, pagination_meta(page, limit, total))
