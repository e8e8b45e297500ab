"""Page/limit validation shared by the list endpoints"""

from typing import Optional

from .. import config
from .errors import ValidationError


def resolve_page(
    page: int,
    limit: Optional[int],
    default_limit: int = config.DEFAULT_PAGE_SIZE,
    max_limit: int = config.MAX_PAGE_SIZE,
) -> tuple[int, int]:
    """
    Validate pagination parameters.

    Returns:
        (page, limit) with the default limit applied

    Raises:
        ValidationError: page < 1 or limit outside 1..max_limit
    """
    limit = default_limit if limit is None else limit
    errors = []
    if page < 1:
        errors.append({"field": "page", "message": "Page must be a positive integer", "value": page})
    if not 1 <= limit <= max_limit:
        errors.append(
            {"field": "limit", "message": f"Limit must be between 1 and {max_limit}", "value": limit}
        )
    if errors:
        raise ValidationError(errors)
    return page, limit
