"""Sequential display IDs (PAT000001, DOC000001, APT000001)"""

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from ..models import SequenceCounter

UPSERT_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


def _ensure_counter(db: Session, prefix: str) -> None:
    """Create the counter row at 0 unless it exists; concurrent callers both succeed"""
    insert = UPSERT_INSERTS.get(db.get_bind().dialect.name)
    if insert is None:
        if db.get(SequenceCounter, prefix) is None:
            db.add(SequenceCounter(name=prefix, value=0))
            db.flush()
        return

    db.execute(
        insert(SequenceCounter)
        .values(name=prefix, value=0)
        .on_conflict_do_nothing(index_elements=[SequenceCounter.name])
    )


def next_display_id(db: Session, prefix: str, width: int = 6) -> str:
    """
    Draw the next number for a prefix and format it.

    The counter row is locked until the caller's transaction ends, so two
    concurrent inserts never receive the same ID. The caller commits.
    """
    _ensure_counter(db, prefix)
    counter = (
        db.query(SequenceCounter)
        .filter(SequenceCounter.name == prefix)
        .with_for_update()
        .populate_existing()
        .one()
    )

    counter.value += 1
    db.flush()
    return f"{prefix}{counter.value:0{width}d}"
