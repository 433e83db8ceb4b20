"""Atomic commit of one unit of work (entity writes + their history rows)."""
import enum
import logging
from decimal import Decimal
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from patrimonio.events import bus, error_channel, StoreChange, WriteRejected

logger = logging.getLogger(__name__)


def commit_batch(
    db: Session,
    user_id: str,
    *,
    operation: str,
    path: str,
    payload: dict | None = None,
    changes: dict[str, list[str]] | None = None,
) -> bool:
    """Commit everything pending in the session as a single all-or-nothing unit.

    On failure the session is rolled back, the rejection is reported on the
    error channel and False is returned; nothing is raised. On success a
    StoreChange per touched collection is published.
    """
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        error_channel.report(WriteRejected(
            user_id=user_id,
            operation=operation,
            path=path,
            message=str(getattr(e, "orig", None) or e),
            payload=jsonable(payload or {}),
        ))
        return False

    for collection, ids in (changes or {}).items():
        bus.publish(StoreChange(user_id=user_id, collection=collection, ids=ids))
    logger.debug("Commit %s %s ok", operation, path)
    return True


def jsonable(data: dict) -> dict:
    out = {}
    for key, value in data.items():
        if isinstance(value, Decimal):
            value = str(value)
        elif isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, enum.Enum):
            value = value.value
        out[key] = value
    return out
