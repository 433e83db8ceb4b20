from datetime import datetime, timezone
from sqlalchemy.orm import Session
from sqlalchemy import select

from patrimonio.models.asset import Asset
from patrimonio.models.history import HistoryLog, HistoryAction
from patrimonio.models.user import User


def as_instant(value, now: datetime | None = None) -> datetime:
    """Normalize a stored timestamp to an aware UTC datetime.

    None means the timestamp has not been assigned yet (row still pending);
    it is treated as "now". Naive datetimes are taken as UTC (SQLite drops
    the offset).
    """
    if value is None:
        return now or datetime.now(timezone.utc)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        return as_instant(datetime.fromisoformat(value.replace("Z", "+00:00")), now)
    raise TypeError(f"Timestamp não reconhecido: {value!r}")


def append(db: Session, log: HistoryLog) -> HistoryLog:
    """Add a log row to the current unit of work. Only the mutation layer calls
    this, before its own commit, so the entity write and the log land together."""
    db.add(log)
    return log


def record(db: Session, actor: User, asset: Asset, action: HistoryAction, details: str) -> HistoryLog:
    return append(db, HistoryLog(
        user_id=actor.id,
        asset_id=asset.id,
        asset_name=asset.name,
        code_id=asset.code_id,
        action=action,
        details=details,
        user_display_name=actor.display_name,
    ))


def list_history(
    db: Session,
    user_id: str,
    asset_id: str | None = None,
    action: str | None = None,
    search: str = "",
) -> list[HistoryLog]:
    query = select(HistoryLog).where(HistoryLog.user_id == user_id)
    if asset_id:
        query = query.where(HistoryLog.asset_id == asset_id)
    if action:
        query = query.where(HistoryLog.action == HistoryAction(action))
    logs = list(db.scalars(query).all())

    if search:
        term = search.lower()
        logs = [
            log for log in logs
            if term in log.asset_name.lower()
            or term in log.code_id.lower()
            or term in log.user_display_name.lower()
        ]
    return sort_desc(logs)


def history_for_asset(db: Session, user_id: str, asset_id: str) -> list[HistoryLog]:
    return list_history(db, user_id, asset_id=asset_id)


def sort_desc(logs: list[HistoryLog]) -> list[HistoryLog]:
    now = datetime.now(timezone.utc)
    return sorted(logs, key=lambda log: as_instant(log.timestamp, now), reverse=True)
