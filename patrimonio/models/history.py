import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import ForeignKey, String, DateTime, Enum as SAEnum, event, func
from sqlalchemy.orm import Mapped, mapped_column
from patrimonio.database import Base


class HistoryAction(str, enum.Enum):
    created = "Criado"
    updated = "Atualizado"
    deactivated = "Excluído"
    reactivated = "Reativado"


class HistoryLog(Base):
    """Append-only table: no UPDATE, no DELETE.

    asset_name and code_id are snapshots taken when the action happened and
    are never re-resolved from the live asset. asset_id is deliberately not a
    foreign key.
    """

    __tablename__ = "history"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    asset_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    asset_name: Mapped[str] = mapped_column(String(255), nullable=False)
    code_id: Mapped[str] = mapped_column(String(64), nullable=False)
    action: Mapped[str] = mapped_column(
        SAEnum(HistoryAction, values_callable=lambda e: [x.value for x in e]),
        nullable=False,
    )
    details: Mapped[str] = mapped_column(String(4000), default="", nullable=False)
    user_display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
        index=True,
    )


class HistoryImmutableError(RuntimeError):
    pass


@event.listens_for(HistoryLog, "before_update")
def _reject_update(mapper, connection, target):
    raise HistoryImmutableError(f"Registro de histórico {target.id} não pode ser alterado")


@event.listens_for(HistoryLog, "before_delete")
def _reject_delete(mapper, connection, target):
    raise HistoryImmutableError(f"Registro de histórico {target.id} não pode ser excluído")
