import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy import ForeignKey, String, DateTime, Numeric, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column
from patrimonio.database import Base


class AssetStatus(str, enum.Enum):
    ativo = "ativo"
    inativo = "inativo"     # na lixeira


class Asset(Base):
    __tablename__ = "assets"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    # Required on create/update; cleared to NULL when the category is deleted.
    category_id: Mapped[str | None] = mapped_column(ForeignKey("categories.id"), nullable=True, index=True)
    city: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    observation: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    status: Mapped[str] = mapped_column(
        SAEnum(AssetStatus, values_callable=lambda e: [x.value for x in e]),
        default=AssetStatus.ativo,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    # Set explicitly by the mutation layer; cascade clears leave it untouched.
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
