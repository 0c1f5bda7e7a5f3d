"""SQLAlchemy ORM models for entry persistence."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def _new_id() -> str:
    return uuid.uuid4().hex


class EntryRecord(Base):
    __tablename__ = "entries"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())
    # Preserves insertion order across delete/restore
    position: Mapped[int] = mapped_column(Integer, default=0)

    imovel: Mapped[str] = mapped_column(String(255), index=True)
    cenario: Mapped[str] = mapped_column(String(20))
    tipo_despesa: Mapped[str] = mapped_column(String(30))
    descricao: Mapped[str] = mapped_column(String(100))
    fluxo_caixa: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0)
    cota: Mapped[Decimal] = mapped_column(Numeric(18, 6), default=0)
    valor_referencia: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    # Property metadata (duplicated per entry)
    estado: Mapped[str] = mapped_column(String(2), default="SP")
    cidade: Mapped[str] = mapped_column(String(100), default="")
    tipo_compra: Mapped[str] = mapped_column(String(20))
    vendido: Mapped[bool] = mapped_column(Boolean, default=False)
    num_cotistas: Mapped[int] = mapped_column(Integer, default=1)
    data_compra: Mapped[date | None] = mapped_column(Date, nullable=True)
    data_venda: Mapped[date | None] = mapped_column(Date, nullable=True)
    status_imovel: Mapped[str] = mapped_column(String(20), default="em_andamento")


class PropertyLinkRecord(Base):
    """Property-keyed link to a record in an external integration."""

    __tablename__ = "property_links"
    __table_args__ = (UniqueConstraint("imovel", "provider"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    imovel: Mapped[str] = mapped_column(String(255), index=True)
    provider: Mapped[str] = mapped_column(String(50))
    external_id: Mapped[str] = mapped_column(String(255))
