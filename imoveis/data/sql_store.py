"""SQLAlchemy-backed entry store.

Each call runs in its own short transaction so the engine can read back the
result immediately.
"""

import logging
from decimal import Decimal
from typing import Iterable

from sqlalchemy import create_engine, delete, func, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from imoveis.config import settings
from imoveis.data.base import COPY_SUFFIX
from imoveis.models.db import Base, EntryRecord, PropertyLinkRecord
from imoveis.models.entry import (
    Cenario,
    FinancialEntry,
    StatusImovel,
    TipoCompra,
    TipoDespesa,
    unique_name,
)

logger = logging.getLogger(__name__)


def _to_entry(record: EntryRecord) -> FinancialEntry:
    return FinancialEntry(
        id=record.id,
        imovel=record.imovel,
        cenario=Cenario(record.cenario),
        tipo_despesa=TipoDespesa(record.tipo_despesa),
        descricao=record.descricao,
        fluxo_caixa=Decimal(record.fluxo_caixa or 0),
        cota=Decimal(record.cota or 0),
        valor_referencia=record.valor_referencia,
        estado=record.estado,
        cidade=record.cidade,
        tipo_compra=TipoCompra(record.tipo_compra),
        vendido=record.vendido,
        num_cotistas=record.num_cotistas,
        data_compra=record.data_compra,
        data_venda=record.data_venda,
        status_imovel=StatusImovel(record.status_imovel),
    )


def _apply(record: EntryRecord, entry: FinancialEntry) -> EntryRecord:
    record.imovel = entry.imovel
    record.cenario = entry.cenario.value
    record.tipo_despesa = entry.tipo_despesa.value
    record.descricao = entry.descricao
    record.fluxo_caixa = entry.fluxo_caixa
    record.cota = entry.cota
    record.valor_referencia = entry.valor_referencia
    record.estado = entry.estado
    record.cidade = entry.cidade
    record.tipo_compra = entry.tipo_compra.value
    record.vendido = entry.vendido
    record.num_cotistas = entry.num_cotistas
    record.data_compra = entry.data_compra
    record.data_venda = entry.data_venda
    record.status_imovel = entry.status_imovel.value
    return record


class SqlEntryStore:
    def __init__(self, database_url: str | None = None, engine: Engine | None = None):
        self.engine = engine or create_engine(
            database_url or settings.database_url, echo=settings.debug
        )
        Base.metadata.create_all(self.engine)
        self._session = sessionmaker(self.engine, expire_on_commit=False)

    def _next_position(self, session) -> int:
        current = session.scalar(select(func.max(EntryRecord.position)))
        return (current or 0) + 1

    def all_entries(self) -> list[FinancialEntry]:
        with self._session() as session:
            records = session.scalars(
                select(EntryRecord).order_by(EntryRecord.position)
            ).all()
            return [_to_entry(r) for r in records]

    def entries_for(self, imovel: str) -> list[FinancialEntry]:
        with self._session() as session:
            records = session.scalars(
                select(EntryRecord)
                .where(EntryRecord.imovel == imovel)
                .order_by(EntryRecord.position)
            ).all()
            return [_to_entry(r) for r in records]

    def add_entry(self, entry: FinancialEntry) -> FinancialEntry:
        with self._session.begin() as session:
            record = _apply(EntryRecord(), entry)
            if entry.id is not None and session.get(EntryRecord, entry.id) is None:
                record.id = entry.id
            record.position = self._next_position(session)
            session.add(record)
            session.flush()
            return _to_entry(record)

    def update_entry(self, entry: FinancialEntry) -> None:
        with self._session.begin() as session:
            record = session.get(EntryRecord, entry.id) if entry.id is not None else None
            if record is None:
                raise KeyError(f"Entry {entry.id} not found")
            _apply(record, entry)

    def delete_entries_by_imovel(self, imovel: str) -> None:
        with self._session.begin() as session:
            result = session.execute(delete(EntryRecord).where(EntryRecord.imovel == imovel))
        logger.debug("Deleted %d entries of %s", result.rowcount, imovel)

    def restore_entries(self, entries: Iterable[FinancialEntry]) -> None:
        with self._session.begin() as session:
            position = self._next_position(session)
            for offset, entry in enumerate(entries):
                record = session.get(EntryRecord, entry.id) or EntryRecord(id=entry.id)
                _apply(record, entry)
                record.position = position + offset
                session.add(record)

    def duplicate_imovel(self, imovel: str) -> str:
        with self._session.begin() as session:
            names = set(session.scalars(select(EntryRecord.imovel).distinct()).all())
            new_name = unique_name(f"{imovel} {COPY_SUFFIX}", names)
            position = self._next_position(session)
            source = session.scalars(
                select(EntryRecord)
                .where(EntryRecord.imovel == imovel)
                .order_by(EntryRecord.position)
            ).all()
            for offset, record in enumerate(source):
                clone = _apply(EntryRecord(), _to_entry(record))
                clone.imovel = new_name
                clone.position = position + offset
                session.add(clone)
        return new_name

    def update_imovel_status(self, imovel: str, status: StatusImovel) -> None:
        with self._session.begin() as session:
            session.execute(
                update(EntryRecord)
                .where(EntryRecord.imovel == imovel)
                .values(status_imovel=status.value)
            )

    def rename_imovel_global(self, old_name: str, new_name: str) -> None:
        # Entries and links move in the same transaction.
        with self._session.begin() as session:
            session.execute(
                update(EntryRecord)
                .where(EntryRecord.imovel == old_name)
                .values(imovel=new_name)
            )
            session.execute(
                update(PropertyLinkRecord)
                .where(PropertyLinkRecord.imovel == old_name)
                .values(imovel=new_name)
            )

    # Property links

    def link_property(self, imovel: str, provider: str, external_id: str) -> None:
        with self._session.begin() as session:
            record = session.scalar(
                select(PropertyLinkRecord).where(
                    PropertyLinkRecord.imovel == imovel,
                    PropertyLinkRecord.provider == provider,
                )
            )
            if record is None:
                record = PropertyLinkRecord(imovel=imovel, provider=provider)
                session.add(record)
            record.external_id = external_id

    def links_for(self, imovel: str) -> dict[str, str]:
        with self._session() as session:
            records = session.scalars(
                select(PropertyLinkRecord).where(PropertyLinkRecord.imovel == imovel)
            ).all()
            return {r.provider: r.external_id for r in records}
