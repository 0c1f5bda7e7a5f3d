"""Shared fixtures.

Canonical deal: AVista purchase, Venda R$ 500.000, Entrada R$ 50.000,
default rates, one quota holder.
"""

from datetime import date
from decimal import Decimal

import pytest

from imoveis.data.memory_store import InMemoryEntryStore
from imoveis.engine.session import EditingSession
from imoveis.models.entry import (
    Cenario,
    FieldLabel,
    FinancialEntry,
    category_for,
)


class ManualTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Records timers instead of starting threads; `fire_all` plays them."""

    def __init__(self):
        self.timers: list[ManualTimer] = []

    def __call__(self, delay, callback):
        timer = ManualTimer(delay, callback)
        self.timers.append(timer)
        return timer

    def fire_all(self):
        for timer in list(self.timers):
            if not timer.cancelled:
                timer.callback()


def _make_entry(
    imovel: str,
    descricao: FieldLabel | str,
    fluxo_caixa,
    cenario: Cenario = Cenario.PROJETADO,
    **metadata,
) -> FinancialEntry:
    text = descricao.value if isinstance(descricao, FieldLabel) else descricao
    fluxo = Decimal(str(fluxo_caixa))
    return FinancialEntry(
        imovel=imovel,
        cenario=cenario,
        tipo_despesa=category_for(text),
        descricao=text,
        fluxo_caixa=fluxo,
        cota=fluxo / metadata.get("num_cotistas", 1),
        **metadata,
    )


@pytest.fixture
def make_entry():
    """Factory for entries with the right category and cota."""
    return _make_entry


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def store() -> InMemoryEntryStore:
    return InMemoryEntryStore()


@pytest.fixture
def session(store, scheduler) -> EditingSession:
    return EditingSession(store, scheduler=scheduler)


@pytest.fixture
def canonical_session(session) -> EditingSession:
    """Canonical deal, entered by hand into a fresh property."""
    session.create_property()
    session.update_metadata(data_compra=date(2024, 1, 15))
    session.edit_value(FieldLabel.ENTRADA, "50000")
    session.edit_value(FieldLabel.VENDA, "500000")
    return session
