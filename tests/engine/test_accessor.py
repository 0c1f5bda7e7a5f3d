"""Unit tests for entry lookups, the field write path and input coercion."""

from datetime import date
from decimal import Decimal

import pytest

from imoveis.data.memory_store import InMemoryEntryStore
from imoveis.engine.accessor import EntryAccessor, signed_amount, to_decimal
from imoveis.models.entry import (
    Cenario,
    FieldLabel,
    PropertyMetadata,
    StatusImovel,
    TipoDespesa,
    unique_name,
)


class TestToDecimal:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("1500.50", Decimal("1500.50")),
            (" 42 ", Decimal("42")),
            (7, Decimal("7")),
            (2.5, Decimal("2.5")),
            ("abc", Decimal("0")),
            ("", Decimal("0")),
            (None, Decimal("0")),
            (True, Decimal("0")),
            ("NaN", Decimal("0")),
            (Decimal("Infinity"), Decimal("0")),
            ("1e28", Decimal("0")),
            (Decimal("-1E+40"), Decimal("0")),
            ("999999999999.99", Decimal("999999999999.99")),
        ],
    )
    def test_coercion(self, raw, expected):
        assert to_decimal(raw) == expected


class TestSignedAmount:
    def test_sale_is_inflow(self):
        assert signed_amount(FieldLabel.VENDA, Decimal("-100")) == Decimal("100")

    def test_costs_are_outflows(self):
        assert signed_amount(FieldLabel.ITBI, Decimal("100")) == Decimal("-100")
        assert signed_amount("Custo qualquer", Decimal("100")) == Decimal("-100")

    def test_reference_field_has_no_cash_flow(self):
        assert signed_amount(FieldLabel.VALOR_AQUISICAO, Decimal("300000")) == Decimal("0")


class TestUniqueName:
    def test_free_name_kept(self):
        assert unique_name("Novo Imóvel", []) == "Novo Imóvel"

    def test_counter_appended(self):
        assert unique_name("Novo Imóvel", ["Novo Imóvel", "Novo Imóvel 2"]) == "Novo Imóvel 3"


class TestEntryAccessor:
    def test_write_creates_entry_with_property_metadata(self, make_entry):
        store = InMemoryEntryStore([
            make_entry("Casa", FieldLabel.VENDA, "100000", num_cotistas=4, cidade="Campinas"),
        ])
        accessor = EntryAccessor(store)
        entry = accessor.write_field("Casa", Cenario.PROJETADO, FieldLabel.REFORMA, Decimal("8000"))

        assert entry.id is not None
        assert entry.fluxo_caixa == Decimal("-8000")
        assert entry.cota == Decimal("-2000")
        assert entry.tipo_despesa == TipoDespesa.CUSTO_MANUTENCAO
        assert entry.cidade == "Campinas"
        assert entry.num_cotistas == 4

    def test_write_updates_existing_entry(self, make_entry):
        store = InMemoryEntryStore([make_entry("Casa", FieldLabel.ITBI, "-100")])
        accessor = EntryAccessor(store)
        accessor.write_field("Casa", Cenario.PROJETADO, FieldLabel.ITBI, Decimal("250"))
        assert len(store.all_entries()) == 1
        assert accessor.magnitude("Casa", Cenario.PROJETADO, FieldLabel.ITBI) == Decimal("250")

    def test_new_executado_entry_copies_stored_metadata(self, make_entry):
        store = InMemoryEntryStore([make_entry("Casa", FieldLabel.VENDA, "100000")])
        accessor = EntryAccessor(store)
        entry = accessor.write_field("Casa", Cenario.EXECUTADO, FieldLabel.ITBI, Decimal("10"))
        assert entry.cenario == Cenario.EXECUTADO
        assert entry.data_compra is None

    def test_valor_aquisicao_keeps_reference_value(self):
        accessor = EntryAccessor(InMemoryEntryStore())
        entry = accessor.write_field(
            "Casa", Cenario.PROJETADO, FieldLabel.VALOR_AQUISICAO, Decimal("300000")
        )
        assert entry.fluxo_caixa == Decimal("0")
        assert entry.cota == Decimal("0")
        assert entry.magnitude == Decimal("300000")

    def test_unknown_label_defaults_to_acquisition_cost(self):
        accessor = EntryAccessor(InMemoryEntryStore())
        entry = accessor.write_field("Casa", Cenario.PROJETADO, "Vistoria", Decimal("500"))
        assert entry.tipo_despesa == TipoDespesa.CUSTO_AQUISICAO

    def test_metadata_defaults_purchase_date_to_today(self, make_entry):
        store = InMemoryEntryStore([make_entry("Casa", FieldLabel.VENDA, "1")])
        accessor = EntryAccessor(store)
        meta = accessor.metadata("Casa", Cenario.PROJETADO, today=date(2025, 3, 1))
        assert meta.data_compra == date(2025, 3, 1)
        assert accessor.stored_metadata("Casa", Cenario.PROJETADO).data_compra is None

    def test_metadata_of_unknown_property(self):
        accessor = EntryAccessor(InMemoryEntryStore())
        assert accessor.stored_metadata("Nada", Cenario.PROJETADO) == PropertyMetadata()

    def test_names_by_status(self, make_entry):
        store = InMemoryEntryStore([
            make_entry("B", FieldLabel.VENDA, "1"),
            make_entry("A", FieldLabel.VENDA, "1"),
            make_entry("C", FieldLabel.VENDA, "1", status_imovel=StatusImovel.FINALIZADO),
        ])
        groups = EntryAccessor(store).names_by_status()
        assert groups[StatusImovel.EM_ANDAMENTO] == ["A", "B"]
        assert groups[StatusImovel.FINALIZADO] == ["C"]
