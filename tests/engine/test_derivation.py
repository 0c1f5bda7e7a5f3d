"""Unit tests for the derivation rules and the bounded recompute."""

from decimal import Decimal

import pytest

from imoveis.data.memory_store import InMemoryEntryStore
from imoveis.engine.accessor import EntryAccessor
from imoveis.engine.derivation import (
    RULES,
    DerivationEngine,
    PercentRule,
    _check_acyclic,
    capital_gains_base,
    capital_gains_tax,
    derive_values,
    derived_fields,
    percent_of,
)
from imoveis.engine.overrides import OverrideTracker
from imoveis.models.entry import Cenario, FieldLabel, TipoCompra
from imoveis.models.rates import DerivationRates

V = FieldLabel.VENDA.value
E = FieldLabel.ENTRADA.value
VA = FieldLabel.VALOR_AQUISICAO.value


@pytest.fixture
def rates() -> DerivationRates:
    return DerivationRates()


class TestPercentRules:
    @pytest.mark.parametrize("venda", ["100000", "500000", "1234567.89"])
    def test_sale_based_fields_avista(self, rates, venda):
        v = Decimal(venda)
        out = derive_values({V: v}, TipoCompra.A_VISTA, rates)
        assert abs(out[FieldLabel.COMISSAO_CORRETOR.value] - v * Decimal("0.05")) <= Decimal("0.01")
        assert abs(out[FieldLabel.ITBI.value] - v * Decimal("0.02")) <= Decimal("0.01")
        assert abs(out[FieldLabel.REGISTRO.value] - v * Decimal("0.01")) <= Decimal("0.01")
        assert abs(out[FieldLabel.TAXA_FINANCIAMENTO.value] - v * Decimal("0.01")) <= Decimal("0.01")

    def test_no_sale_no_sale_based_writes(self, rates):
        out = derive_values({}, TipoCompra.A_VISTA, rates)
        assert out == {}

    def test_leiloeiro_from_entrada_in_avista(self, rates):
        out = derive_values({E: Decimal("50000")}, TipoCompra.A_VISTA, rates)
        assert out[FieldLabel.COMISSAO_LEILOEIRO.value] == Decimal("2500.00")

    def test_financiado_uses_valor_aquisicao(self, rates):
        out = derive_values({VA: Decimal("300000")}, TipoCompra.FINANCIADO, rates)
        assert out[E] == Decimal("15000.00")
        assert out[FieldLabel.COMISSAO_LEILOEIRO.value] == Decimal("15000.00")

    def test_financiado_ignores_entrada_as_base(self, rates):
        out = derive_values({E: Decimal("50000")}, TipoCompra.FINANCIADO, rates)
        assert FieldLabel.COMISSAO_LEILOEIRO.value not in out

    def test_no_capital_gains_tax_for_financiado(self, rates):
        out = derive_values({V: Decimal("500000")}, TipoCompra.FINANCIADO, rates)
        assert FieldLabel.IMPOSTO_GANHO_CAPITAL.value not in out

    def test_custom_rate(self):
        rates = DerivationRates(comissao_corretor_pct=Decimal("6"))
        out = derive_values({V: Decimal("200000")}, TipoCompra.A_VISTA, rates)
        assert out[FieldLabel.COMISSAO_CORRETOR.value] == Decimal("12000.00")

    def test_percent_of_rounds_half_up(self):
        assert percent_of(Decimal("0.5"), Decimal("1")) == Decimal("0.01")


class TestCapitalGains:
    def test_canonical_scenario(self, rates):
        out = derive_values(
            {V: Decimal("500000"), E: Decimal("50000")}, TipoCompra.A_VISTA, rates
        )
        assert out[FieldLabel.COMISSAO_LEILOEIRO.value] == Decimal("2500")
        assert out[FieldLabel.COMISSAO_CORRETOR.value] == Decimal("25000")
        assert out[FieldLabel.ITBI.value] == Decimal("10000")
        assert out[FieldLabel.REGISTRO.value] == Decimal("5000")
        assert out[FieldLabel.TAXA_FINANCIAMENTO.value] == Decimal("5000")

        working = {V: Decimal("500000"), E: Decimal("50000"), **out}
        assert capital_gains_base(working) == Decimal("402500")
        assert out[FieldLabel.IMPOSTO_GANHO_CAPITAL.value] == Decimal("60375")

    def test_loss_means_no_tax(self):
        values = {V: Decimal("100000"), E: Decimal("150000")}
        assert capital_gains_base(values) < 0
        assert capital_gains_tax(values, Decimal("15")) == Decimal("0")

    def test_reforma_and_despachante_are_deducted(self):
        values = {
            V: Decimal("100000"),
            FieldLabel.REFORMA.value: Decimal("10000"),
            FieldLabel.DESPACHANTE.value: Decimal("2000"),
        }
        assert capital_gains_base(values) == Decimal("88000")

    def test_maintenance_costs_not_deducted(self):
        values = {V: Decimal("100000"), FieldLabel.IPTU.value: Decimal("5000")}
        assert capital_gains_base(values) == Decimal("100000")


class TestOverridesAndTolerance:
    def test_overridden_field_is_not_written(self, rates):
        out = derive_values(
            {V: Decimal("500000")},
            TipoCompra.A_VISTA,
            rates,
            is_overridden=lambda label: label == FieldLabel.ITBI.value,
        )
        assert FieldLabel.ITBI.value not in out
        assert FieldLabel.REGISTRO.value in out

    def test_overridden_value_feeds_capital_gains(self, rates):
        values = {V: Decimal("500000"), FieldLabel.ITBI.value: Decimal("0")}
        out = derive_values(
            values,
            TipoCompra.A_VISTA,
            rates,
            is_overridden=lambda label: label == FieldLabel.ITBI.value,
        )
        # base = 500000 - (25000 + 5000 + 5000) = 465000
        assert out[FieldLabel.IMPOSTO_GANHO_CAPITAL.value] == Decimal("69750.00")

    def test_value_within_tolerance_left_alone(self, rates):
        values = {V: Decimal("500000"), FieldLabel.ITBI.value: Decimal("9999.995")}
        out = derive_values(values, TipoCompra.A_VISTA, rates)
        assert FieldLabel.ITBI.value not in out

    def test_value_outside_tolerance_rewritten(self, rates):
        values = {V: Decimal("500000"), FieldLabel.ITBI.value: Decimal("9999.98")}
        out = derive_values(values, TipoCompra.A_VISTA, rates)
        assert out[FieldLabel.ITBI.value] == Decimal("10000.00")


class TestRuleTable:
    def test_rules_are_acyclic(self):
        _check_acyclic(RULES)

    def test_cycle_detected(self):
        cyclic = RULES + (
            PercentRule(FieldLabel.VENDA, FieldLabel.ITBI, Decimal("1"), frozenset(TipoCompra)),
        )
        with pytest.raises(ValueError):
            _check_acyclic(cyclic)

    def test_derived_fields_by_type(self):
        avista = derived_fields(TipoCompra.A_VISTA)
        financiado = derived_fields(TipoCompra.FINANCIADO)
        assert FieldLabel.IMPOSTO_GANHO_CAPITAL in avista
        assert FieldLabel.ENTRADA not in avista
        assert FieldLabel.ENTRADA in financiado
        assert FieldLabel.IMPOSTO_GANHO_CAPITAL not in financiado


class TestDerivationEngine:
    def _engine(self, *entries, max_passes=None):
        store = InMemoryEntryStore(entries)
        accessor = EntryAccessor(store)
        overrides = OverrideTracker()
        overrides.bind("Casa", Cenario.PROJETADO)
        return DerivationEngine(accessor, overrides, max_passes=max_passes), accessor

    def test_recompute_writes_signed_entries(self, make_entry, rates):
        engine, accessor = self._engine(
            make_entry("Casa", FieldLabel.VENDA, "500000"),
            make_entry("Casa", FieldLabel.ENTRADA, "-50000"),
        )
        engine.recompute("Casa", Cenario.PROJETADO, TipoCompra.A_VISTA, rates)
        itbi = accessor.find("Casa", Cenario.PROJETADO, FieldLabel.ITBI)
        assert itbi.fluxo_caixa == Decimal("-10000.00")
        assert itbi.cota == Decimal("-10000.00")

    def test_idempotent_after_one_convergent_pass(self, make_entry, rates):
        engine, accessor = self._engine(
            make_entry("Casa", FieldLabel.VENDA, "500000"),
            make_entry("Casa", FieldLabel.ENTRADA, "-50000"),
        )
        passes = engine.recompute("Casa", Cenario.PROJETADO, TipoCompra.A_VISTA, rates)
        assert passes == 2
        before = accessor.entries("Casa", Cenario.PROJETADO)
        assert engine.run_pass("Casa", Cenario.PROJETADO, TipoCompra.A_VISTA, rates) == {}
        assert engine.run_pass("Casa", Cenario.PROJETADO, TipoCompra.A_VISTA, rates) == {}
        assert accessor.entries("Casa", Cenario.PROJETADO) == before

    def test_financiado_valor_aquisicao_drives_entrada(self, rates):
        store = InMemoryEntryStore()
        accessor = EntryAccessor(store)
        accessor.write_field("Casa", Cenario.PROJETADO, FieldLabel.VALOR_AQUISICAO, Decimal("300000"))
        engine = DerivationEngine(accessor, OverrideTracker())
        engine.recompute("Casa", Cenario.PROJETADO, TipoCompra.FINANCIADO, rates)
        assert accessor.magnitude("Casa", Cenario.PROJETADO, FieldLabel.ENTRADA) == Decimal("15000.00")
        valor = accessor.find("Casa", Cenario.PROJETADO, FieldLabel.VALOR_AQUISICAO)
        assert valor.fluxo_caixa == Decimal("0")

    def test_pass_cap_stops_non_converging_recompute(self, make_entry, rates, caplog):
        engine, _ = self._engine(
            make_entry("Casa", FieldLabel.VENDA, "500000"),
            max_passes=1,
        )
        passes = engine.recompute("Casa", Cenario.PROJETADO, TipoCompra.A_VISTA, rates)
        assert passes == 1
        assert "still writing" in caplog.text
