"""Formula-derived fields: commissions, transfer taxes, fees and capital-gains tax.

The rule table is keyed by purchase type. Percentage rules only read the
manual base fields (Venda, Entrada, Valor Aquisição), never another rule's
output, so one pass in table order reaches a fixed point; the capital-gains
tax runs last and reads the values the same pass just wrote.

`derive_values` is a pure function. `DerivationEngine` applies its result
through the accessor, skipping fields the user has overridden.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Mapping

from imoveis.config import settings
from imoveis.engine.accessor import ZERO, EntryAccessor
from imoveis.engine.overrides import OverrideTracker
from imoveis.engine.replication import ScenarioReplicator
from imoveis.models.entry import Cenario, FieldLabel, TipoCompra
from imoveis.models.rates import DerivationRates

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
HUNDRED = Decimal("100")

BOTH_TYPES = frozenset(TipoCompra)
A_VISTA_ONLY = frozenset({TipoCompra.A_VISTA})
FINANCIADO_ONLY = frozenset({TipoCompra.FINANCIADO})


@dataclass(frozen=True)
class PercentRule:
    """target = base x percent, written only when base > 0."""
    target: FieldLabel
    base: FieldLabel
    rate: str | Decimal  # DerivationRates attribute, or a fixed percent
    purchase_types: frozenset[TipoCompra]

    def percent(self, rates: DerivationRates) -> Decimal:
        if isinstance(self.rate, str):
            return getattr(rates, self.rate)
        return self.rate


RULES: tuple[PercentRule, ...] = (
    # Sale-based, both purchase types
    PercentRule(FieldLabel.COMISSAO_CORRETOR, FieldLabel.VENDA, "comissao_corretor_pct", BOTH_TYPES),
    PercentRule(FieldLabel.ITBI, FieldLabel.VENDA, "itbi_pct", BOTH_TYPES),
    PercentRule(FieldLabel.REGISTRO, FieldLabel.VENDA, Decimal("1"), BOTH_TYPES),
    PercentRule(FieldLabel.TAXA_FINANCIAMENTO, FieldLabel.VENDA, Decimal("1"), BOTH_TYPES),
    # AVista
    PercentRule(FieldLabel.COMISSAO_LEILOEIRO, FieldLabel.ENTRADA, "comissao_leiloeiro_pct", A_VISTA_ONLY),
    # Financiado
    PercentRule(FieldLabel.ENTRADA, FieldLabel.VALOR_AQUISICAO, "entrada_financiado_pct", FINANCIADO_ONLY),
    PercentRule(FieldLabel.COMISSAO_LEILOEIRO, FieldLabel.VALOR_AQUISICAO, "comissao_leiloeiro_pct", FINANCIADO_ONLY),
)

# Subtracted from Venda to get the AVista capital-gains base.
CAPITAL_GAINS_DEDUCTIONS: tuple[FieldLabel, ...] = (
    FieldLabel.COMISSAO_CORRETOR,
    FieldLabel.ENTRADA,
    FieldLabel.ITBI,
    FieldLabel.REGISTRO,
    FieldLabel.DESPACHANTE,
    FieldLabel.COMISSAO_LEILOEIRO,
    FieldLabel.TAXA_FINANCIAMENTO,
    FieldLabel.REFORMA,
)


def _check_acyclic(rules: tuple[PercentRule, ...]) -> None:
    for tipo in TipoCompra:
        active = [r for r in rules if tipo in r.purchase_types]
        targets = {r.target for r in active}
        for rule in active:
            if rule.base in targets:
                raise ValueError(
                    f"{rule.target.value} reads {rule.base.value}, "
                    f"which is itself derived for {tipo.value}"
                )
        if FieldLabel.IMPOSTO_GANHO_CAPITAL in targets:
            raise ValueError("Capital-gains tax must not be a percentage rule target")


_check_acyclic(RULES)


def derived_fields(tipo_compra: TipoCompra) -> frozenset[FieldLabel]:
    """Fields the formulas write for a purchase type."""
    fields = {r.target for r in RULES if tipo_compra in r.purchase_types}
    if tipo_compra == TipoCompra.A_VISTA:
        fields.add(FieldLabel.IMPOSTO_GANHO_CAPITAL)
    return frozenset(fields)


def percent_of(base: Decimal, pct: Decimal) -> Decimal:
    return (base * pct / HUNDRED).quantize(TWO_PLACES, ROUND_HALF_UP)


def capital_gains_base(values: Mapping[str, Decimal]) -> Decimal:
    """Venda minus acquisition, commission and renovation costs (may be negative)."""
    costs = sum((values.get(label.value, ZERO) for label in CAPITAL_GAINS_DEDUCTIONS), ZERO)
    return values.get(FieldLabel.VENDA.value, ZERO) - costs


def capital_gains_tax(values: Mapping[str, Decimal], pct: Decimal) -> Decimal:
    return percent_of(max(capital_gains_base(values), ZERO), pct)


def derive_values(
    values: Mapping[str, Decimal],
    tipo_compra: TipoCompra,
    rates: DerivationRates,
    is_overridden: Callable[[str], bool] = lambda label: False,
    tolerance: Decimal = TWO_PLACES,
) -> dict[str, Decimal]:
    """Compute the writes one derivation pass would make.

    Args:
        values: descricao -> current magnitude for the scenario.
        tipo_compra: Selects the rule set.
        rates: Percentage parameters.
        is_overridden: Gate; overridden fields are never written.
        tolerance: A value within this distance of the stored one is left alone.

    Returns:
        descricao -> new magnitude, in the order the writes should happen.
    """
    working = dict(values)
    updates: dict[str, Decimal] = {}

    def propose(label: FieldLabel, computed: Decimal) -> None:
        if is_overridden(label.value):
            return
        current = working.get(label.value, ZERO)
        if abs(current - computed) > tolerance:
            working[label.value] = computed
            updates[label.value] = computed

    for rule in RULES:
        if tipo_compra not in rule.purchase_types:
            continue
        base = working.get(rule.base.value, ZERO)
        if base > 0:
            propose(rule.target, percent_of(base, rule.percent(rates)))

    if tipo_compra == TipoCompra.A_VISTA:
        propose(
            FieldLabel.IMPOSTO_GANHO_CAPITAL,
            capital_gains_tax(working, rates.ganho_capital_pct),
        )

    return updates


class DerivationEngine:
    def __init__(
        self,
        accessor: EntryAccessor,
        overrides: OverrideTracker,
        replicator: ScenarioReplicator | None = None,
        tolerance: Decimal | None = None,
        max_passes: int | None = None,
    ):
        self.accessor = accessor
        self.overrides = overrides
        self.replicator = replicator or ScenarioReplicator(accessor)
        self.tolerance = tolerance if tolerance is not None else settings.derivation_tolerance
        self.max_passes = max(1, max_passes or settings.max_recompute_passes)

    def run_pass(
        self,
        imovel: str,
        cenario: Cenario,
        tipo_compra: TipoCompra,
        rates: DerivationRates,
    ) -> dict[str, Decimal]:
        """One derivation pass; returns the writes it made."""
        values = self.replicator.effective_magnitudes(imovel, cenario)
        updates = derive_values(
            values,
            tipo_compra,
            rates,
            is_overridden=self.overrides.is_overridden,
            tolerance=self.tolerance,
        )
        for label, value in updates.items():
            logger.debug("%s/%s: %s -> %s", imovel, cenario.value, label, value)
            self.accessor.write_field(imovel, cenario, label, value)
        return updates

    def recompute(
        self,
        imovel: str,
        cenario: Cenario,
        tipo_compra: TipoCompra,
        rates: DerivationRates,
    ) -> int:
        """Run passes until one writes nothing. Returns the number of passes run."""
        for passes in range(1, self.max_passes + 1):
            if not self.run_pass(imovel, cenario, tipo_compra, rates):
                return passes
        logger.warning(
            "Recompute of %s/%s still writing after %d passes",
            imovel, cenario.value, self.max_passes,
        )
        return self.max_passes
