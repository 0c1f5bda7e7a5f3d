from dataclasses import dataclass, replace
from decimal import Decimal

from imoveis.models.entry import FieldLabel


@dataclass(frozen=True)
class DerivationRates:
    """Percentage parameters of the derivation formulas (percent units: 2 = 2%)."""
    itbi_pct: Decimal = Decimal("2")
    entrada_financiado_pct: Decimal = Decimal("5")
    ganho_capital_pct: Decimal = Decimal("15")
    comissao_corretor_pct: Decimal = Decimal("5")
    comissao_leiloeiro_pct: Decimal = Decimal("5")

    def with_rate(self, name: str, value: Decimal) -> "DerivationRates":
        if name not in RATE_TARGETS:
            raise ValueError(f"Unknown rate: {name}")
        return replace(self, **{name: value})


# Field each rate drives; changing the rate puts that field back in automatic mode.
RATE_TARGETS: dict[str, FieldLabel] = {
    "itbi_pct": FieldLabel.ITBI,
    "entrada_financiado_pct": FieldLabel.ENTRADA,
    "ganho_capital_pct": FieldLabel.IMPOSTO_GANHO_CAPITAL,
    "comissao_corretor_pct": FieldLabel.COMISSAO_CORRETOR,
    "comissao_leiloeiro_pct": FieldLabel.COMISSAO_LEILOEIRO,
}
