"""Profitability summary: profit, invested capital, total and monthly ROI.

Pure functions. No I/O.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping

from imoveis.models.entry import FieldLabel
from imoveis.models.results import Summary

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")
ZERO = Decimal("0")
HUNDRED = Decimal("100")
DAYS_PER_MONTH = Decimal("30.44")
TOTAL_LOSS_ROI = Decimal("-100")

# Everything subtracted from the sale to get the profit.
PROFIT_DEDUCTIONS: tuple[FieldLabel, ...] = (
    FieldLabel.COMISSAO_CORRETOR,
    FieldLabel.IMPOSTO_GANHO_CAPITAL,
    FieldLabel.SALDO_DEVEDOR,
    FieldLabel.ENTRADA,
    FieldLabel.ITBI,
    FieldLabel.REGISTRO,
    FieldLabel.DESPACHANTE,
    FieldLabel.COMISSAO_LEILOEIRO,
    FieldLabel.TAXA_FINANCIAMENTO,
    FieldLabel.REFORMA,
    FieldLabel.DESOCUPACAO,
    FieldLabel.DIVIDA,
    FieldLabel.PRESTACAO,
    FieldLabel.CONDOMINIO,
    FieldLabel.IPTU,
)

# Settled out of the sale proceeds, so not part of the capital put in.
SETTLED_AT_SALE: frozenset[FieldLabel] = frozenset({
    FieldLabel.COMISSAO_CORRETOR,
    FieldLabel.IMPOSTO_GANHO_CAPITAL,
    FieldLabel.SALDO_DEVEDOR,
})

INVESTED_CAPITAL: tuple[FieldLabel, ...] = tuple(
    label for label in PROFIT_DEDUCTIONS if label not in SETTLED_AT_SALE
)


def _total(values: Mapping[str, Decimal], labels: tuple[FieldLabel, ...]) -> Decimal:
    return sum((abs(values.get(label.value, ZERO)) for label in labels), ZERO)


def lucro_total(values: Mapping[str, Decimal]) -> Decimal:
    venda = abs(values.get(FieldLabel.VENDA.value, ZERO))
    return venda - _total(values, PROFIT_DEDUCTIONS)


def custo_investimento_realizado(values: Mapping[str, Decimal]) -> Decimal:
    return _total(values, INVESTED_CAPITAL)


def roi_total(lucro: Decimal, invested: Decimal) -> Decimal:
    """Profit over invested capital, in percent. 0 when nothing was invested."""
    if invested <= 0:
        return ZERO
    return lucro / invested * HUNDRED


def duration_months(
    data_compra: date | None,
    data_venda: date | None = None,
    as_of: date | None = None,
) -> Decimal:
    """Holding period in 30.44-day months, never less than one."""
    if data_compra is None:
        return Decimal("1")
    end = data_venda or as_of or date.today()
    days = abs((end - data_compra).days)
    return max(Decimal("1"), Decimal(days) / DAYS_PER_MONTH)


def roi_mensal(roi_total_pct: Decimal, months: Decimal) -> Decimal:
    """Compound monthly-equivalent of a total ROI.

    ((1 + roi/100) ** (1/months) - 1) * 100. A base at or below zero means the
    whole investment (or more) was lost; the fractional power is undefined
    there, so the result is pinned to -100.
    """
    base = 1 + roi_total_pct / HUNDRED
    if base <= 0:
        return TOTAL_LOSS_ROI
    return (base ** (1 / months) - 1) * HUNDRED


def compute_summary(
    values: Mapping[str, Decimal],
    num_cotistas: int = 1,
    data_compra: date | None = None,
    data_venda: date | None = None,
    as_of: date | None = None,
) -> Summary:
    """Summarize one property/scenario from its descricao -> magnitude map.

    Args:
        values: Field magnitudes; missing fields count as zero.
        num_cotistas: Quota holders sharing the profit.
        data_compra: Purchase date; without it the holding period is one month.
        data_venda: Sale date; defaults to `as_of` (today).
        as_of: Reference date for unsold properties.
    """
    lucro = lucro_total(values)
    invested = custo_investimento_realizado(values)
    total = roi_total(lucro, invested)
    months = duration_months(data_compra, data_venda, as_of)
    mensal = roi_mensal(total, months)

    return Summary(
        lucro_total=lucro.quantize(TWO_PLACES, ROUND_HALF_UP),
        lucro_por_cota=(lucro / max(num_cotistas or 1, 1)).quantize(TWO_PLACES, ROUND_HALF_UP),
        roi_total=total.quantize(FOUR_PLACES, ROUND_HALF_UP),
        roi_mensal=mensal.quantize(FOUR_PLACES, ROUND_HALF_UP),
        custo_investimento_realizado=invested.quantize(TWO_PLACES, ROUND_HALF_UP),
        duration_months=months.quantize(FOUR_PLACES, ROUND_HALF_UP),
    )
