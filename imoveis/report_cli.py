"""CLI for printing property summaries from the entry database.

Usage:
    python -m imoveis.report_cli
    python -m imoveis.report_cli --imovel "Apto Centro" --cenario Executado
    python -m imoveis.report_cli --db sqlite:///./imoveis.db --status finalizado
"""

import argparse
from datetime import date

from imoveis.config import settings
from imoveis.data.sql_store import SqlEntryStore
from imoveis.engine.accessor import EntryAccessor
from imoveis.engine.summary import compute_summary
from imoveis.models.entry import Cenario, StatusImovel
from imoveis.models.results import Summary


def brl(value) -> str:
    """R$ 1.234,56"""
    text = f"{value:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"R$ {text}"


def print_summary(imovel: str, cenario: Cenario, status: StatusImovel, s: Summary) -> None:
    print(f"\n{'=' * 60}")
    print(f"  {imovel} [{cenario.value}] ({status.value})")
    print(f"{'=' * 60}")
    print(f"  Lucro total:          {brl(s.lucro_total)}")
    print(f"  Lucro por cota:       {brl(s.lucro_por_cota)}")
    print(f"  Capital investido:    {brl(s.custo_investimento_realizado)}")
    print(f"  ROI total:            {s.roi_total:.2f}%")
    print(f"  ROI mensal:           {s.roi_mensal:.2f}%")
    print(f"  Meses:                {s.duration_months:.1f}")
    print()


def summarize(accessor: EntryAccessor, imovel: str, cenario: Cenario, as_of: date | None = None) -> Summary:
    """Summary from the stored values as they are; no formulas are re-run."""
    meta = accessor.metadata(imovel, cenario, today=as_of)
    return compute_summary(
        accessor.magnitudes(imovel, cenario),
        num_cotistas=meta.num_cotistas,
        data_compra=meta.data_compra,
        data_venda=meta.data_venda,
        as_of=as_of,
    )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Property profitability report")
    parser.add_argument("--db", default=settings.database_url, help="SQLAlchemy database URL")
    parser.add_argument("--imovel", help="Only this property (default: all)")
    parser.add_argument(
        "--cenario",
        choices=[c.value for c in Cenario],
        help="Only this scenario (default: both)",
    )
    parser.add_argument(
        "--status",
        choices=[s.value for s in StatusImovel],
        help="Only properties with this status",
    )

    args = parser.parse_args(argv)
    accessor = EntryAccessor(SqlEntryStore(args.db))

    groups = accessor.names_by_status()
    if args.status:
        groups = {StatusImovel(args.status): groups[StatusImovel(args.status)]}

    cenarios = [Cenario(args.cenario)] if args.cenario else list(Cenario)
    found = False
    for status, names in groups.items():
        for imovel in names:
            if args.imovel and imovel != args.imovel:
                continue
            found = True
            for cenario in cenarios:
                print_summary(imovel, cenario, status, summarize(accessor, imovel, cenario))

    if args.imovel and not found:
        parser.error(f"property not found: {args.imovel}")


if __name__ == "__main__":
    main()
