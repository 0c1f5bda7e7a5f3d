"""Scenario routes: the per-property view, field edits and rate changes."""

from fastapi import APIRouter, Depends, HTTPException

from imoveis.api.deps import get_session
from imoveis.api.schemas import (
    FieldResponse,
    FieldValueRequest,
    MetadataResponse,
    PropertyViewResponse,
    RatesResponse,
    RatesUpdate,
    SummaryResponse,
)
from imoveis.engine.session import EditingSession
from imoveis.models.entry import Cenario
from imoveis.models.results import PropertyView

router = APIRouter(prefix="/api/v1/properties", tags=["scenarios"])


def activate(session: EditingSession, imovel: str, cenario: Cenario | None = None) -> None:
    """Make a property (and scenario) the session's active one, or 404."""
    try:
        session.select_property(imovel)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Imóvel não encontrado: {imovel}")
    if cenario is not None:
        session.select_scenario(cenario)


def view_to_response(view: PropertyView) -> PropertyViewResponse:
    """Convert an engine PropertyView to the API response."""
    meta = view.metadata
    rates = view.rates
    s = view.summary
    return PropertyViewResponse(
        imovel=view.imovel,
        cenario=view.cenario,
        metadata=MetadataResponse(
            estado=meta.estado,
            cidade=meta.cidade,
            tipo_compra=meta.tipo_compra,
            vendido=meta.vendido,
            num_cotistas=meta.num_cotistas,
            data_compra=meta.data_compra,
            data_venda=meta.data_venda,
            status_imovel=meta.status_imovel,
        ),
        rates=RatesResponse(
            itbi_pct=rates.itbi_pct,
            entrada_financiado_pct=rates.entrada_financiado_pct,
            ganho_capital_pct=rates.ganho_capital_pct,
            comissao_corretor_pct=rates.comissao_corretor_pct,
            comissao_leiloeiro_pct=rates.comissao_leiloeiro_pct,
        ),
        fields=[
            FieldResponse(
                descricao=f.descricao,
                tipo_despesa=f.tipo_despesa,
                valor=f.valor,
                cota=f.cota,
                manual=f.manual,
                editable=f.editable,
                overridden=f.overridden,
                inherited=f.inherited,
                monthly=f.monthly,
            )
            for f in view.fields
        ],
        summary=SummaryResponse(
            lucro_total=s.lucro_total,
            lucro_por_cota=s.lucro_por_cota,
            roi_total=s.roi_total,
            roi_mensal=s.roi_mensal,
            custo_investimento_realizado=s.custo_investimento_realizado,
            duration_months=s.duration_months,
        ),
    )


@router.get("/{imovel}/scenarios/{cenario}", response_model=PropertyViewResponse)
async def get_scenario(
    imovel: str,
    cenario: Cenario,
    session: EditingSession = Depends(get_session),
):
    """Fields, metadata and summary of one property in one scenario."""
    activate(session, imovel, cenario)
    session.recompute()
    return view_to_response(session.view())


@router.put("/{imovel}/scenarios/{cenario}/fields/{label:path}", response_model=PropertyViewResponse)
async def edit_field(
    imovel: str,
    cenario: Cenario,
    label: str,
    req: FieldValueRequest,
    session: EditingSession = Depends(get_session),
):
    """Set a field by hand. The field stops following its formula."""
    activate(session, imovel, cenario)
    session.edit_value(label, req.value)
    return view_to_response(session.view())


@router.put("/{imovel}/scenarios/{cenario}/monthly/{label:path}", response_model=PropertyViewResponse)
async def edit_monthly_field(
    imovel: str,
    cenario: Cenario,
    label: str,
    req: FieldValueRequest,
    session: EditingSession = Depends(get_session),
):
    """Set Prestação or Condomínio from a monthly amount."""
    activate(session, imovel, cenario)
    try:
        session.edit_monthly_value(label, req.value)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return view_to_response(session.view())


@router.put("/{imovel}/scenarios/{cenario}/rates", response_model=PropertyViewResponse)
async def update_rates(
    imovel: str,
    cenario: Cenario,
    req: RatesUpdate,
    session: EditingSession = Depends(get_session),
):
    """Change percentage rates; each changed rate's field goes back to automatic."""
    activate(session, imovel, cenario)
    for name, value in req.model_dump(exclude_unset=True).items():
        session.set_rate(name, value)
    return view_to_response(session.view())
