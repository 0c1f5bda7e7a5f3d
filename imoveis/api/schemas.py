"""Pydantic schemas for API request/response models.

Monetary values travel as plain decimals; locale formatting is the client's job.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from imoveis.models.entry import Cenario, StatusImovel, TipoCompra, TipoDespesa

# User-typed amounts: anything unparsable is stored as zero.
RawAmount = Decimal | int | float | str | None


# ---- Request schemas ----

class FieldValueRequest(BaseModel):
    value: RawAmount = None


class RatesUpdate(BaseModel):
    """Only the rates present in the body are changed."""
    itbi_pct: RawAmount = None
    entrada_financiado_pct: RawAmount = None
    ganho_capital_pct: RawAmount = None
    comissao_corretor_pct: RawAmount = None
    comissao_leiloeiro_pct: RawAmount = None


class MetadataUpdate(BaseModel):
    estado: str | None = None
    cidade: str | None = None
    tipo_compra: TipoCompra | None = None
    vendido: bool | None = None
    num_cotistas: int | None = None
    data_compra: date | None = None
    data_venda: date | None = None
    status_imovel: StatusImovel | None = None

    @field_validator(
        "estado", "cidade", "tipo_compra", "vendido", "num_cotistas", "status_imovel",
        mode="before",
    )
    @classmethod
    def _not_null(cls, value):
        # Leave the key out to keep the stored value; only the dates can be cleared.
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class RenameRequest(BaseModel):
    new_name: str


class StatusRequest(BaseModel):
    status: StatusImovel | None = Field(None, description="Omit to toggle")


# ---- Response schemas ----

class PropertyNameResponse(BaseModel):
    imovel: str | None = None


class PropertyListResponse(BaseModel):
    em_andamento: list[str] = []
    finalizado: list[str] = []
    active: str | None = None
    pending_undo: str | None = None


class MetadataResponse(BaseModel):
    estado: str
    cidade: str
    tipo_compra: TipoCompra
    vendido: bool
    num_cotistas: int
    data_compra: date | None = None
    data_venda: date | None = None
    status_imovel: StatusImovel


class RatesResponse(BaseModel):
    itbi_pct: Decimal
    entrada_financiado_pct: Decimal
    ganho_capital_pct: Decimal
    comissao_corretor_pct: Decimal
    comissao_leiloeiro_pct: Decimal


class FieldResponse(BaseModel):
    descricao: str
    tipo_despesa: TipoDespesa
    valor: Decimal
    cota: Decimal
    manual: bool
    editable: bool
    overridden: bool
    inherited: bool
    monthly: bool


class SummaryResponse(BaseModel):
    lucro_total: Decimal
    lucro_por_cota: Decimal
    roi_total: Decimal
    roi_mensal: Decimal
    custo_investimento_realizado: Decimal
    duration_months: Decimal


class PropertyViewResponse(BaseModel):
    imovel: str | None
    cenario: Cenario
    metadata: MetadataResponse
    rates: RatesResponse
    fields: list[FieldResponse] = []
    summary: SummaryResponse
