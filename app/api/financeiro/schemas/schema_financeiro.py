from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.api.financeiro.models.model_conta_bancaria import TipoConta, TipoChavePix
from app.api.financeiro.models.model_ganho_entregador import TipoGanhoEntregador
from app.api.financeiro.models.model_ganho_restaurante import StatusGanho
from app.api.financeiro.models.model_repasse_restaurante import StatusRepasse, MetodoRepasse


# ======================================================================
# ============================ RESTAURANTE =============================
# ======================================================================
class PedidoResumoOut(BaseModel):
    numero_pedido: str
    valor_total: float
    metodo_pagamento: Optional[str] = None
    taxa_entrega: Optional[float] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GanhoRestauranteOut(BaseModel):
    id: int
    restaurante_id: int
    pedido_id: int
    repasse_id: Optional[int] = None
    valor_bruto: float
    taxa_plataforma: float
    taxa_pagamento: float
    valor_liquido: float
    percentual_taxa: float
    disponivel_em: datetime
    status: StatusGanho
    created_at: datetime
    pedido: Optional[PedidoResumoOut] = None

    model_config = ConfigDict(from_attributes=True)


class RepasseOut(BaseModel):
    id: int
    restaurante_id: int
    valor: float
    status: StatusRepasse
    metodo: MetodoRepasse
    periodo_inicio: datetime
    periodo_fim: datetime
    quantidade_ganhos: int
    solicitado_em: datetime
    processado_em: Optional[datetime] = None
    processado_por: Optional[int] = None
    referencia: Optional[str] = None
    comprovante_url: Optional[str] = None
    observacoes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SolicitarRepasseRequest(BaseModel):
    """Sem `valor`, saca todo o saldo disponível."""
    valor: Optional[float] = Field(None, gt=0)


class SolicitarRepasseResponse(BaseModel):
    success: bool
    repasse_id: int
    valor: float


class ProcessarRepasseRequest(BaseModel):
    referencia: Optional[str] = Field(None, max_length=100)
    comprovante_url: Optional[str] = Field(None, max_length=500)
    observacoes: Optional[str] = Field(None, max_length=500)


class CancelarRepasseRequest(BaseModel):
    motivo: str = Field(..., min_length=1, max_length=500)


class ContaBancariaRequest(BaseModel):
    titular_nome: str = Field(..., min_length=1, max_length=100)
    titular_documento: str = Field(..., min_length=11, max_length=20)
    banco_codigo: str = Field(..., min_length=3, max_length=5)
    banco_nome: str = Field(..., min_length=1, max_length=100)
    tipo_conta: TipoConta
    agencia: str = Field(..., min_length=1, max_length=10)
    agencia_digito: Optional[str] = Field(None, max_length=2)
    conta_numero: str = Field(..., min_length=1, max_length=20)
    conta_digito: str = Field(..., min_length=1, max_length=2)
    chave_pix: Optional[str] = Field(None, max_length=100)
    tipo_chave_pix: Optional[TipoChavePix] = None


class ContaBancariaOut(ContaBancariaRequest):
    id: int
    restaurante_id: int
    verificada: bool
    verificada_em: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# ======================================================================
# ============================ ENTREGADOR ==============================
# ======================================================================
class GanhoEntregadorOut(BaseModel):
    id: int
    entregador_id: int
    pedido_id: Optional[int] = None
    valor: float
    tipo: TipoGanhoEntregador
    descricao: Optional[str] = None
    created_at: datetime
    pedido: Optional[PedidoResumoOut] = None

    model_config = ConfigDict(from_attributes=True)


class BonusRequest(BaseModel):
    entregador_id: int
    valor: float = Field(..., gt=0)
    descricao: str = Field(..., min_length=1, max_length=255)


class GorjetaRequest(BaseModel):
    entregador_id: int
    pedido_id: int
    valor: float = Field(..., gt=0)
