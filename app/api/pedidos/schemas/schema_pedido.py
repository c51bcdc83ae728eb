from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.api.pedidos.models.model_pedido import StatusPedido, MetodoPagamento, StatusPagamento


# ======================================================================
# ============================ REQUESTS ================================
# ======================================================================
class ItemPedidoRequest(BaseModel):
    item_cardapio_id: int
    quantidade: int = Field(..., ge=1)
    observacao: Optional[str] = Field(None, max_length=255)


class EnderecoEntregaRequest(BaseModel):
    logradouro: str = Field(..., min_length=1, max_length=100)
    numero: str = Field(..., min_length=1, max_length=10)
    complemento: Optional[str] = Field(None, max_length=50)
    bairro: str = Field(..., min_length=1, max_length=50)
    cidade: str = Field(..., min_length=1, max_length=50)
    estado: str = Field(..., min_length=2, max_length=2)
    cep: str = Field(..., min_length=8, max_length=10)
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class CriarPedidoRequest(BaseModel):
    """Exatamente uma origem de endereço: `endereco_id` (salvo) ou `endereco_entrega` (avulso)."""
    restaurante_id: int
    itens: List[ItemPedidoRequest] = Field(..., min_length=1)
    endereco_id: Optional[int] = None
    endereco_entrega: Optional[EnderecoEntregaRequest] = None
    metodo_pagamento: MetodoPagamento
    observacoes: Optional[str] = Field(None, max_length=500)
    cupom: Optional[str] = Field(None, max_length=30)


class AtualizarStatusRequest(BaseModel):
    status: StatusPedido
    motivo: Optional[str] = Field(None, max_length=255)


class CancelarPedidoRequest(BaseModel):
    motivo: Optional[str] = Field(None, max_length=255)


# ======================================================================
# ============================ RESPONSES ===============================
# ======================================================================
class PedidoItemOut(BaseModel):
    id: int
    item_cardapio_id: Optional[int] = None
    nome: str
    quantidade: int
    preco_unitario: float
    preco_total: float
    observacao: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PedidoHistoricoOut(BaseModel):
    id: int
    status_anterior: Optional[StatusPedido] = None
    status: StatusPedido
    usuario_id: Optional[int] = None
    motivo: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PedidoOut(BaseModel):
    id: int
    numero_pedido: str
    cliente_id: int
    restaurante_id: int
    entregador_id: Optional[int] = None
    status: StatusPedido
    status_descricao: str

    subtotal: float
    taxa_entrega: float
    desconto: float
    valor_total: float

    metodo_pagamento: MetodoPagamento
    status_pagamento: StatusPagamento
    gateway_pagamento: Optional[str] = None
    pagamento_id: Optional[str] = None

    endereco_snapshot: dict
    observacoes: Optional[str] = None

    confirmado_em: Optional[datetime] = None
    pronto_em: Optional[datetime] = None
    retirado_em: Optional[datetime] = None
    entregue_em: Optional[datetime] = None
    cancelado_em: Optional[datetime] = None
    previsao_entrega: Optional[datetime] = None
    created_at: datetime

    itens: List[PedidoItemOut] = Field(default_factory=list)
    historico: List[PedidoHistoricoOut] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class PaginacaoMeta(BaseModel):
    total: int
    page: int
    limit: int
    totalPages: int


class PedidoListResponse(BaseModel):
    data: List[PedidoOut]
    meta: PaginacaoMeta


class StatusOnlineRequest(BaseModel):
    online: bool


class LocalizacaoRequest(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    precisao: Optional[float] = None
    velocidade: Optional[float] = None
    direcao: Optional[float] = None
    pedido_id: Optional[int] = None
