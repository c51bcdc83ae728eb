from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.api.pedidos.models.model_pedido import MetodoPagamento


# ======================================================================
# ============================ REQUESTS ================================
# ======================================================================
class DadosCartaoRequest(BaseModel):
    """Dados abertos do cartão, aceitos só pelo Mercado Pago (tokenizados antes da cobrança)."""
    card_number: str = Field(..., min_length=12, max_length=23, repr=False)
    cardholder_name: str = Field(..., min_length=1, max_length=100)
    expiration_month: str = Field(..., min_length=1, max_length=2)
    expiration_year: str = Field(..., min_length=2, max_length=4)
    security_code: str = Field(..., min_length=3, max_length=4, repr=False)
    identification_type: Optional[str] = None
    identification_number: Optional[str] = None


class ProcessarPagamentoRequest(BaseModel):
    pedido_id: int
    metodo: Optional[MetodoPagamento] = None
    gateway: Optional[str] = Field(None, description="Preferência de gateway (stripe, mercadopago, pagseguro)")
    card_token: Optional[str] = None
    card_data: Optional[DadosCartaoRequest] = None
    saved_card_id: Optional[int] = None
    security_code: Optional[str] = Field(None, min_length=3, max_length=4)
    installments: int = Field(1, ge=1, le=12)


class SalvarCartaoRequest(BaseModel):
    card_token: str = Field(..., min_length=1)
    gateway: Optional[str] = None
    padrao: Optional[bool] = None


class EstornoRequest(BaseModel):
    valor: Optional[Decimal] = Field(None, gt=0)
    motivo: Optional[str] = Field(None, max_length=255)


# ======================================================================
# ============================ RESPONSES ===============================
# ======================================================================
class CartaoSalvoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    provider: str
    ultimos_digitos: str
    mes_validade: int
    ano_validade: int
    titular: str
    bandeira: str
    padrao: bool
    requires_cvv: bool = True
    created_at: Optional[datetime] = None
