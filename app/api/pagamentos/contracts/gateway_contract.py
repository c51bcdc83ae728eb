"""
Contrato comum dos gateways de pagamento.

Cada provedor (Mercado Pago, Stripe, PagSeguro) implementa `PaymentGateway`;
os que guardam cartão no provedor implementam também `CardVault`.
Os DTOs trafegam entre o serviço de pagamentos e os adapters sem depender
do ORM.
"""
from __future__ import annotations

import enum
import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from app.api.pedidos.models.model_pedido import StatusPagamento


class GatewayError(Exception):
    """Falha do provedor em operações fora do fluxo de cobrança (clientes, cartões)."""

    def __init__(self, mensagem: str, codigo: str | None = None):
        self.mensagem = mensagem
        self.codigo = codigo
        super().__init__(mensagem)


class PaymentFeature(str, enum.Enum):
    PIX = "pix"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    SAVED_CARDS = "saved_cards"
    ONE_CLICK = "one_click"
    RECURRING = "recurring"
    REFUND = "refund"
    PARTIAL_REFUND = "partial_refund"
    INSTALLMENTS = "installments"
    BOLETO = "boleto"


class WebhookAction(str, enum.Enum):
    PAYMENT_UPDATED = "payment.updated"
    PAYMENT_CREATED = "payment.created"
    PAYMENT_REFUNDED = "payment.refunded"
    UNKNOWN = "unknown"


@dataclass(slots=True)
class GatewayConfig:
    secret_key: Optional[str] = None
    public_key: Optional[str] = None
    access_token: Optional[str] = None
    webhook_secret: Optional[str] = None
    sandbox: bool = False
    enabled: bool = True


@dataclass(slots=True)
class CardDataInput:
    card_number: str
    cardholder_name: str
    expiration_month: str
    expiration_year: str
    security_code: str
    identification_type: Optional[str] = None
    identification_number: Optional[str] = None


@dataclass(slots=True)
class UserData:
    id: int
    email: Optional[str]
    name: str
    phone: Optional[str] = None
    document: Optional[str] = None
    document_type: Optional[str] = None


@dataclass(slots=True)
class OrderData:
    """Recorte do pedido que os gateways precisam para cobrar."""

    id: int
    numero: str
    cliente_id: int
    restaurante_id: int
    restaurante_nome: str
    restaurante_cidade: Optional[str] = None
    tentativa: int = 1

    @property
    def descricao(self) -> str:
        return f"Pedido #{self.numero} - {self.restaurante_nome}"

    def chave_idempotencia(self, instrumento: str) -> str:
        """
        Chave enviada ao provedor na cobrança.

        Reenviar a mesma tentativa com o mesmo meio repete a chave (o provedor
        devolve a cobrança original). Outro cartão ou uma nova tentativa depois
        de resultado definitivo geram chave nova.
        """
        digest = hashlib.sha256(instrumento.encode()).hexdigest()[:16]
        return f"order_{self.id}_{self.tentativa}_{digest}"


@dataclass(slots=True)
class SavedCard:
    id: Optional[int]
    provider: str
    gateway_card_id: str
    gateway_customer_id: str
    last_four_digits: str
    expiration_month: int
    expiration_year: int
    cardholder_name: str
    brand: str
    is_default: bool = False


@dataclass(slots=True)
class PaymentData:
    method: str
    card_token: Optional[str] = None
    card_data: Optional[CardDataInput] = None
    saved_card: Optional[SavedCard] = None
    security_code: Optional[str] = None
    installments: int = 1

    @property
    def instrumento(self) -> str:
        """Identifica o meio usado na tentativa sem expor o número do cartão."""
        if self.saved_card is not None:
            return f"saved:{self.saved_card.id}"
        if self.card_token:
            return f"token:{self.card_token}"
        if self.card_data is not None:
            c = self.card_data
            return f"card:{c.card_number[-4:]}:{c.expiration_month}:{c.expiration_year}"
        return self.method


@dataclass(slots=True)
class PaymentResult:
    success: bool
    status: StatusPagamento
    payment_id: Optional[str] = None
    gateway_status: Optional[str] = None
    redirect_url: Optional[str] = None
    pix_qr_code: Optional[str] = None
    pix_code: Optional[str] = None
    pix_expires_at: Optional[datetime] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def falha(cls, error: str, error_code: str, status: StatusPagamento = StatusPagamento.FAILED, **kwargs) -> "PaymentResult":
        return cls(success=False, status=status, error=error, error_code=error_code, **kwargs)

    @classmethod
    def timeout(cls, gateway: str) -> "PaymentResult":
        # Resultado desconhecido: o pedido segue PENDING até o webhook confirmar
        return cls(
            success=False,
            status=StatusPagamento.PENDING,
            error=f"Tempo esgotado aguardando {gateway}. Aguarde a confirmação do pagamento.",
            error_code="GATEWAY_TIMEOUT",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "paymentId": self.payment_id,
            "status": self.status.value,
            "gatewayStatus": self.gateway_status,
            "redirectUrl": self.redirect_url,
            "pixQrCode": self.pix_qr_code,
            "pixCode": self.pix_code,
            "pixExpiresAt": self.pix_expires_at.isoformat() if self.pix_expires_at else None,
            "error": self.error,
            "errorCode": self.error_code,
            "metadata": self.metadata or None,
        }


@dataclass(slots=True)
class WebhookResult:
    success: bool
    action: WebhookAction = WebhookAction.UNKNOWN
    order_id: Optional[int] = None
    payment_id: Optional[str] = None
    status: Optional[StatusPagamento] = None
    error: Optional[str] = None


@dataclass(slots=True)
class RefundRequest:
    payment_id: str
    amount: Optional[Decimal] = None
    reason: Optional[str] = None


@dataclass(slots=True)
class RefundResult:
    success: bool
    refund_id: Optional[str] = None
    amount: Optional[Decimal] = None
    status: Optional[str] = None
    error: Optional[str] = None


class PaymentGateway(ABC):
    name: str = ""
    display_name: str = ""
    features: frozenset = frozenset()

    def __init__(self) -> None:
        self.config: GatewayConfig = GatewayConfig(enabled=False)

    def initialize(self, config: GatewayConfig) -> None:
        self.config = config

    @abstractmethod
    def is_configured(self) -> bool:
        raise NotImplementedError

    def is_enabled(self) -> bool:
        return self.is_configured() and self.config.enabled

    @abstractmethod
    async def create_payment(
        self, order: OrderData, amount: Decimal, payment_data: PaymentData, user: UserData
    ) -> PaymentResult:
        raise NotImplementedError

    @abstractmethod
    async def process_webhook(
        self, payload: Dict[str, Any], headers: Dict[str, str], raw_body: bytes
    ) -> WebhookResult:
        raise NotImplementedError

    @abstractmethod
    def map_status(self, provider_status: Optional[str]) -> StatusPagamento:
        raise NotImplementedError

    @abstractmethod
    def translate_error(self, code: Optional[str]) -> str:
        raise NotImplementedError

    @abstractmethod
    async def refund(self, request: RefundRequest) -> RefundResult:
        raise NotImplementedError

    def supports_feature(self, feature: PaymentFeature | str) -> bool:
        return PaymentFeature(feature) in self.features

    def get_supported_features(self) -> List[str]:
        return sorted(f.value for f in self.features)

    async def close(self) -> None:
        return None


class CardVault(ABC):
    """Lado do provedor no cofre de cartões. A persistência local fica no CartoesService."""

    @abstractmethod
    async def create_customer(self, user: UserData) -> str:
        raise NotImplementedError

    @abstractmethod
    async def attach_card(self, customer_id: str, card_token: str) -> SavedCard:
        raise NotImplementedError

    @abstractmethod
    async def detach_card(self, customer_id: str, gateway_card_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def charge_with_saved_card(
        self,
        saved_card: SavedCard,
        amount: Decimal,
        order: OrderData,
        user: UserData,
        security_code: Optional[str] = None,
    ) -> PaymentResult:
        raise NotImplementedError

    @abstractmethod
    def requires_cvv_for_saved_card(self) -> bool:
        raise NotImplementedError
