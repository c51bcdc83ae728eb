from __future__ import annotations

import hashlib
import hmac
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, Optional

import httpx

from app.api.pagamentos.contracts.gateway_contract import (
    OrderData,
    PaymentData,
    PaymentFeature,
    PaymentGateway,
    PaymentResult,
    RefundRequest,
    RefundResult,
    UserData,
    WebhookAction,
    WebhookResult,
)
from app.api.pedidos.models.model_pedido import StatusPagamento
from app.config import settings
from app.integrations.pagseguro.client import PagSeguroClient, PagSeguroError
from app.utils.database_utils import now_trimmed
from app.utils.formatacao import em_centavos
from app.utils.logger import logger

MENSAGENS_ERRO = {
    "40001": "Parâmetro obrigatório não informado",
    "40002": "Parâmetro inválido",
    "40003": "Pagamento recusado pela operadora",
    "40004": "Cartão expirado",
    "40005": "Saldo insuficiente",
    "40006": "Cartão bloqueado",
    "40007": "Transação não permitida",
    "40008": "Número de parcelas inválido",
    "40009": "Valor abaixo do mínimo",
    "40010": "Valor acima do máximo",
}

STATUS_PAGSEGURO = {
    "PAID": StatusPagamento.PAID,
    "AUTHORIZED": StatusPagamento.PAID,
    "DECLINED": StatusPagamento.FAILED,
    "CANCELED": StatusPagamento.FAILED,
}

DIAS_VENCIMENTO_BOLETO = 3


class PagSeguroGateway(PaymentGateway):
    """PagSeguro (API de charges). Não guarda cartões: cada cobrança usa o cartão criptografado no app."""

    name = "pagseguro"
    display_name = "PagSeguro"
    features = frozenset({
        PaymentFeature.CREDIT_CARD,
        PaymentFeature.BOLETO,
        PaymentFeature.REFUND,
        PaymentFeature.PARTIAL_REFUND,
    })

    def __init__(
        self,
        *,
        timeout: int = settings.PAYMENT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__()
        self.timeout = timeout
        self._transport = transport
        self.client: PagSeguroClient | None = None

    def initialize(self, config) -> None:
        super().initialize(config)
        self.client = None
        if config.access_token:
            self.client = PagSeguroClient(
                token=config.access_token,
                sandbox=config.sandbox,
                timeout=self.timeout,
                transport=self._transport,
            )
            logger.info("[PagSeguro] Gateway inicializado (sandbox=%s)", config.sandbox)
        else:
            logger.warning("[PagSeguro] Gateway não configurado (token ausente)")

    def is_configured(self) -> bool:
        return self.client is not None

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()

    def map_status(self, provider_status: Optional[str]) -> StatusPagamento:
        return STATUS_PAGSEGURO.get(provider_status or "", StatusPagamento.PENDING)

    def translate_error(self, code: Optional[str]) -> str:
        return MENSAGENS_ERRO.get(code or "", "Erro ao processar pagamento")

    @staticmethod
    def _meio_pagamento(payment_data: PaymentData) -> Dict[str, Any]:
        if payment_data.method == "BOLETO":
            vencimento = (now_trimmed() + timedelta(days=DIAS_VENCIMENTO_BOLETO)).date().isoformat()
            return {"type": "BOLETO", "boleto": {"due_date": vencimento}}
        return {
            "type": "CREDIT_CARD",
            "installments": payment_data.installments or 1,
            "capture": True,
            "card": {"encrypted": payment_data.card_token},
        }

    async def create_payment(
        self, order: OrderData, amount: Decimal, payment_data: PaymentData, user: UserData
    ) -> PaymentResult:
        if self.client is None:
            return PaymentResult.falha("PagSeguro não configurado", "GATEWAY_NOT_CONFIGURED")
        if payment_data.method != "BOLETO" and not payment_data.card_token:
            return PaymentResult.falha("Token do cartão não fornecido", "MISSING_CARD_TOKEN")

        payload: Dict[str, Any] = {
            "reference_id": str(order.id),
            "description": order.descricao,
            "amount": {"value": em_centavos(amount), "currency": "BRL"},
            "payment_method": self._meio_pagamento(payment_data),
            "metadata": {"order_id": order.id, "restaurant_id": order.restaurante_id},
        }
        if settings.BASE_URL:
            payload["notification_urls"] = [f"{settings.BASE_URL}/api/pagamentos/public/webhook/pagseguro"]

        try:
            cobranca = await self.client.create_charge(
                payload, idempotency_key=order.chave_idempotencia(payment_data.instrumento)
            )
        except httpx.TimeoutException:
            logger.warning("[PagSeguro] Timeout na cobrança do pedido %s", order.id)
            return PaymentResult.timeout(self.display_name)
        except PagSeguroError as e:
            logger.error("[PagSeguro] Erro na cobrança do pedido %s: %s", order.id, e.data)
            return PaymentResult.falha(self.translate_error(e.code), e.code or "PAYMENT_FAILED")
        except httpx.HTTPError as e:
            logger.error("[PagSeguro] Falha de comunicação no pedido %s: %s", order.id, e)
            return PaymentResult.falha("Erro de comunicação com o PagSeguro", "GATEWAY_ERROR")

        status = self.map_status(cobranca.get("status"))
        if status == StatusPagamento.FAILED:
            resposta = cobranca.get("payment_response") or {}
            codigo = str(resposta.get("code") or "") or None
            return PaymentResult.falha(
                self.translate_error(codigo),
                codigo or "PAYMENT_REJECTED",
                payment_id=cobranca.get("id"),
                gateway_status=cobranca.get("status"),
            )

        return PaymentResult(
            success=status == StatusPagamento.PAID,
            status=status,
            payment_id=cobranca.get("id"),
            gateway_status=cobranca.get("status"),
            metadata={"chargeId": cobranca.get("id")},
        )

    def _assinatura_valida(self, headers: Dict[str, str], raw_body: bytes) -> bool:
        recebido = headers.get("x-authenticity-token")
        if not recebido:
            return False
        esperado = hashlib.sha256(f"{self.config.access_token}-".encode() + raw_body).hexdigest()
        return hmac.compare_digest(esperado, recebido)

    async def process_webhook(
        self, payload: Dict[str, Any], headers: Dict[str, str], raw_body: bytes
    ) -> WebhookResult:
        if self.client is None:
            return WebhookResult(success=False, error="PagSeguro não configurado")
        if not self._assinatura_valida(headers, raw_body):
            logger.warning("[PagSeguro][Webhook] Token de autenticidade inválido")
            return WebhookResult(success=False, error="Assinatura inválida")

        # Notificação de pedido traz as charges; de cobrança, a própria charge
        cobranca = (payload.get("charges") or [payload])[0]
        referencia = (cobranca.get("metadata") or {}).get("order_id") or cobranca.get("reference_id") or payload.get("reference_id")
        status = self.map_status(cobranca.get("status"))
        logger.info("[PagSeguro][Webhook] Cobrança %s status=%s", cobranca.get("id"), status.value)
        return WebhookResult(
            success=True,
            order_id=int(referencia) if referencia not in (None, "") else None,
            payment_id=cobranca.get("id"),
            status=status,
            action=WebhookAction.PAYMENT_UPDATED,
        )

    async def refund(self, request: RefundRequest) -> RefundResult:
        if self.client is None:
            return RefundResult(success=False, error="PagSeguro não configurado")
        try:
            data = await self.client.cancel_charge(
                request.payment_id,
                em_centavos(request.amount) if request.amount is not None else None,
            )
        except PagSeguroError as e:
            return RefundResult(success=False, error=self.translate_error(e.code))
        except httpx.HTTPError as e:
            logger.error("[PagSeguro] Erro no reembolso de %s: %s", request.payment_id, e)
            return RefundResult(success=False, error="Erro de comunicação com o PagSeguro")

        valor = (data.get("amount") or {}).get("value")
        return RefundResult(
            success=True,
            refund_id=data.get("id"),
            amount=Decimal(valor) / 100 if valor is not None else request.amount,
            status=data.get("status"),
        )
