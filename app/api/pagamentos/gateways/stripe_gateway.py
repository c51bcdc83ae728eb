from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

import stripe
from fastapi.concurrency import run_in_threadpool

from app.api.pagamentos.contracts.gateway_contract import (
    CardVault,
    GatewayError,
    OrderData,
    PaymentData,
    PaymentFeature,
    PaymentGateway,
    PaymentResult,
    RefundRequest,
    RefundResult,
    SavedCard,
    UserData,
    WebhookAction,
    WebhookResult,
)
from app.api.pedidos.models.model_pedido import StatusPagamento
from app.utils.formatacao import em_centavos
from app.utils.logger import logger

MENSAGENS_RECUSA = {
    "card_declined": "Cartão recusado",
    "insufficient_funds": "Saldo insuficiente",
    "expired_card": "Cartão expirado",
    "incorrect_cvc": "Código de segurança incorreto",
    "incorrect_number": "Número do cartão incorreto",
    "invalid_expiry_month": "Mês de validade inválido",
    "invalid_expiry_year": "Ano de validade inválido",
    "processing_error": "Erro ao processar pagamento",
    "authentication_required": "Autenticação adicional necessária",
    "rate_limit": "Muitas tentativas. Tente novamente em alguns minutos.",
}

STATUS_STRIPE = {
    "succeeded": StatusPagamento.PAID,
    "canceled": StatusPagamento.FAILED,
}


def _attr(objeto, nome: str):
    """Campo de um StripeObject, None quando ausente."""
    if objeto is None:
        return None
    return getattr(objeto, nome, None)


class StripeGateway(PaymentGateway, CardVault):
    """
    Stripe via SDK oficial. O SDK é síncrono: cada chamada roda no threadpool
    e recebe a chave por parâmetro (`api_key`), sem estado global.
    """

    name = "stripe"
    display_name = "Stripe"
    features = frozenset({
        PaymentFeature.CREDIT_CARD,
        PaymentFeature.DEBIT_CARD,
        PaymentFeature.SAVED_CARDS,
        PaymentFeature.ONE_CLICK,
        PaymentFeature.REFUND,
        PaymentFeature.PARTIAL_REFUND,
    })

    def initialize(self, config) -> None:
        super().initialize(config)
        if config.secret_key:
            logger.info("[Stripe] Gateway inicializado")
        else:
            logger.warning("[Stripe] Gateway não configurado (secret key ausente)")

    def is_configured(self) -> bool:
        return bool(self.config.secret_key)

    async def _chamar(self, metodo, *args, **kwargs):
        return await run_in_threadpool(metodo, *args, api_key=self.config.secret_key, **kwargs)

    # ---------------- Status / erros ----------------
    def map_status(self, provider_status: Optional[str]) -> StatusPagamento:
        return STATUS_STRIPE.get(provider_status or "", StatusPagamento.PENDING)

    def translate_error(self, code: Optional[str]) -> str:
        return MENSAGENS_RECUSA.get(code or "", "Erro ao processar pagamento")

    def _resultado(self, intent) -> PaymentResult:
        status = self.map_status(_attr(intent, "status"))
        redirect = _attr(_attr(_attr(intent, "next_action"), "redirect_to_url"), "url")
        return PaymentResult(
            success=status == StatusPagamento.PAID,
            status=status,
            payment_id=intent.id,
            gateway_status=intent.status,
            redirect_url=redirect,
            metadata={"paymentIntentId": intent.id},
        )

    def _falha_stripe(self, e: stripe.StripeError) -> PaymentResult:
        if isinstance(e, stripe.APIConnectionError):
            return PaymentResult.timeout(self.display_name)
        codigo = getattr(e, "code", None)
        return PaymentResult.falha(self.translate_error(codigo), codigo or "PAYMENT_FAILED")

    # ---------------- Cobrança ----------------
    async def create_payment(
        self, order: OrderData, amount: Decimal, payment_data: PaymentData, user: UserData
    ) -> PaymentResult:
        if not self.is_configured():
            return PaymentResult.falha("Stripe não configurado", "GATEWAY_NOT_CONFIGURED")

        saved = payment_data.saved_card
        if saved is not None and saved.provider == self.name:
            return await self.charge_with_saved_card(saved, amount, order, user)

        if not payment_data.card_token:
            return PaymentResult.falha("Token do cartão não fornecido", "MISSING_CARD_TOKEN")

        try:
            intent = await self._chamar(
                stripe.PaymentIntent.create,
                amount=em_centavos(amount),
                currency="brl",
                payment_method=payment_data.card_token,
                confirm=True,
                automatic_payment_methods={"enabled": True, "allow_redirects": "never"},
                metadata={"orderId": str(order.id)},
                idempotency_key=order.chave_idempotencia(payment_data.instrumento),
            )
        except stripe.StripeError as e:
            logger.error("[Stripe] Erro no pagamento do pedido %s: %s", order.id, e)
            return self._falha_stripe(e)

        logger.info("[Stripe] PaymentIntent %s do pedido %s: %s", intent.id, order.id, intent.status)
        return self._resultado(intent)

    # ---------------- Webhook ----------------
    async def process_webhook(
        self, payload: Dict[str, Any], headers: Dict[str, str], raw_body: bytes
    ) -> WebhookResult:
        if not self.is_configured():
            return WebhookResult(success=False, error="Stripe não configurado")
        if not self.config.webhook_secret:
            logger.warning("[Stripe][Webhook] Webhook secret não configurado")
            return WebhookResult(success=False, error="Webhook secret não configurado")

        assinatura = headers.get("stripe-signature")
        if not assinatura:
            return WebhookResult(success=False, error="Cabeçalho de assinatura ausente")

        try:
            evento = stripe.Webhook.construct_event(raw_body, assinatura, self.config.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning("[Stripe][Webhook] Evento rejeitado: %s", e)
            return WebhookResult(success=False, error="Assinatura inválida")

        objeto = evento.data.object
        referencia = _attr(_attr(objeto, "metadata"), "orderId")
        order_id = int(referencia) if referencia else None

        tipo = evento.type
        if tipo == "payment_intent.succeeded":
            status, acao = StatusPagamento.PAID, WebhookAction.PAYMENT_UPDATED
        elif tipo == "payment_intent.payment_failed":
            status, acao = StatusPagamento.FAILED, WebhookAction.PAYMENT_UPDATED
        elif tipo == "charge.refunded":
            status, acao = StatusPagamento.REFUNDED, WebhookAction.PAYMENT_REFUNDED
        else:
            return WebhookResult(success=True, action=WebhookAction.UNKNOWN, payment_id=_attr(objeto, "id"))

        # Em charge.refunded o pedido guarda o id do PaymentIntent, não o da charge
        payment_id = _attr(objeto, "payment_intent") if tipo == "charge.refunded" else _attr(objeto, "id")
        logger.info("[Stripe][Webhook] %s pedido=%s", tipo, order_id)
        return WebhookResult(success=True, order_id=order_id, payment_id=payment_id, status=status, action=acao)

    # ---------------- Estorno ----------------
    async def refund(self, request: RefundRequest) -> RefundResult:
        if not self.is_configured():
            return RefundResult(success=False, error="Stripe não configurado")

        params: Dict[str, Any] = {"payment_intent": request.payment_id}
        if request.amount is not None:
            params["amount"] = em_centavos(request.amount)
        if request.reason:
            params["metadata"] = {"reason": request.reason}

        try:
            refund = await self._chamar(stripe.Refund.create, **params)
        except stripe.StripeError as e:
            logger.error("[Stripe] Erro no reembolso de %s: %s", request.payment_id, e)
            return RefundResult(success=False, error=self.translate_error(getattr(e, "code", None)))

        return RefundResult(
            success=True,
            refund_id=refund.id,
            amount=Decimal(_attr(refund, "amount") or 0) / 100,
            status=_attr(refund, "status"),
        )

    # ---------------- Cartões salvos ----------------
    async def create_customer(self, user: UserData) -> str:
        if not self.is_configured():
            raise GatewayError("Stripe não configurado", "GATEWAY_NOT_CONFIGURED")
        try:
            cliente = await self._chamar(
                stripe.Customer.create,
                email=user.email,
                name=user.name,
                phone=user.phone,
                metadata={"userId": str(user.id)},
            )
        except stripe.StripeError as e:
            raise GatewayError(str(e) or "Erro ao criar cliente na Stripe") from e
        logger.info("[Stripe] Cliente %s criado para o usuário %s", cliente.id, user.id)
        return cliente.id

    async def attach_card(self, customer_id: str, card_token: str) -> SavedCard:
        if not self.is_configured():
            raise GatewayError("Stripe não configurado", "GATEWAY_NOT_CONFIGURED")
        try:
            metodo = await self._chamar(stripe.PaymentMethod.attach, card_token, customer=customer_id)
        except stripe.StripeError as e:
            raise GatewayError(self.translate_error(getattr(e, "code", None))) from e

        cartao = _attr(metodo, "card")
        if not cartao:
            raise GatewayError("PaymentMethod não é um cartão")
        cobranca = _attr(metodo, "billing_details")
        return SavedCard(
            id=None,
            provider=self.name,
            gateway_card_id=metodo.id,
            gateway_customer_id=customer_id,
            last_four_digits=_attr(cartao, "last4") or "",
            expiration_month=int(_attr(cartao, "exp_month") or 0),
            expiration_year=int(_attr(cartao, "exp_year") or 0),
            cardholder_name=_attr(cobranca, "name") or "Titular",
            brand=_attr(cartao, "brand") or "card",
        )

    async def detach_card(self, customer_id: str, gateway_card_id: str) -> None:
        if not self.is_configured():
            return
        await self._chamar(stripe.PaymentMethod.detach, gateway_card_id)

    async def charge_with_saved_card(
        self,
        saved_card: SavedCard,
        amount: Decimal,
        order: OrderData,
        user: UserData,
        security_code: Optional[str] = None,
    ) -> PaymentResult:
        if not self.is_configured():
            return PaymentResult.falha("Stripe não configurado", "GATEWAY_NOT_CONFIGURED")

        try:
            intent = await self._chamar(
                stripe.PaymentIntent.create,
                amount=em_centavos(amount),
                currency="brl",
                customer=saved_card.gateway_customer_id,
                payment_method=saved_card.gateway_card_id,
                off_session=True,
                confirm=True,
                metadata={"orderId": str(order.id), "savedCardId": str(saved_card.id)},
                idempotency_key=order.chave_idempotencia(f"saved:{saved_card.id}"),
            )
        except stripe.StripeError as e:
            logger.error("[Stripe] Erro no pagamento com cartão salvo do pedido %s: %s", order.id, e)
            if getattr(e, "code", None) == "authentication_required":
                return PaymentResult.falha(
                    "Autenticação adicional necessária. Tente pagar com o cartão novamente.",
                    "AUTHENTICATION_REQUIRED",
                )
            return self._falha_stripe(e)

        logger.info("[Stripe] Pagamento 1-clique %s do pedido %s: %s", intent.id, order.id, intent.status)
        return self._resultado(intent)

    def requires_cvv_for_saved_card(self) -> bool:
        return False
