from __future__ import annotations

import hashlib
import hmac
from decimal import Decimal
from typing import Any, Dict, Optional

import httpx

from app.api.pagamentos.contracts.gateway_contract import (
    CardDataInput,
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
from app.api.pagamentos.gateways.pix_local import gerar_pix_local
from app.api.pagamentos.utils.card_brand import detect_card_brand, mask_card_number, somente_digitos
from app.api.pedidos.models.model_pedido import StatusPagamento
from app.config import settings
from app.integrations.mercadopago.client import MercadoPagoClient, MercadoPagoError
from app.utils.logger import logger

MENSAGENS_RECUSA = {
    "cc_rejected_bad_filled_card_number": "Número do cartão inválido",
    "cc_rejected_bad_filled_date": "Data de validade inválida",
    "cc_rejected_bad_filled_other": "Dados do cartão inválidos",
    "cc_rejected_bad_filled_security_code": "Código de segurança inválido",
    "cc_rejected_blacklist": "Cartão não permitido",
    "cc_rejected_call_for_authorize": "Pagamento não autorizado. Contate sua operadora.",
    "cc_rejected_card_disabled": "Cartão desabilitado. Contate sua operadora.",
    "cc_rejected_card_error": "Erro no cartão. Tente novamente.",
    "cc_rejected_duplicated_payment": "Pagamento duplicado",
    "cc_rejected_high_risk": "Pagamento recusado por segurança",
    "cc_rejected_insufficient_amount": "Saldo insuficiente",
    "cc_rejected_invalid_installments": "Parcelamento não disponível",
    "cc_rejected_max_attempts": "Limite de tentativas excedido",
    "cc_rejected_other_reason": "Pagamento recusado pela operadora",
    "pending_contingency": "Pagamento em análise",
    "pending_review_manual": "Pagamento em revisão manual",
}

STATUS_MP = {
    "approved": StatusPagamento.PAID,
    "rejected": StatusPagamento.FAILED,
    "cancelled": StatusPagamento.FAILED,
    "refunded": StatusPagamento.REFUNDED,
    "charged_back": StatusPagamento.REFUNDED,
}

EMAIL_PAGADOR_PADRAO = "cliente@delivery.com.br"


class MercadoPagoGateway(PaymentGateway, CardVault):
    name = "mercadopago"
    display_name = "Mercado Pago"
    features = frozenset({
        PaymentFeature.PIX,
        PaymentFeature.CREDIT_CARD,
        PaymentFeature.DEBIT_CARD,
        PaymentFeature.SAVED_CARDS,
        PaymentFeature.REFUND,
        PaymentFeature.PARTIAL_REFUND,
        PaymentFeature.BOLETO,
        PaymentFeature.INSTALLMENTS,
    })

    def __init__(
        self,
        *,
        timeout: int = settings.PAYMENT_TIMEOUT_SECONDS,
        pix_key: str = settings.PIX_KEY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__()
        self.timeout = timeout
        self.pix_key = pix_key
        self._transport = transport
        self.client: MercadoPagoClient | None = None

    def initialize(self, config) -> None:
        super().initialize(config)
        self.client = None
        if config.access_token:
            self.client = MercadoPagoClient(
                access_token=config.access_token,
                base_url=settings.MERCADOPAGO_BASE_URL,
                timeout=self.timeout,
                transport=self._transport,
            )
            logger.info("[MercadoPago] Gateway inicializado")
        else:
            logger.warning("[MercadoPago] Gateway não configurado (access token ausente)")

    def is_configured(self) -> bool:
        return self.client is not None

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()

    # ---------------- Status / erros ----------------
    def map_status(self, provider_status: Optional[str]) -> StatusPagamento:
        return STATUS_MP.get(provider_status or "", StatusPagamento.PENDING)

    def translate_error(self, code: Optional[str]) -> str:
        return MENSAGENS_RECUSA.get(code or "", code or "Pagamento recusado. Tente novamente.")

    def _resultado(self, pagamento) -> PaymentResult:
        status = self.map_status(pagamento.status)
        if status == StatusPagamento.FAILED:
            return PaymentResult.falha(
                self.translate_error(pagamento.status_detail),
                pagamento.status_detail or "PAYMENT_REJECTED",
                payment_id=pagamento.id,
                gateway_status=pagamento.status,
            )
        return PaymentResult(
            success=status == StatusPagamento.PAID,
            status=status,
            payment_id=pagamento.id,
            gateway_status=pagamento.status,
        )

    # ---------------- Cobrança ----------------
    async def create_payment(
        self, order: OrderData, amount: Decimal, payment_data: PaymentData, user: UserData
    ) -> PaymentResult:
        if self.client is None:
            return PaymentResult.falha("MercadoPago não configurado", "GATEWAY_NOT_CONFIGURED")

        if payment_data.method == "PIX":
            return await self._criar_pix(order, amount, user)

        saved = payment_data.saved_card
        if saved is not None and saved.provider == self.name:
            return await self.charge_with_saved_card(saved, amount, order, user, payment_data.security_code)

        try:
            token = payment_data.card_token
            metodo_id = "master"
            if payment_data.card_data is not None:
                token = await self._tokenizar(payment_data.card_data)
                metodo_id = await self._metodo_por_bin(payment_data.card_data.card_number)
            if not token:
                return PaymentResult.falha("Token do cartão não fornecido", "MISSING_CARD_TOKEN")

            pagamento = await self.client.create_payment(
                {
                    "transaction_amount": float(amount),
                    "token": token,
                    "description": order.descricao,
                    "installments": payment_data.installments or 1,
                    "payment_method_id": metodo_id,
                    "external_reference": str(order.id),
                    "payer": self._pagador(user),
                    "metadata": {"order_id": order.id},
                },
                idempotency_key=order.chave_idempotencia(payment_data.instrumento),
            )
        except httpx.TimeoutException:
            logger.warning("[MercadoPago] Timeout no pagamento com cartão do pedido %s", order.id)
            return PaymentResult.timeout(self.display_name)
        except MercadoPagoError as e:
            logger.error("[MercadoPago] Erro no pagamento do pedido %s: %s", order.id, e.mensagem)
            return PaymentResult.falha(MENSAGENS_RECUSA.get(e.codigo_causa or "", e.mensagem), "PAYMENT_FAILED")
        except httpx.HTTPError as e:
            logger.error("[MercadoPago] Falha de comunicação no pedido %s: %s", order.id, e)
            return PaymentResult.falha("Erro de comunicação com o Mercado Pago", "GATEWAY_ERROR")

        logger.info("[MercadoPago] Pagamento %s do pedido %s: %s", pagamento.id, order.id, pagamento.status)
        return self._resultado(pagamento)

    async def _criar_pix(self, order: OrderData, amount: Decimal, user: UserData) -> PaymentResult:
        try:
            pagamento = await self.client.create_or_get_pix_payment(
                external_reference=str(order.id),
                amount=amount,
                metadata={"order_id": order.id},
                descricao=order.descricao,
                customer={"email": user.email or EMAIL_PAGADOR_PADRAO},
                idempotency_key=order.chave_idempotencia("pix"),
            )
        except (httpx.HTTPError, MercadoPagoError) as e:
            logger.warning("[MercadoPago] PIX indisponível para o pedido %s (%s); gerando PIX local", order.id, e)
            return gerar_pix_local(order, amount, self.pix_key)

        return PaymentResult(
            success=True,
            status=self.map_status(pagamento.status),
            payment_id=pagamento.id,
            gateway_status=pagamento.status,
            pix_code=pagamento.qr_code,
            pix_qr_code=f"data:image/png;base64,{pagamento.qr_code_base64}" if pagamento.qr_code_base64 else None,
            pix_expires_at=None,
        )

    @staticmethod
    def _pagador(user: UserData) -> Dict[str, Any]:
        pagador: Dict[str, Any] = {"email": user.email or EMAIL_PAGADOR_PADRAO}
        if user.document:
            pagador["identification"] = {"type": user.document_type or "CPF", "number": user.document}
        return pagador

    async def _tokenizar(self, card: CardDataInput) -> str:
        logger.info("[MercadoPago] Tokenizando cartão %s", mask_card_number(card.card_number))
        ano = card.expiration_year if len(card.expiration_year) == 4 else f"20{card.expiration_year}"
        return await self.client.create_card_token({
            "card_number": somente_digitos(card.card_number),
            "cardholder": {
                "name": card.cardholder_name,
                "identification": {
                    "type": card.identification_type or "CPF",
                    "number": card.identification_number,
                },
            },
            "expiration_month": int(card.expiration_month),
            "expiration_year": int(ano),
            "security_code": card.security_code,
        })

    async def _metodo_por_bin(self, numero: str) -> str:
        try:
            metodo = await self.client.search_payment_method_by_bin(somente_digitos(numero)[:6])
        except (httpx.HTTPError, MercadoPagoError) as e:
            logger.debug("[MercadoPago] Consulta de BIN falhou: %s", e)
            metodo = None
        return metodo or detect_card_brand(numero)

    # ---------------- Webhook ----------------
    def _assinatura_valida(self, payload: Dict[str, Any], headers: Dict[str, str]) -> bool:
        segredo = self.config.webhook_secret
        if not segredo:
            return True
        partes = dict(
            item.strip().split("=", 1)
            for item in (headers.get("x-signature") or "").split(",")
            if "=" in item
        )
        ts, v1 = partes.get("ts"), partes.get("v1")
        if not ts or not v1:
            return False
        data_id = str((payload.get("data") or {}).get("id", ""))
        manifesto = f"id:{data_id};request-id:{headers.get('x-request-id', '')};ts:{ts};"
        esperado = hmac.new(segredo.encode(), manifesto.encode(), hashlib.sha256).hexdigest()
        return hmac.compare_digest(esperado, v1)

    async def process_webhook(
        self, payload: Dict[str, Any], headers: Dict[str, str], raw_body: bytes
    ) -> WebhookResult:
        if self.client is None:
            return WebhookResult(success=False, error="MercadoPago não configurado")
        if not self._assinatura_valida(payload, headers):
            logger.warning("[MercadoPago][Webhook] Assinatura inválida")
            return WebhookResult(success=False, error="Assinatura inválida")

        tipo = payload.get("type") or payload.get("topic")
        if tipo != "payment":
            return WebhookResult(success=True, action=WebhookAction.UNKNOWN)

        payment_id = str((payload.get("data") or {}).get("id", ""))
        if not payment_id:
            return WebhookResult(success=False, error="Notificação sem id de pagamento")

        try:
            pagamento = await self.client.get_payment(payment_id)
        except (httpx.HTTPError, MercadoPagoError) as e:
            logger.error("[MercadoPago][Webhook] Falha ao consultar pagamento %s: %s", payment_id, e)
            return WebhookResult(success=False, payment_id=payment_id, error="Falha ao consultar pagamento")

        referencia = pagamento.metadata.get("order_id") or pagamento.external_reference
        status = self.map_status(pagamento.status)
        logger.info("[MercadoPago][Webhook] Pagamento %s status=%s", payment_id, status.value)
        return WebhookResult(
            success=True,
            order_id=int(referencia) if referencia not in (None, "") else None,
            payment_id=payment_id,
            status=status,
            action=WebhookAction.PAYMENT_REFUNDED if status == StatusPagamento.REFUNDED else WebhookAction.PAYMENT_UPDATED,
        )

    # ---------------- Estorno ----------------
    async def refund(self, request: RefundRequest) -> RefundResult:
        if self.client is None:
            return RefundResult(success=False, error="MercadoPago não configurado")
        try:
            data = await self.client.refund_payment(request.payment_id, request.amount)
        except MercadoPagoError as e:
            return RefundResult(success=False, error=e.data.get("message") or "Erro ao processar reembolso")
        except httpx.HTTPError as e:
            logger.error("[MercadoPago] Erro no reembolso de %s: %s", request.payment_id, e)
            return RefundResult(success=False, error="Erro de comunicação com o Mercado Pago")

        return RefundResult(
            success=True,
            refund_id=str(data.get("id")) if data.get("id") is not None else None,
            amount=Decimal(str(data["amount"])) if data.get("amount") is not None else request.amount,
            status=data.get("status"),
        )

    # ---------------- Cartões salvos ----------------
    async def create_customer(self, user: UserData) -> str:
        if self.client is None:
            raise GatewayError("MercadoPago não configurado", "GATEWAY_NOT_CONFIGURED")
        nomes = (user.name or "").split(" ")
        payload: Dict[str, Any] = {
            "email": user.email,
            "first_name": nomes[0],
            "last_name": " ".join(nomes[1:]),
        }
        if user.document:
            payload["identification"] = {"type": user.document_type or "CPF", "number": user.document}
        try:
            data = await self.client.create_customer(payload)
        except MercadoPagoError as e:
            if e.codigo_causa in ("101", "customer_already_exists"):
                existentes = await self.client.search_customers(user.email or "")
                if existentes:
                    return str(existentes[0]["id"])
                raise GatewayError("Cliente não encontrado no Mercado Pago") from e
            raise GatewayError(e.mensagem or "Erro ao criar cliente") from e

        logger.info("[MercadoPago] Cliente %s criado para o usuário %s", data.get("id"), user.id)
        return str(data["id"])

    async def attach_card(self, customer_id: str, card_token: str) -> SavedCard:
        if self.client is None:
            raise GatewayError("MercadoPago não configurado", "GATEWAY_NOT_CONFIGURED")
        try:
            data = await self.client.add_customer_card(customer_id, card_token)
        except MercadoPagoError as e:
            raise GatewayError(e.mensagem or "Erro ao salvar cartão") from e
        if not data.get("id"):
            raise GatewayError("Erro ao salvar cartão")

        metodo = (data.get("payment_method") or {}).get("id") or "credit_card"
        return SavedCard(
            id=None,
            provider=self.name,
            gateway_card_id=str(data["id"]),
            gateway_customer_id=customer_id,
            last_four_digits=data.get("last_four_digits") or "",
            expiration_month=int(data.get("expiration_month") or 0),
            expiration_year=int(data.get("expiration_year") or 0),
            cardholder_name=(data.get("cardholder") or {}).get("name") or "Titular",
            brand=metodo,
        )

    async def detach_card(self, customer_id: str, gateway_card_id: str) -> None:
        if self.client is None:
            return
        await self.client.delete_customer_card(customer_id, gateway_card_id)

    async def charge_with_saved_card(
        self,
        saved_card: SavedCard,
        amount: Decimal,
        order: OrderData,
        user: UserData,
        security_code: Optional[str] = None,
    ) -> PaymentResult:
        if self.client is None:
            return PaymentResult.falha("MercadoPago não configurado", "GATEWAY_NOT_CONFIGURED")
        if not security_code:
            return PaymentResult.falha("Informe o código de segurança do cartão", "CVV_REQUIRED")

        try:
            token = await self.client.create_card_token({
                "card_id": saved_card.gateway_card_id,
                "security_code": security_code,
            })
            pagamento = await self.client.create_payment(
                {
                    "transaction_amount": float(amount),
                    "token": token,
                    "description": order.descricao,
                    "installments": 1,
                    "payment_method_id": saved_card.brand,
                    "external_reference": str(order.id),
                    "payer": {"type": "customer", "id": saved_card.gateway_customer_id, "email": user.email},
                    "metadata": {"order_id": order.id},
                },
                idempotency_key=order.chave_idempotencia(f"saved:{saved_card.id}"),
            )
        except httpx.TimeoutException:
            return PaymentResult.timeout(self.display_name)
        except MercadoPagoError as e:
            logger.error("[MercadoPago] Erro no pagamento com cartão salvo do pedido %s: %s", order.id, e.mensagem)
            return PaymentResult.falha(e.mensagem, "PAYMENT_FAILED")
        except httpx.HTTPError as e:
            logger.error("[MercadoPago] Falha de comunicação no pedido %s: %s", order.id, e)
            return PaymentResult.falha("Erro de comunicação com o Mercado Pago", "GATEWAY_ERROR")

        return self._resultado(pagamento)

    def requires_cvv_for_saved_card(self) -> bool:
        return True
