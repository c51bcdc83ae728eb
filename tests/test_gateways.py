import asyncio
import hashlib
import hmac
import json
import time
from decimal import Decimal

import httpx

from app.api.pagamentos.contracts.gateway_contract import (
    GatewayConfig,
    OrderData,
    PaymentData,
    UserData,
    WebhookAction,
)
from app.api.pagamentos.gateways.mercadopago_gateway import MercadoPagoGateway
from app.api.pagamentos.gateways.pagseguro_gateway import PagSeguroGateway
from app.api.pagamentos.gateways.stripe_gateway import StripeGateway
from app.api.pedidos.models.model_pedido import StatusPagamento

ORDER = OrderData(
    id=7, numero="241019000777", cliente_id=1, restaurante_id=2,
    restaurante_nome="Cantina da Praça", restaurante_cidade="Campinas",
)
USER = UserData(id=10, email="maria@teste.com", name="Maria Souza", document="12345678909", document_type="CPF")


def _mercadopago(handler, webhook_secret=None) -> MercadoPagoGateway:
    gateway = MercadoPagoGateway(transport=httpx.MockTransport(handler), pix_key="pix@delivery.com.br")
    gateway.initialize(GatewayConfig(access_token="TEST-token", webhook_secret=webhook_secret))
    return gateway


def _cobrar(gateway, metodo="CREDIT_CARD", card_token="tok_abc"):
    async def _run():
        try:
            return await gateway.create_payment(ORDER, Decimal("52.69"), PaymentData(method=metodo, card_token=card_token), USER)
        finally:
            await gateway.close()

    return asyncio.run(_run())


# ───────────────────────────
# Mercado Pago
# ───────────────────────────
def test_mercadopago_cartao_aprovado():
    requisicoes = []

    def handler(request: httpx.Request) -> httpx.Response:
        requisicoes.append(request)
        return httpx.Response(201, json={"id": 123, "status": "approved", "status_detail": "accredited"})

    result = _cobrar(_mercadopago(handler))

    assert result.success
    assert result.status == StatusPagamento.PAID
    assert result.payment_id == "123"
    corpo = json.loads(requisicoes[0].content)
    assert requisicoes[0].url.path == "/v1/payments"
    assert requisicoes[0].headers["X-Idempotency-Key"] == ORDER.chave_idempotencia("token:tok_abc")
    assert corpo["external_reference"] == "7"
    assert corpo["transaction_amount"] == 52.69
    assert corpo["payer"]["identification"] == {"type": "CPF", "number": "12345678909"}


def test_mercadopago_cartao_recusado():
    def handler(request):
        return httpx.Response(
            201, json={"id": 124, "status": "rejected", "status_detail": "cc_rejected_insufficient_amount"}
        )

    result = _cobrar(_mercadopago(handler))

    assert not result.success
    assert result.status == StatusPagamento.FAILED
    assert result.error == "Saldo insuficiente"
    assert result.error_code == "cc_rejected_insufficient_amount"
    assert result.payment_id == "124"


def test_mercadopago_timeout_fica_pendente():
    def handler(request):
        raise httpx.ReadTimeout("tempo esgotado", request=request)

    result = _cobrar(_mercadopago(handler))

    assert not result.success
    assert result.status == StatusPagamento.PENDING
    assert result.error_code == "GATEWAY_TIMEOUT"


def test_mercadopago_chave_de_idempotencia_por_cartao_e_tentativa():
    chaves = []

    def handler(request):
        chaves.append(request.headers["X-Idempotency-Key"])
        return httpx.Response(201, json={"id": 125, "status": "rejected", "status_detail": "cc_rejected_other_reason"})

    gateway = _mercadopago(handler)
    nova_tentativa = OrderData(
        id=7, numero="241019000777", cliente_id=1, restaurante_id=2, restaurante_nome="Cantina da Praça", tentativa=2,
    )

    async def _run():
        try:
            tentativas = [(ORDER, "tok_card_A"), (ORDER, "tok_card_B"), (ORDER, "tok_card_A"), (nova_tentativa, "tok_card_A")]
            for order, token in tentativas:
                dados = PaymentData(method="CREDIT_CARD", card_token=token)
                await gateway.create_payment(order, Decimal("52.69"), dados, USER)
        finally:
            await gateway.close()

    asyncio.run(_run())

    assert chaves[0] != chaves[1]
    # Reenvio da mesma tentativa com o mesmo cartão
    assert chaves[0] == chaves[2]
    assert chaves[3] != chaves[0]
    assert all(chave.startswith("order_7_") for chave in chaves)


def test_mercadopago_sem_token():
    result = _cobrar(_mercadopago(lambda r: httpx.Response(500)), card_token=None)
    assert result.error_code == "MISSING_CARD_TOKEN"


def test_mercadopago_pix():
    def handler(request):
        return httpx.Response(201, json={
            "id": 555,
            "status": "pending",
            "point_of_interaction": {"transaction_data": {"qr_code": "00020101...", "qr_code_base64": "iVBOR"}},
        })

    result = _cobrar(_mercadopago(handler), metodo="PIX", card_token=None)

    assert result.success
    assert result.status == StatusPagamento.PENDING
    assert result.payment_id == "555"
    assert result.pix_code == "00020101..."
    assert result.pix_qr_code == "data:image/png;base64,iVBOR"


def test_mercadopago_pix_indisponivel_gera_pix_local():
    def handler(request):
        return httpx.Response(500, json={"message": "internal_error"})

    result = _cobrar(_mercadopago(handler), metodo="PIX", card_token=None)

    assert result.success
    assert result.payment_id == "pix_7"
    assert result.metadata["gateway"] == "pix_local"


def test_mercadopago_nao_configurado():
    gateway = MercadoPagoGateway()
    gateway.initialize(GatewayConfig(access_token=None))
    assert not gateway.is_configured()
    assert not gateway.is_enabled()


def _assinatura_mp(segredo, data_id, request_id, ts):
    manifesto = f"id:{data_id};request-id:{request_id};ts:{ts};"
    return hmac.new(segredo.encode(), manifesto.encode(), hashlib.sha256).hexdigest()


def test_mercadopago_webhook_assinado():
    def handler(request):
        assert request.url.path == "/v1/payments/123"
        return httpx.Response(200, json={
            "id": 123, "status": "approved", "external_reference": "7", "metadata": {"order_id": 7},
        })

    gateway = _mercadopago(handler, webhook_secret="segredo-mp")
    payload = {"type": "payment", "data": {"id": "123"}}
    headers = {
        "x-signature": f"ts=1700000000,v1={_assinatura_mp('segredo-mp', '123', 'req-1', '1700000000')}",
        "x-request-id": "req-1",
    }

    result = asyncio.run(gateway.process_webhook(payload, headers, json.dumps(payload).encode()))

    assert result.success
    assert result.order_id == 7
    assert result.payment_id == "123"
    assert result.status == StatusPagamento.PAID
    assert result.action == WebhookAction.PAYMENT_UPDATED


def test_mercadopago_webhook_assinatura_invalida():
    gateway = _mercadopago(lambda r: httpx.Response(500), webhook_secret="segredo-mp")
    payload = {"type": "payment", "data": {"id": "123"}}
    headers = {"x-signature": "ts=1700000000,v1=deadbeef", "x-request-id": "req-1"}

    result = asyncio.run(gateway.process_webhook(payload, headers, b"{}"))

    assert not result.success
    assert result.error == "Assinatura inválida"


def test_mercadopago_webhook_de_outro_tipo():
    gateway = _mercadopago(lambda r: httpx.Response(500))
    result = asyncio.run(gateway.process_webhook({"type": "plan"}, {}, b"{}"))
    assert result.success
    assert result.status is None


# ───────────────────────────
# Stripe
# ───────────────────────────
def _stripe() -> StripeGateway:
    gateway = StripeGateway()
    gateway.initialize(GatewayConfig(secret_key="sk_test_123", webhook_secret="whsec_teste"))
    return gateway


def _assinatura_stripe(segredo: str, corpo: str) -> str:
    ts = int(time.time())
    assinatura = hmac.new(segredo.encode(), f"{ts}.{corpo}".encode(), hashlib.sha256).hexdigest()
    return f"t={ts},v1={assinatura}"


def test_stripe_webhook_pagamento_confirmado():
    evento = {
        "id": "evt_1",
        "object": "event",
        "type": "payment_intent.succeeded",
        "data": {"object": {"id": "pi_1", "object": "payment_intent", "metadata": {"orderId": "7"}}},
    }
    corpo = json.dumps(evento)
    headers = {"stripe-signature": _assinatura_stripe("whsec_teste", corpo)}

    result = asyncio.run(_stripe().process_webhook(evento, headers, corpo.encode()))

    assert result.success
    assert result.order_id == 7
    assert result.payment_id == "pi_1"
    assert result.status == StatusPagamento.PAID


def test_stripe_webhook_estorno_usa_payment_intent():
    evento = {
        "id": "evt_2",
        "object": "event",
        "type": "charge.refunded",
        "data": {"object": {"id": "ch_1", "object": "charge", "payment_intent": "pi_1", "metadata": {"orderId": "7"}}},
    }
    corpo = json.dumps(evento)
    headers = {"stripe-signature": _assinatura_stripe("whsec_teste", corpo)}

    result = asyncio.run(_stripe().process_webhook(evento, headers, corpo.encode()))

    assert result.status == StatusPagamento.REFUNDED
    assert result.payment_id == "pi_1"
    assert result.action == WebhookAction.PAYMENT_REFUNDED


def test_stripe_webhook_assinatura_invalida():
    corpo = json.dumps({"id": "evt_1", "object": "event", "type": "payment_intent.succeeded"})
    headers = {"stripe-signature": _assinatura_stripe("outro_segredo", corpo)}

    result = asyncio.run(_stripe().process_webhook({}, headers, corpo.encode()))

    assert not result.success
    assert result.error == "Assinatura inválida"


def test_stripe_webhook_sem_cabecalho():
    result = asyncio.run(_stripe().process_webhook({}, {}, b"{}"))
    assert not result.success


# ───────────────────────────
# PagSeguro
# ───────────────────────────
def test_pagseguro_webhook_token_de_autenticidade():
    gateway = PagSeguroGateway(transport=httpx.MockTransport(lambda r: httpx.Response(500)))
    gateway.initialize(GatewayConfig(access_token="token-ps", enabled=True))

    payload = {"id": "ORDE_1", "reference_id": "7", "charges": [{"id": "CHAR_1", "status": "PAID"}]}
    corpo = json.dumps(payload).encode()
    token = hashlib.sha256(b"token-ps-" + corpo).hexdigest()

    valido = asyncio.run(gateway.process_webhook(payload, {"x-authenticity-token": token}, corpo))
    invalido = asyncio.run(gateway.process_webhook(payload, {"x-authenticity-token": "x"}, corpo))

    assert valido.success
    assert valido.order_id == 7
    assert valido.payment_id == "CHAR_1"
    assert valido.status == StatusPagamento.PAID
    assert not invalido.success
