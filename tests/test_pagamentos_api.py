from conftest import USUARIO_ADMIN, USUARIO_CLIENTE, novo_gateway, token_para

from app.api.financeiro.models.model_ganho_restaurante import GanhoRestauranteModel
from app.api.pagamentos.contracts.gateway_contract import PaymentResult, WebhookAction, WebhookResult
from app.api.pagamentos.models.model_cartao_salvo import CartaoSalvoModel
from app.api.pedidos.models.model_pedido import MetodoPagamento, PedidoModel, StatusPagamento, StatusPedido
from app.config import settings

CLIENTE = token_para(USUARIO_CLIENTE, "customer")
ADMIN = token_para(USUARIO_ADMIN, "admin")


def _processar(client, pedido_id, **extra):
    return client.post("/api/pagamentos/client/processar", json={"pedido_id": pedido_id, **extra}, headers=CLIENTE)


def _pedido(db, pedido_id) -> PedidoModel:
    db.expire_all()
    return db.get(PedidoModel, pedido_id)


# ───────────────────────────
# Métodos disponíveis
# ───────────────────────────
def test_metodos_disponiveis(client, registry, cenario):
    registry.register(novo_gateway("stripe"))

    r = client.get("/api/pagamentos/client/metodos", headers=CLIENTE)

    assert r.status_code == 200
    corpo = r.json()
    assert corpo["hasCardPayment"] is True
    assert corpo["publicKeys"] == {"stripe": "pk_stripe"}
    assert {m["value"] for m in corpo["methods"] if m["available"]} == {"PIX", "CREDIT_CARD", "DEBIT_CARD", "CASH"}


def test_metodos_sem_gateway_de_cartao(client, cenario):
    corpo = client.get("/api/pagamentos/client/metodos", headers=CLIENTE).json()
    assert corpo["hasCardPayment"] is False
    assert corpo["publicKeys"] == {}


# ───────────────────────────
# Processamento
# ───────────────────────────
def test_pagamento_em_dinheiro(client, db, criar_pedido):
    pedido = criar_pedido(metodo=MetodoPagamento.CASH)

    r = _processar(client, pedido.id)

    assert r.status_code == 200
    assert r.json()["gateway"] == "cash"
    assert r.json()["status"] == "PENDING"
    assert _pedido(db, pedido.id).status == StatusPedido.PENDING


def test_pix_sem_gateway_gera_codigo_local(client, db, criar_pedido):
    pedido = criar_pedido()

    r = _processar(client, pedido.id)

    corpo = r.json()
    assert corpo["success"] is True
    assert corpo["gateway"] == "pix_local"
    assert corpo["paymentId"] == f"pix_{pedido.id}"
    assert corpo["pixCode"].startswith("000201")
    assert corpo["pixQrCode"].startswith("data:image/png;base64,")
    assert _pedido(db, pedido.id).pagamento_id == f"pix_{pedido.id}"


def test_cartao_aprovado_avanca_pedido(client, db, registry, criar_pedido):
    stripe = novo_gateway("stripe")
    registry.register(stripe)
    pedido = criar_pedido(metodo=MetodoPagamento.CREDIT_CARD)

    r = _processar(client, pedido.id, card_token="tok_visa")

    assert r.status_code == 200
    assert r.json()["gateway"] == "stripe"
    assert r.json()["status"] == "PAID"
    assert stripe.cobrancas[0][0].id == pedido.id

    atual = _pedido(db, pedido.id)
    assert atual.status == StatusPedido.PAID
    assert atual.status_pagamento == StatusPagamento.PAID
    assert atual.gateway_pagamento == "stripe"
    assert atual.pagamento_id == "stripe_pay_1"


def test_cartao_recusado_mantem_pedido(client, db, registry, criar_pedido):
    registry.register(novo_gateway("stripe", resultado=PaymentResult.falha("Cartão recusado", "card_declined")))
    pedido = criar_pedido(metodo=MetodoPagamento.CREDIT_CARD)

    corpo = _processar(client, pedido.id, card_token="tok_recusado").json()

    assert corpo["success"] is False
    assert corpo["errorCode"] == "card_declined"
    assert _pedido(db, pedido.id).status == StatusPedido.PENDING


def test_nova_tentativa_apos_recusa_usa_outra_chave(client, db, registry, criar_pedido):
    stripe = novo_gateway("stripe", resultado=PaymentResult.falha("Cartão recusado", "card_declined"))
    registry.register(stripe)
    pedido = criar_pedido(metodo=MetodoPagamento.CREDIT_CARD)

    _processar(client, pedido.id, card_token="tok_recusado")
    stripe.resultado = PaymentResult(success=True, status=StatusPagamento.PAID, payment_id="stripe_pay_2")
    r = _processar(client, pedido.id, card_token="tok_aprovado")

    assert r.json()["status"] == "PAID"
    primeira, segunda = stripe.cobrancas[0], stripe.cobrancas[1]
    assert (primeira[0].tentativa, segunda[0].tentativa) == (1, 2)
    assert primeira[0].chave_idempotencia(primeira[2].instrumento) != segunda[0].chave_idempotencia(segunda[2].instrumento)
    assert _pedido(db, pedido.id).pagamento_id == "stripe_pay_2"


def test_reenvio_apos_timeout_repete_a_chave(client, db, registry, criar_pedido):
    stripe = novo_gateway("stripe", resultado=PaymentResult.timeout("Stripe"))
    registry.register(stripe)
    pedido = criar_pedido(metodo=MetodoPagamento.CREDIT_CARD)

    primeira = _processar(client, pedido.id, card_token="tok_visa").json()
    _processar(client, pedido.id, card_token="tok_visa")

    assert primeira["errorCode"] == "GATEWAY_TIMEOUT"
    chaves = {order.chave_idempotencia(dados.instrumento) for order, _, dados in stripe.cobrancas}
    assert len(chaves) == 1
    assert _pedido(db, pedido.id).status_pagamento == StatusPagamento.PENDING


def test_cartao_sem_gateway_nao_troca_metodo(client, db, criar_pedido):
    pedido = criar_pedido(metodo=MetodoPagamento.CREDIT_CARD)

    corpo = _processar(client, pedido.id, card_token="tok_visa").json()

    assert corpo["success"] is False
    assert corpo["errorCode"] == "METHOD_UNAVAILABLE"
    atual = _pedido(db, pedido.id)
    assert atual.metodo_pagamento == MetodoPagamento.CREDIT_CARD
    assert atual.gateway_pagamento is None


def test_pedido_ja_pago(client, registry, criar_pedido):
    registry.register(novo_gateway("stripe"))
    pedido = criar_pedido(metodo=MetodoPagamento.CREDIT_CARD)
    _processar(client, pedido.id, card_token="tok_visa")

    r = _processar(client, pedido.id, card_token="tok_visa")
    assert r.status_code == 409


def test_pedido_de_outro_cliente(client, db, criar_pedido):
    from app.api.cadastros.models.model_cliente import ClienteModel

    db.add(ClienteModel(user_id=11, nome="Ana", email="ana@teste.com"))
    db.commit()
    pedido = criar_pedido()

    r = client.post(
        "/api/pagamentos/client/processar", json={"pedido_id": pedido.id}, headers=token_para(11, "customer")
    )
    assert r.status_code == 403


# ───────────────────────────
# Cartões salvos
# ───────────────────────────
def test_ciclo_de_vida_do_cartao(client, db, registry, cenario):
    stripe = novo_gateway("stripe")
    registry.register(stripe)

    r = client.post("/api/pagamentos/client/cartoes", json={"card_token": "tok_1"}, headers=CLIENTE)
    assert r.status_code == 201, r.text
    primeiro = r.json()
    assert primeiro["padrao"] is True
    assert primeiro["ultimos_digitos"] == "4242"
    assert primeiro["requires_cvv"] is False

    segundo = client.post("/api/pagamentos/client/cartoes", json={"card_token": "tok_2"}, headers=CLIENTE).json()
    assert segundo["padrao"] is False

    r = client.put(f"/api/pagamentos/client/cartoes/{segundo['id']}/padrao", headers=CLIENTE)
    assert r.json()["padrao"] is True

    cartoes = client.get("/api/pagamentos/client/cartoes", headers=CLIENTE).json()
    assert [c["padrao"] for c in sorted(cartoes, key=lambda c: c["id"])] == [False, True]

    r = client.delete(f"/api/pagamentos/client/cartoes/{segundo['id']}", headers=CLIENTE)
    assert r.status_code == 204
    assert stripe.removidos == ["card_tok_2"]

    db.expire_all()
    restante = db.query(CartaoSalvoModel).all()
    assert len(restante) == 1
    assert restante[0].padrao is True


def test_salvar_cartao_sem_gateway(client, cenario):
    r = client.post("/api/pagamentos/client/cartoes", json={"card_token": "tok_1"}, headers=CLIENTE)
    assert r.status_code == 400


# ───────────────────────────
# Webhooks
# ───────────────────────────
def test_webhook_confirma_pagamento(client, db, registry, criar_pedido):
    stripe = novo_gateway("stripe")
    registry.register(stripe)
    pedido = criar_pedido(metodo=MetodoPagamento.CREDIT_CARD)
    stripe.webhook = WebhookResult(
        success=True,
        action=WebhookAction.PAYMENT_UPDATED,
        order_id=pedido.id,
        payment_id="pi_9",
        status=StatusPagamento.PAID,
    )

    r = client.post("/api/pagamentos/public/webhook/stripe", json={"id": "evt_1"})
    assert r.status_code == 200
    assert r.json() == {"status": "processed", "orderId": pedido.id, "paymentStatus": "PAID"}
    assert _pedido(db, pedido.id).status == StatusPedido.PAID

    repetido = client.post("/api/pagamentos/public/webhook/stripe", json={"id": "evt_1"})
    assert repetido.json() == {"status": "ignored", "reason": "already_processed"}


def _entregue_sem_pagamento(pedido_service, criar_pedido):
    pedido = criar_pedido()
    for status in (
        StatusPedido.CONFIRMED,
        StatusPedido.PREPARING,
        StatusPedido.READY,
        StatusPedido.OUT_FOR_DELIVERY,
        StatusPedido.DELIVERED,
    ):
        pedido_service.atualizar_status(pedido.id, status)
    return pedido


def test_pagamento_confirmado_apos_entrega_gera_ganho(client, db, registry, pedido_service, criar_pedido):
    mercadopago = novo_gateway("mercadopago")
    registry.register(mercadopago)
    pedido = _entregue_sem_pagamento(pedido_service, criar_pedido)
    assert db.query(GanhoRestauranteModel).filter_by(pedido_id=pedido.id).count() == 0

    mercadopago.webhook = WebhookResult(
        success=True, order_id=pedido.id, payment_id="mp_55", status=StatusPagamento.PAID
    )
    r = client.post("/api/pagamentos/public/webhook/mercadopago", json={"type": "payment", "data": {"id": "mp_55"}})

    assert r.json() == {"status": "processed", "orderId": pedido.id, "paymentStatus": "PAID"}
    assert db.query(GanhoRestauranteModel).filter_by(pedido_id=pedido.id).count() == 1
    assert _pedido(db, pedido.id).status == StatusPedido.DELIVERED


def test_simulacao_apos_entrega_gera_ganho(client, db, pedido_service, criar_pedido, monkeypatch):
    monkeypatch.setattr(settings, "ALLOW_PAYMENT_SIMULATION", True)
    pedido = _entregue_sem_pagamento(pedido_service, criar_pedido)

    r = client.post(f"/api/pagamentos/admin/{pedido.id}/simular", headers=ADMIN)

    assert r.status_code == 200
    assert db.query(GanhoRestauranteModel).filter_by(pedido_id=pedido.id).count() == 1


def test_webhook_atrasado_nao_desfaz_pagamento(client, registry, criar_pedido):
    stripe = novo_gateway("stripe")
    registry.register(stripe)
    pedido = criar_pedido(metodo=MetodoPagamento.CREDIT_CARD)
    _processar(client, pedido.id, card_token="tok_visa")

    stripe.webhook = WebhookResult(success=True, order_id=pedido.id, status=StatusPagamento.FAILED)
    r = client.post("/api/pagamentos/public/webhook/stripe", json={"id": "evt_2"})

    assert r.json() == {"status": "ignored", "reason": "stale_notification"}


def test_webhook_assinatura_invalida_e_ignorado(client, registry):
    registry.register(novo_gateway("stripe"))
    r = client.post("/api/pagamentos/public/webhook/stripe", json={})
    assert r.status_code == 200
    assert r.json()["status"] == "ignored"


def test_webhook_gateway_nao_configurado(client):
    r = client.post("/api/pagamentos/public/webhook/mercadopago", json={"type": "payment"})
    assert r.json() == {"status": "ignored", "reason": "gateway_not_configured"}


def test_webhook_corpo_invalido(client):
    r = client.post(
        "/api/pagamentos/public/webhook/pagseguro",
        content=b"nao-e-json",
        headers={"Content-Type": "application/json"},
    )
    assert r.json() == {"status": "ignored", "reason": "invalid_body"}


def test_webhook_provedor_desconhecido(client):
    r = client.post("/api/pagamentos/public/webhook/paypal", json={})
    assert r.status_code == 422


# ───────────────────────────
# Admin
# ───────────────────────────
def test_estorno_integral(client, db, registry, criar_pedido):
    stripe = novo_gateway("stripe")
    registry.register(stripe)
    pedido = criar_pedido(metodo=MetodoPagamento.CREDIT_CARD)
    _processar(client, pedido.id, card_token="tok_visa")

    r = client.post(f"/api/pagamentos/admin/{pedido.id}/estorno", json={"motivo": "Pedido duplicado"}, headers=ADMIN)

    assert r.status_code == 200, r.text
    assert r.json()["paymentStatus"] == "REFUNDED"
    assert stripe.reembolsos[0].payment_id == "stripe_pay_1"
    assert _pedido(db, pedido.id).status_pagamento == StatusPagamento.REFUNDED


def test_estorno_parcial_mantem_pago(client, db, registry, criar_pedido):
    registry.register(novo_gateway("stripe"))
    pedido = criar_pedido(metodo=MetodoPagamento.CREDIT_CARD)
    _processar(client, pedido.id, card_token="tok_visa")

    r = client.post(f"/api/pagamentos/admin/{pedido.id}/estorno", json={"valor": "10.00"}, headers=ADMIN)

    assert r.json()["paymentStatus"] == "PAID"
    assert _pedido(db, pedido.id).status_pagamento == StatusPagamento.PAID


def test_estorno_de_pix_local_recusado(client, criar_pedido):
    pedido = criar_pedido()
    _processar(client, pedido.id)

    r = client.post(f"/api/pagamentos/admin/{pedido.id}/estorno", headers=ADMIN)
    assert r.status_code == 400


def test_simulacao_desabilitada(client, criar_pedido):
    pedido = criar_pedido()
    r = client.post(f"/api/pagamentos/admin/{pedido.id}/simular", headers=ADMIN)
    assert r.status_code == 403


def test_simulacao_habilitada(client, db, criar_pedido, monkeypatch):
    monkeypatch.setattr(settings, "ALLOW_PAYMENT_SIMULATION", True)
    pedido = criar_pedido()

    r = client.post(f"/api/pagamentos/admin/{pedido.id}/simular", headers=ADMIN)

    assert r.status_code == 200
    atual = _pedido(db, pedido.id)
    assert atual.status_pagamento == StatusPagamento.PAID
    assert atual.status == StatusPedido.PAID


def test_rotas_admin_exigem_admin(client, criar_pedido):
    pedido = criar_pedido()
    r = client.post(f"/api/pagamentos/admin/{pedido.id}/simular", headers=CLIENTE)
    assert r.status_code == 403
