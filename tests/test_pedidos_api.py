import pytest
from conftest import (
    ENDERECO,
    USUARIO_ADMIN,
    USUARIO_CLIENTE,
    USUARIO_ENTREGADOR,
    USUARIO_RESTAURANTE,
    token_para,
)
from fastapi import HTTPException

from app.api.financeiro.models.model_ganho_entregador import GanhoEntregadorModel
from app.api.financeiro.models.model_ganho_restaurante import GanhoRestauranteModel
from app.api.pedidos.models.model_pedido import PedidoModel, StatusPedido

CLIENTE = token_para(USUARIO_CLIENTE, "customer")
RESTAURANTE = token_para(USUARIO_RESTAURANTE, "restaurant")
ENTREGADOR = token_para(USUARIO_ENTREGADOR, "driver")
ADMIN = token_para(USUARIO_ADMIN, "admin")


def _criar(client, cenario, quantidade=2, metodo="PIX", **extra):
    payload = {
        "restaurante_id": cenario.restaurante.id,
        "itens": [{"item_cardapio_id": cenario.lasanha.id, "quantidade": quantidade}],
        "endereco_entrega": ENDERECO,
        "metodo_pagamento": metodo,
        **extra,
    }
    return client.post("/api/pedidos/client", json=payload, headers=CLIENTE)


def _status(client, pedido_id, status, headers=RESTAURANTE):
    return client.put(
        f"/api/pedidos/restaurante/{pedido_id}/status", json={"status": status}, headers=headers
    )


def _ate_pronto(client, pedido_id):
    for status in ("CONFIRMED", "PREPARING", "READY"):
        assert _status(client, pedido_id, status).status_code == 200


# ───────────────────────────
# Autenticação
# ───────────────────────────
def test_sem_token(client):
    r = client.get("/api/pedidos/client")
    assert r.status_code == 401


def test_tipo_de_usuario_errado(client, cenario):
    r = client.get("/api/pedidos/restaurante", headers=CLIENTE)
    assert r.status_code == 403


# ───────────────────────────
# Criação
# ───────────────────────────
def test_criar_pedido_calcula_totais(client, cenario):
    r = _criar(client, cenario, observacoes="Sem cebola", cupom="PROMO10")
    assert r.status_code == 201, r.text

    pedido = r.json()
    assert pedido["status"] == "PENDING"
    assert pedido["status_pagamento"] == "PENDING"
    assert pedido["subtotal"] == 46.70
    assert pedido["taxa_entrega"] == 5.99
    assert pedido["desconto"] == 0
    assert pedido["valor_total"] == 52.69
    assert pedido["endereco_snapshot"]["cidade"] == "Campinas"
    assert pedido["observacoes"] == "Sem cebola [cupom: PROMO10]"
    assert len(pedido["numero_pedido"]) == 12
    assert pedido["itens"][0]["nome"] == "Lasanha"
    assert pedido["itens"][0]["preco_unitario"] == 23.35
    assert [h["status"] for h in pedido["historico"]] == ["PENDING"]


def test_criar_pedido_item_indisponivel(client, cenario):
    payload = {
        "restaurante_id": cenario.restaurante.id,
        "itens": [{"item_cardapio_id": cenario.suco.id, "quantidade": 2}],
        "endereco_entrega": ENDERECO,
        "metodo_pagamento": "PIX",
    }
    r = client.post("/api/pedidos/client", json=payload, headers=CLIENTE)
    assert r.status_code == 400
    assert "indisponível" in r.json()["detail"]


def test_criar_pedido_abaixo_do_minimo(client, db, cenario):
    # 1 x 23,35 passa; o mínimo do restaurante é 10,00
    assert _criar(client, cenario, quantidade=1).status_code == 201

    cenario.restaurante.pedido_minimo = 30
    db.commit()
    r = _criar(client, cenario, quantidade=1)
    assert r.status_code == 400
    assert "Pedido mínimo" in r.json()["detail"]


def test_criar_pedido_restaurante_fechado(client, db, cenario):
    cenario.restaurante.aberto = False
    db.commit()
    r = _criar(client, cenario)
    assert r.status_code == 400


def test_criar_pedido_sem_endereco(client, cenario):
    payload = {
        "restaurante_id": cenario.restaurante.id,
        "itens": [{"item_cardapio_id": cenario.lasanha.id, "quantidade": 1}],
        "metodo_pagamento": "CASH",
    }
    r = client.post("/api/pedidos/client", json=payload, headers=CLIENTE)
    assert r.status_code == 400


def test_listar_e_consultar(client, cenario):
    pedido = _criar(client, cenario).json()

    lista = client.get("/api/pedidos/client", headers=CLIENTE).json()
    assert lista["meta"]["total"] == 1
    assert lista["data"][0]["id"] == pedido["id"]

    r = client.get(f"/api/pedidos/client/{pedido['id']}", headers=CLIENTE)
    assert r.status_code == 200

    outro_cliente = token_para(777, "customer")
    assert client.get(f"/api/pedidos/client/{pedido['id']}", headers=outro_cliente).status_code == 404


# ───────────────────────────
# Status
# ───────────────────────────
def test_transicao_invalida(client, cenario):
    pedido = _criar(client, cenario).json()

    r = _status(client, pedido["id"], "DELIVERED")
    assert r.status_code == 400
    assert r.json()["detail"] == "Transição de status inválida: PENDING -> DELIVERED"

    atual = client.get(f"/api/pedidos/client/{pedido['id']}", headers=CLIENTE).json()
    assert atual["status"] == "PENDING"


def test_cancelamento_pelo_cliente(client, cenario):
    pedido = _criar(client, cenario).json()

    r = client.post(f"/api/pedidos/client/{pedido['id']}/cancelar", json={"motivo": "Desisti"}, headers=CLIENTE)
    assert r.status_code == 200
    assert r.json()["status"] == "CANCELLED"
    assert r.json()["cancelado_em"] is not None

    # Estado terminal
    assert _status(client, pedido["id"], "CONFIRMED").status_code == 400


def test_cliente_nao_cancela_em_preparo(client, cenario):
    pedido = _criar(client, cenario).json()
    _status(client, pedido["id"], "CONFIRMED")
    _status(client, pedido["id"], "PREPARING")

    r = client.post(f"/api/pedidos/client/{pedido['id']}/cancelar", headers=CLIENTE)
    assert r.status_code == 400


def test_restaurante_so_altera_os_proprios_pedidos(client, db, cenario):
    from app.api.cadastros.models.model_restaurante import RestauranteModel

    db.add(RestauranteModel(owner_user_id=21, nome="Outro", cidade="Campinas"))
    db.commit()
    pedido = _criar(client, cenario).json()

    r = _status(client, pedido["id"], "CONFIRMED", headers=token_para(21, "restaurant"))
    assert r.status_code == 403


def test_admin_altera_status(client, cenario):
    pedido = _criar(client, cenario).json()
    r = client.put(f"/api/pedidos/admin/{pedido['id']}/status", json={"status": "CONFIRMED"}, headers=ADMIN)
    assert r.status_code == 200
    assert r.json()["historico"][-1]["usuario_id"] == USUARIO_ADMIN


# ───────────────────────────
# Entrega
# ───────────────────────────
def test_entregas_disponiveis_e_aceite(client, cenario):
    pedido = _criar(client, cenario).json()
    _ate_pronto(client, pedido["id"])

    disponiveis = client.get("/api/pedidos/entregador/disponiveis", headers=ENTREGADOR).json()
    assert [p["id"] for p in disponiveis] == [pedido["id"]]

    r = client.post(f"/api/pedidos/entregador/{pedido['id']}/aceitar", headers=ENTREGADOR)
    assert r.status_code == 200
    assert r.json()["status"] == "PICKED_UP"
    assert r.json()["entregador_id"] == cenario.entregador.id

    atual = client.get("/api/pedidos/entregador/atual", headers=ENTREGADOR).json()
    assert atual["id"] == pedido["id"]
    assert client.get("/api/pedidos/entregador/disponiveis", headers=ENTREGADOR).json() == []


def test_segundo_aceite_e_recusado(client, db, cenario):
    from app.api.cadastros.models.model_entregador import EntregadorModel

    db.add(EntregadorModel(user_id=31, nome="Carlos", online=True))
    db.commit()
    pedido = _criar(client, cenario).json()
    _ate_pronto(client, pedido["id"])

    primeiro = client.post(f"/api/pedidos/entregador/{pedido['id']}/aceitar", headers=ENTREGADOR)
    segundo = client.post(f"/api/pedidos/entregador/{pedido['id']}/aceitar", headers=token_para(31, "driver"))

    assert primeiro.status_code == 200
    assert segundo.status_code == 409


def _pronto_para_retirada(pedido_service, criar_pedido):
    pedido = criar_pedido()
    for status in (StatusPedido.CONFIRMED, StatusPedido.PREPARING, StatusPedido.READY):
        pedido_service.atualizar_status(pedido.id, status)
    return pedido


def test_aceite_concorrente_vincula_um_entregador(db, cenario, pedido_service, entrega_service, criar_pedido, monkeypatch):
    from app.api.cadastros.models.model_entregador import EntregadorModel

    concorrente = EntregadorModel(user_id=31, nome="Carlos", online=True)
    db.add(concorrente)
    db.commit()
    pedido = _pronto_para_retirada(pedido_service, criar_pedido)
    vincular = entrega_service.repo.vincular_entregador_se_disponivel

    def vincular_depois_do_concorrente(pedido_id, entregador_id, agora):
        # O concorrente grava entre a leitura do pedido e o UPDATE deste aceite
        assert vincular(pedido_id, concorrente.id, agora) is True
        db.commit()
        return vincular(pedido_id, entregador_id, agora)

    monkeypatch.setattr(entrega_service.repo, "vincular_entregador_se_disponivel", vincular_depois_do_concorrente)

    with pytest.raises(HTTPException) as exc:
        entrega_service.aceitar_entrega(USUARIO_ENTREGADOR, pedido.id)

    assert exc.value.status_code == 409
    db.expire_all()
    atual = db.get(PedidoModel, pedido.id)
    assert atual.entregador_id == concorrente.id
    assert atual.status == StatusPedido.PICKED_UP


def test_aceite_com_entregador_ja_vinculado(db, cenario, pedido_service, entrega_service, criar_pedido):
    from app.api.cadastros.models.model_entregador import EntregadorModel

    concorrente = EntregadorModel(user_id=31, nome="Carlos", online=True)
    db.add(concorrente)
    db.commit()
    pedido = _pronto_para_retirada(pedido_service, criar_pedido)
    db.get(PedidoModel, pedido.id).entregador_id = concorrente.id
    db.commit()

    with pytest.raises(HTTPException) as exc:
        entrega_service.aceitar_entrega(USUARIO_ENTREGADOR, pedido.id)

    assert exc.value.status_code == 409
    assert exc.value.detail == "Pedido já possui entregador"
    db.expire_all()
    assert db.get(PedidoModel, pedido.id).entregador_id == concorrente.id


def test_aceite_antes_de_pronto(client, cenario):
    pedido = _criar(client, cenario).json()
    r = client.post(f"/api/pedidos/entregador/{pedido['id']}/aceitar", headers=ENTREGADOR)
    assert r.status_code == 409
    assert r.json()["detail"] == "Pedido não está pronto para retirada"


def test_entregador_offline_nao_aceita(client, cenario):
    pedido = _criar(client, cenario).json()
    _ate_pronto(client, pedido["id"])

    client.put("/api/pedidos/entregador/status-online", json={"online": False}, headers=ENTREGADOR)
    r = client.post(f"/api/pedidos/entregador/{pedido['id']}/aceitar", headers=ENTREGADOR)
    assert r.status_code == 409


def test_entregador_nao_define_status_do_restaurante(client, cenario):
    pedido = _criar(client, cenario).json()
    _ate_pronto(client, pedido["id"])
    client.post(f"/api/pedidos/entregador/{pedido['id']}/aceitar", headers=ENTREGADOR)

    r = client.put(f"/api/pedidos/entregador/{pedido['id']}/status", json={"status": "CANCELLED"}, headers=ENTREGADOR)
    assert r.status_code == 400


def test_localizacao_com_pedido_em_rota(client, cenario):
    pedido = _criar(client, cenario).json()
    _ate_pronto(client, pedido["id"])
    client.post(f"/api/pedidos/entregador/{pedido['id']}/aceitar", headers=ENTREGADOR)

    r = client.post(
        "/api/pedidos/entregador/localizacao",
        json={"latitude": -22.9056, "longitude": -47.0608, "pedido_id": pedido["id"]},
        headers=ENTREGADOR,
    )
    assert r.status_code == 200

    rastreamento = client.get(f"/api/pedidos/public/{pedido['id']}/rastreamento").json()
    assert rastreamento["status"] == "PICKED_UP"
    assert rastreamento["driver"]["name"] == "João Lima"
    assert rastreamento["driver"]["location"]["latitude"] == -22.9056
    assert rastreamento["restaurant"]["name"] == "Cantina da Praça"


def test_entrega_completa_gera_ganhos_uma_vez(client, db, cenario):
    pedido = _criar(client, cenario).json()
    client.put(f"/api/pedidos/admin/{pedido['id']}/status", json={"status": "PAID"}, headers=ADMIN)
    _ate_pronto(client, pedido["id"])
    client.post(f"/api/pedidos/entregador/{pedido['id']}/aceitar", headers=ENTREGADOR)

    for status in ("OUT_FOR_DELIVERY", "DELIVERED"):
        r = client.put(f"/api/pedidos/entregador/{pedido['id']}/status", json={"status": status}, headers=ENTREGADOR)
        assert r.status_code == 200, r.text

    assert r.json()["status"] == "DELIVERED"

    ganhos = db.query(GanhoRestauranteModel).filter_by(pedido_id=pedido["id"]).all()
    assert len(ganhos) == 1
    assert float(ganhos[0].valor_bruto) == 46.70
    assert float(ganhos[0].valor_liquido) == 38.0605

    entregas = db.query(GanhoEntregadorModel).filter_by(pedido_id=pedido["id"]).all()
    assert len(entregas) == 1
    assert float(entregas[0].valor) == 4.792

    # Estado terminal: nada mais muda
    r = client.put(f"/api/pedidos/entregador/{pedido['id']}/status", json={"status": "DELIVERED"}, headers=ENTREGADOR)
    assert r.status_code == 400
    assert db.query(GanhoRestauranteModel).count() == 1
