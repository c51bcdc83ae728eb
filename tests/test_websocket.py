import json

from app.api.notifications.core.topic_broadcaster import topic_broadcaster


def test_ping(client):
    with client.websocket_connect("/ws/pedidos") as ws:
        ws.send_text(json.dumps({"type": "ping"}))
        assert ws.receive_json()["type"] == "pong"


def test_join_order(client):
    with client.websocket_connect("/ws/pedidos") as ws:
        ws.send_text(json.dumps({"type": "joinOrder", "orderId": 1}))
        resposta = ws.receive_json()

    assert resposta["type"] == "joined"
    assert resposta["topics"] == ["order:1"]


def test_join_driver_inclui_entregas_disponiveis(client):
    with client.websocket_connect("/ws/pedidos") as ws:
        ws.send_text(json.dumps({"type": "joinDriver", "driverId": 3}))
        resposta = ws.receive_json()

        ws.send_text(json.dumps({"type": "leaveDriver", "driverId": 3}))
        saida = ws.receive_json()

    assert resposta["topics"] == ["driver:3", "drivers:available"]
    assert saida["type"] == "left"


def test_join_sem_identificador(client):
    with client.websocket_connect("/ws/pedidos") as ws:
        ws.send_text(json.dumps({"type": "joinRestaurant"}))
        erro = ws.receive_json()

    assert erro["type"] == "error"
    assert erro["message"] == "restaurantId é obrigatório"


def test_mensagens_invalidas(client):
    with client.websocket_connect("/ws/pedidos") as ws:
        ws.send_text("isso não é json")
        assert ws.receive_json()["type"] == "error"

        ws.send_text(json.dumps([1, 2, 3]))
        assert ws.receive_json()["type"] == "error"

        ws.send_text(json.dumps({"type": "dance"}))
        erro = ws.receive_json()
        assert erro["type"] == "error"
        assert erro["message"] == "Tipo de mensagem desconhecido: dance"


def test_rastreamento_pelo_socket(client, criar_pedido):
    pedido = criar_pedido()

    with client.websocket_connect("/ws/pedidos") as ws:
        ws.send_text(json.dumps({"type": "getOrderTracking", "orderId": pedido.id}))
        resposta = ws.receive_json()

        ws.send_text(json.dumps({"type": "getOrderTracking", "orderId": 999}))
        nao_encontrado = ws.receive_json()

    assert resposta["type"] == "orderTracking"
    assert resposta["data"]["orderId"] == pedido.id
    assert resposta["data"]["status"] == "PENDING"
    assert nao_encontrado["type"] == "error"


def test_desconexao_remove_inscricoes(client):
    with client.websocket_connect("/ws/pedidos") as ws:
        ws.send_text(json.dumps({"type": "joinOrder", "orderId": 42}))
        ws.receive_json()

    assert "order:42" not in topic_broadcaster._topicos
