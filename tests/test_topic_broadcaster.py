import asyncio
import json

from app.api.notifications.core.topic_broadcaster import TopicBroadcaster
from app.api.notifications.core.ws_events import Topicos, WSEvents
from app.api.notifications.services.pedido_event_publisher import PedidoEventPublisher


class ConexaoFalsa:
    def __init__(self, falha=False):
        self.falha = falha
        self.recebidas = []

    async def send_text(self, data: str) -> None:
        if self.falha:
            raise ConnectionError("socket fechado")
        self.recebidas.append(json.loads(data))


def test_emit_entrega_somente_aos_inscritos():
    async def _run():
        broadcaster = TopicBroadcaster()
        a, b = ConexaoFalsa(), ConexaoFalsa()
        await broadcaster.join(a, "order:1")
        await broadcaster.join(b, "order:2")

        enviados = await broadcaster.emit("order:1", "orderStatusUpdate", {"status": "CONFIRMED"})
        return enviados, a, b

    enviados, a, b = asyncio.run(_run())

    assert enviados == 1
    assert a.recebidas[0]["type"] == "orderStatusUpdate"
    assert a.recebidas[0]["topic"] == "order:1"
    assert a.recebidas[0]["data"] == {"status": "CONFIRMED"}
    assert "timestamp" in a.recebidas[0]
    assert b.recebidas == []


def test_topico_vazio():
    assert asyncio.run(TopicBroadcaster().emit("order:9", "x", {})) == 0


def test_leave_e_leave_all():
    async def _run():
        broadcaster = TopicBroadcaster()
        conexao = ConexaoFalsa()
        await broadcaster.join(conexao, "order:1")
        await broadcaster.join(conexao, "restaurant:1")

        await broadcaster.leave(conexao, "order:1")
        parcial = await broadcaster.topicos_da_conexao(conexao)

        removidos = await broadcaster.leave_all(conexao)
        return parcial, removidos, await broadcaster.stats()

    parcial, removidos, stats = asyncio.run(_run())

    assert parcial == {"restaurant:1"}
    assert removidos == {"restaurant:1"}
    assert stats == {"total_connections": 0, "total_topics": 0, "topics": {}}


def test_conexao_com_falha_e_removida():
    async def _run():
        broadcaster = TopicBroadcaster()
        boa, ruim = ConexaoFalsa(), ConexaoFalsa(falha=True)
        for conexao in (boa, ruim):
            await broadcaster.join(conexao, "drivers:available")
        await broadcaster.join(ruim, "driver:3")

        enviados = await broadcaster.emit("drivers:available", "newAvailableDelivery", {})
        return enviados, await broadcaster.stats()

    enviados, stats = asyncio.run(_run())

    assert enviados == 1
    assert stats["total_connections"] == 1
    assert stats["topics"] == {"drivers:available": 1}


def test_publisher_status_pronto_avisa_entregadores():
    async def _run():
        broadcaster = TopicBroadcaster()
        publisher = PedidoEventPublisher(broadcaster)
        pedido_conexao, entregadores = ConexaoFalsa(), ConexaoFalsa()
        await broadcaster.join(pedido_conexao, Topicos.pedido(5))
        await broadcaster.join(entregadores, Topicos.ENTREGADORES_DISPONIVEIS)

        await publisher.publicar_status({"id": 5, "status": "READY", "restaurante_id": 2, "entregador_id": None})
        return pedido_conexao, entregadores

    pedido_conexao, entregadores = asyncio.run(_run())

    assert pedido_conexao.recebidas[0]["type"] == WSEvents.PEDIDO_STATUS_ATUALIZADO
    assert pedido_conexao.recebidas[0]["data"]["status"] == "READY"
    assert entregadores.recebidas[0]["type"] == WSEvents.ENTREGA_DISPONIVEL


def test_publisher_agenda_no_loop_ativo():
    async def _run():
        broadcaster = TopicBroadcaster()
        publisher = PedidoEventPublisher(broadcaster)
        conexao = ConexaoFalsa()
        await broadcaster.join(conexao, Topicos.restaurante(2))

        publisher.pedido_criado({"id": 8, "restaurante_id": 2})
        await asyncio.gather(*publisher._tasks)
        return conexao

    conexao = asyncio.run(_run())
    assert conexao.recebidas[0]["type"] == WSEvents.PEDIDO_CRIADO


def test_publisher_sem_loop_descarta_evento():
    broadcaster = TopicBroadcaster()
    publisher = PedidoEventPublisher(broadcaster)

    publisher.status_atualizado({"id": 1, "status": "CONFIRMED"})

    assert publisher._tasks == set()
