"""
Publicação dos eventos de pedido/entrega nos tópicos de tempo real.

Os services de pedido são síncronos; os métodos públicos daqui apenas agendam
o envio em background (fire-and-forget). Erros de envio são logados e nunca
chegam a quem alterou o pedido.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine, Dict, Set

from app.api.notifications.core.topic_broadcaster import TopicBroadcaster, topic_broadcaster
from app.api.notifications.core.ws_events import WSEvents, Topicos

logger = logging.getLogger(__name__)


class PedidoEventPublisher:
    def __init__(self, broadcaster: TopicBroadcaster):
        self.broadcaster = broadcaster
        self._tasks: Set[asyncio.Task] = set()

    # ---------------- Agendamento ----------------
    def _agendar(self, coro: Coroutine, descricao: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.warning("[WS] sem event loop ativo, evento descartado: %s", descricao)
            return

        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._finalizar(t, descricao))

    def _finalizar(self, task: asyncio.Task, descricao: str) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        erro = task.exception()
        if erro is not None:
            logger.error("[WS] erro ao publicar %s: %s", descricao, erro, exc_info=erro)

    # ---------------- API síncrona (usada pelos services) ----------------
    def pedido_criado(self, pedido: Dict[str, Any]) -> None:
        self._agendar(self.publicar_pedido_criado(pedido), f"pedido criado {pedido.get('id')}")

    def status_atualizado(self, pedido: Dict[str, Any]) -> None:
        self._agendar(self.publicar_status(pedido), f"status {pedido.get('id')} -> {pedido.get('status')}")

    def entrega_aceita(self, pedido: Dict[str, Any]) -> None:
        self._agendar(self.publicar_entrega_aceita(pedido), f"entrega aceita {pedido.get('id')}")

    def localizacao_entregador(self, pedido_id: int, localizacao: Dict[str, Any]) -> None:
        self._agendar(
            self.publicar_localizacao(pedido_id, localizacao),
            f"localização do pedido {pedido_id}",
        )

    # ---------------- Coroutines ----------------
    async def publicar_pedido_criado(self, pedido: Dict[str, Any]) -> None:
        await self.broadcaster.emit(
            Topicos.restaurante(pedido["restaurante_id"]),
            WSEvents.PEDIDO_CRIADO,
            {"pedido": pedido},
        )

    async def publicar_status(self, pedido: Dict[str, Any]) -> None:
        dados = {"pedido_id": pedido["id"], "status": pedido["status"], "pedido": pedido}

        await self.broadcaster.emit(Topicos.pedido(pedido["id"]), WSEvents.PEDIDO_STATUS_ATUALIZADO, dados)
        if pedido.get("restaurante_id") is not None:
            await self.broadcaster.emit(
                Topicos.restaurante(pedido["restaurante_id"]), WSEvents.PEDIDO_STATUS_ATUALIZADO, dados
            )
        if pedido.get("entregador_id") is not None:
            await self.broadcaster.emit(
                Topicos.entregador(pedido["entregador_id"]), WSEvents.PEDIDO_STATUS_ATUALIZADO, dados
            )

        if pedido["status"] == "READY" and pedido.get("entregador_id") is None:
            await self.broadcaster.emit(
                Topicos.ENTREGADORES_DISPONIVEIS, WSEvents.ENTREGA_DISPONIVEL, {"pedido": pedido}
            )

    async def publicar_entrega_aceita(self, pedido: Dict[str, Any]) -> None:
        await self.publicar_status(pedido)
        await self.broadcaster.emit(
            Topicos.ENTREGADORES_DISPONIVEIS,
            WSEvents.ENTREGA_ACEITA,
            {"pedido_id": pedido["id"]},
        )

    async def publicar_localizacao(self, pedido_id: int, localizacao: Dict[str, Any]) -> None:
        await self.broadcaster.emit(
            Topicos.pedido(pedido_id),
            WSEvents.ENTREGADOR_LOCALIZACAO,
            {"pedido_id": pedido_id, **localizacao},
        )


pedido_event_publisher = PedidoEventPublisher(topic_broadcaster)


def get_pedido_event_publisher() -> PedidoEventPublisher:
    return pedido_event_publisher
