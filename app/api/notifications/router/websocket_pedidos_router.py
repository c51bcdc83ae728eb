import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect

from app.api.notifications.core.topic_broadcaster import TopicBroadcaster, topic_broadcaster
from app.api.notifications.core.ws_events import Topicos
from app.api.notifications.services.pedido_event_publisher import (
    PedidoEventPublisher,
    get_pedido_event_publisher,
)
from app.api.pedidos.services.dependencies import get_pedido_service
from app.api.pedidos.services.service_pedido import PedidoService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["websocket"])


def get_topic_broadcaster() -> TopicBroadcaster:
    return topic_broadcaster


# tipo da mensagem -> (campo do id, função do tópico)
INSCRICOES = {
    "joinOrder": ("orderId", Topicos.pedido),
    "leaveOrder": ("orderId", Topicos.pedido),
    "joinRestaurant": ("restaurantId", Topicos.restaurante),
    "leaveRestaurant": ("restaurantId", Topicos.restaurante),
    "joinDriver": ("driverId", Topicos.entregador),
    "leaveDriver": ("driverId", Topicos.entregador),
}


async def _enviar(websocket: WebSocket, tipo: str, **dados: Any) -> None:
    mensagem = {"type": tipo, **dados, "timestamp": datetime.now(timezone.utc).isoformat()}
    await websocket.send_text(json.dumps(mensagem, default=str))


@router.websocket("/pedidos")
async def websocket_pedidos(
    websocket: WebSocket,
    broadcaster: TopicBroadcaster = Depends(get_topic_broadcaster),
    eventos: PedidoEventPublisher = Depends(get_pedido_event_publisher),
    svc: PedidoService = Depends(get_pedido_service),
):
    """
    Canal de tempo real de pedidos.

    O cliente entra nos tópicos que quer acompanhar (pedido, restaurante,
    entregador) e passa a receber os eventos publicados neles.
    """
    await websocket.accept()
    logger.info("[WS] conexão %s aberta", id(websocket))
    try:
        while True:
            texto = await websocket.receive_text()
            try:
                mensagem = json.loads(texto)
            except ValueError:
                await _enviar(websocket, "error", message="Formato de mensagem inválido")
                continue
            if not isinstance(mensagem, dict):
                await _enviar(websocket, "error", message="Formato de mensagem inválido")
                continue
            await _tratar_mensagem(websocket, broadcaster, eventos, svc, mensagem)
    except WebSocketDisconnect:
        logger.info("[WS] conexão %s encerrada pelo cliente", id(websocket))
    finally:
        topicos = await broadcaster.leave_all(websocket)
        logger.info("[WS] conexão %s removida de %s tópicos", id(websocket), len(topicos))


async def _tratar_mensagem(
    websocket: WebSocket,
    broadcaster: TopicBroadcaster,
    eventos: PedidoEventPublisher,
    svc: PedidoService,
    mensagem: Dict[str, Any],
) -> None:
    tipo = mensagem.get("type")

    if tipo == "ping":
        await _enviar(websocket, "pong")
        return

    if tipo in INSCRICOES:
        campo, topico_de = INSCRICOES[tipo]
        identificador = mensagem.get(campo)
        if identificador in (None, ""):
            await _enviar(websocket, "error", message=f"{campo} é obrigatório")
            return
        topicos = [topico_de(identificador)]
        if campo == "driverId":
            # Entregador também recebe as entregas disponíveis
            topicos.append(Topicos.ENTREGADORES_DISPONIVEIS)

        entrando = tipo.startswith("join")
        for topico in topicos:
            if entrando:
                await broadcaster.join(websocket, topico)
            else:
                await broadcaster.leave(websocket, topico)
        await _enviar(websocket, "joined" if entrando else "left", topics=topicos)
        return

    if tipo == "updateLocation":
        pedido_id = mensagem.get("orderId")
        latitude, longitude = mensagem.get("latitude"), mensagem.get("longitude")
        if pedido_id is None or latitude is None or longitude is None:
            await _enviar(websocket, "error", message="orderId, latitude e longitude são obrigatórios")
            return
        localizacao = {"latitude": latitude, "longitude": longitude, "driverId": mensagem.get("driverId")}
        await eventos.publicar_localizacao(pedido_id, localizacao)
        await _enviar(websocket, "locationUpdated", orderId=pedido_id)
        return

    if tipo == "getOrderTracking":
        pedido_id = mensagem.get("orderId")
        try:
            svc.db.expire_all()
            rastreamento = svc.get_rastreamento(int(pedido_id))
        except (TypeError, ValueError):
            await _enviar(websocket, "error", message="orderId inválido")
            return
        except HTTPException as e:
            await _enviar(websocket, "error", message=e.detail)
            return
        await _enviar(websocket, "orderTracking", data=rastreamento)
        return

    await _enviar(websocket, "error", message=f"Tipo de mensagem desconhecido: {tipo}")
