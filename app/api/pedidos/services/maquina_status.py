"""
Máquina de estados do pedido.

Toda mudança de status passa por `validar_transicao`; arestas fora de
TRANSICOES_VALIDAS são recusadas sem alterar o pedido.
"""
from __future__ import annotations

from fastapi import HTTPException, status

from app.api.pedidos.models.model_pedido import StatusPedido

S = StatusPedido

TRANSICOES_VALIDAS: dict[StatusPedido, frozenset[StatusPedido]] = {
    S.PENDING: frozenset({S.PAID, S.CONFIRMED, S.CANCELLED}),
    S.PAID: frozenset({S.CONFIRMED, S.CANCELLED}),
    S.CONFIRMED: frozenset({S.ACCEPTED, S.PREPARING, S.READY, S.REJECTED, S.CANCELLED}),
    S.ACCEPTED: frozenset({S.PREPARING, S.CANCELLED}),
    S.PREPARING: frozenset({S.READY, S.CANCELLED}),
    S.READY: frozenset({S.PICKED_UP, S.OUT_FOR_DELIVERY, S.CANCELLED}),
    S.PICKED_UP: frozenset({S.IN_TRANSIT, S.OUT_FOR_DELIVERY}),
    S.IN_TRANSIT: frozenset({S.DELIVERED, S.CANCELLED}),
    S.OUT_FOR_DELIVERY: frozenset({S.DELIVERED, S.CANCELLED}),
    S.DELIVERED: frozenset(),
    S.CANCELLED: frozenset(),
    S.REJECTED: frozenset(),
}

ESTADOS_TERMINAIS = frozenset(s for s, destinos in TRANSICOES_VALIDAS.items() if not destinos)

# Status em que o entregador está com o pedido
ESTADOS_EM_ROTA = (S.PICKED_UP, S.IN_TRANSIT, S.OUT_FOR_DELIVERY)

# Coluna de marco preenchida ao entrar em cada status
CAMPO_MARCO = {
    S.CONFIRMED: "confirmado_em",
    S.READY: "pronto_em",
    S.PICKED_UP: "retirado_em",
    S.DELIVERED: "entregue_em",
    S.CANCELLED: "cancelado_em",
    S.REJECTED: "cancelado_em",
}


def pode_transitar(origem: StatusPedido, destino: StatusPedido) -> bool:
    return destino in TRANSICOES_VALIDAS.get(StatusPedido(origem), frozenset())


def validar_transicao(origem: StatusPedido, destino: StatusPedido) -> None:
    origem, destino = StatusPedido(origem), StatusPedido(destino)
    if not pode_transitar(origem, destino):
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST,
            f"Transição de status inválida: {origem.value} -> {destino.value}",
        )
