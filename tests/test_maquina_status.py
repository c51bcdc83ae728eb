import pytest
from fastapi import HTTPException

from app.api.pedidos.models.model_pedido import MetodoPagamento, PedidoModel, StatusPagamento, StatusPedido
from app.api.pedidos.services.maquina_status import (
    ESTADOS_TERMINAIS,
    TRANSICOES_VALIDAS,
    pode_transitar,
    validar_transicao,
)

S = StatusPedido


def test_estados_terminais():
    assert ESTADOS_TERMINAIS == {S.DELIVERED, S.CANCELLED, S.REJECTED}
    for estado in ESTADOS_TERMINAIS:
        for destino in StatusPedido:
            assert not pode_transitar(estado, destino)


def test_todos_os_status_tem_linha_na_tabela():
    assert set(TRANSICOES_VALIDAS) == set(StatusPedido)


@pytest.mark.parametrize(
    "origem,destino",
    [
        (S.PENDING, S.PAID),
        (S.PENDING, S.CONFIRMED),
        (S.PAID, S.CONFIRMED),
        (S.CONFIRMED, S.PREPARING),
        (S.CONFIRMED, S.REJECTED),
        (S.PREPARING, S.READY),
        (S.READY, S.PICKED_UP),
        (S.PICKED_UP, S.OUT_FOR_DELIVERY),
        (S.OUT_FOR_DELIVERY, S.DELIVERED),
        (S.IN_TRANSIT, S.DELIVERED),
    ],
)
def test_transicoes_validas(origem, destino):
    validar_transicao(origem, destino)


@pytest.mark.parametrize(
    "origem,destino",
    [
        (S.PENDING, S.DELIVERED),
        (S.PENDING, S.READY),
        (S.PAID, S.PENDING),
        (S.READY, S.PREPARING),
        (S.PICKED_UP, S.CANCELLED),
        (S.DELIVERED, S.CANCELLED),
    ],
)
def test_transicoes_invalidas(origem, destino):
    with pytest.raises(HTTPException) as exc:
        validar_transicao(origem, destino)
    assert exc.value.status_code == 400
    assert f"{origem.value} -> {destino.value}" in exc.value.detail


def test_aceita_valores_em_texto():
    assert pode_transitar("PENDING", "PAID")
    assert not pode_transitar("PENDING", "DELIVERED")


# ───────────────────────────
# Service
# ───────────────────────────
def test_transicao_invalida_nao_altera_pedido(db, criar_pedido, pedido_service):
    pedido = criar_pedido()

    with pytest.raises(HTTPException) as exc:
        pedido_service.atualizar_status(pedido.id, S.DELIVERED)
    assert exc.value.status_code == 400

    db.expire_all()
    modelo = db.get(PedidoModel, pedido.id)
    assert modelo.status == S.PENDING
    assert len(modelo.historico) == 1


def test_historico_registra_cada_transicao(criar_pedido, pedido_service):
    pedido = criar_pedido()

    pedido_service.atualizar_status(pedido.id, S.CONFIRMED, usuario_id=20)
    out = pedido_service.atualizar_status(pedido.id, S.PREPARING, usuario_id=20, motivo="Cozinha iniciou")

    assert out.status == S.PREPARING
    assert out.confirmado_em is not None
    assert [(h.status_anterior, h.status) for h in out.historico] == [
        (None, S.PENDING),
        (S.PENDING, S.CONFIRMED),
        (S.CONFIRMED, S.PREPARING),
    ]
    assert out.historico[-1].motivo == "Cozinha iniciou"


def test_paid_marca_pagamento(criar_pedido, pedido_service):
    pedido = criar_pedido()
    out = pedido_service.atualizar_status(pedido.id, S.PAID)
    assert out.status_pagamento == StatusPagamento.PAID


def test_escrita_condicional_ao_status_lido(db, criar_pedido, pedido_service):
    pedido = criar_pedido()

    # Outra operação já tirou o pedido de PENDING
    assert pedido_service.repo.atualizar_status_se_atual(pedido.id, S.PENDING, {PedidoModel.status: S.CONFIRMED})
    db.commit()

    assert not pedido_service.repo.atualizar_status_se_atual(
        pedido.id, S.PENDING, {PedidoModel.status: S.CANCELLED}
    )
    db.rollback()
    db.expire_all()
    assert db.get(PedidoModel, pedido.id).status == S.CONFIRMED


def test_dinheiro_e_pago_na_entrega(db, criar_pedido, pedido_service, entrega_service, cenario):
    pedido = criar_pedido(metodo=MetodoPagamento.CASH)
    for status in (S.CONFIRMED, S.PREPARING, S.READY):
        pedido_service.atualizar_status(pedido.id, status)
    entrega_service.aceitar_entrega(cenario.entregador.user_id, pedido.id)
    pedido_service.atualizar_status(pedido.id, S.OUT_FOR_DELIVERY)

    out = pedido_service.atualizar_status(pedido.id, S.DELIVERED)

    assert out.status == S.DELIVERED
    assert out.status_pagamento == StatusPagamento.PAID
    assert out.entregue_em is not None
