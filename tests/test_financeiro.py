from datetime import timedelta
from decimal import Decimal

import pytest
from conftest import USUARIO_ADMIN, USUARIO_RESTAURANTE, token_para
from fastapi import HTTPException

from app.api.configuracoes.services.service_configuracoes import ConfiguracaoService
from app.api.financeiro.models.model_conta_bancaria import ContaBancariaModel, TipoConta
from app.api.financeiro.models.model_ganho_restaurante import GanhoRestauranteModel, StatusGanho
from app.api.financeiro.models.model_repasse_restaurante import RepasseRestauranteModel, StatusRepasse
from app.api.financeiro.services.service_financeiro_entregador import (
    FinanceiroEntregadorService,
    calcular_comissao,
)
from app.api.financeiro.services.service_financeiro_restaurante import (
    FinanceiroRestauranteService,
    calcular_ganho,
)
from app.utils.database_utils import now_trimmed

RESTAURANTE = token_para(USUARIO_RESTAURANTE, "restaurant")
ADMIN = token_para(USUARIO_ADMIN, "admin")


@pytest.fixture
def financeiro(db):
    return FinanceiroRestauranteService(db, ConfiguracaoService(db))


def _conta_bancaria(db, restaurante_id):
    db.add(ContaBancariaModel(
        restaurante_id=restaurante_id,
        titular_nome="Cantina da Praça LTDA",
        titular_documento="12345678000190",
        banco_codigo="341",
        banco_nome="Itaú",
        tipo_conta=TipoConta.CHECKING,
        agencia="0001",
        conta_numero="12345",
        conta_digito="6",
        chave_pix="financeiro@cantina.com.br",
    ))
    db.commit()


def _ganhos_liberados(db, financeiro, criar_pedido, quantidade=2):
    """Cria ganhos para `quantidade` pedidos com a carência já vencida."""
    ganhos = []
    for _ in range(quantidade):
        pedido = criar_pedido()
        ganhos.append(financeiro.criar_ganho(pedido.id))
    for ganho in ganhos:
        ganho.disponivel_em = now_trimmed() - timedelta(days=1)
    db.commit()
    return ganhos


# ───────────────────────────
# Cálculos
# ───────────────────────────
def test_calcular_ganho():
    valores = calcular_ganho(Decimal("46.70"), 15, 3.5)

    assert valores["valor_bruto"] == Decimal("46.70")
    assert valores["taxa_plataforma"] == Decimal("7.0050")
    assert valores["taxa_pagamento"] == Decimal("1.6345")
    assert valores["valor_liquido"] == Decimal("38.0605")


def test_calcular_comissao():
    assert calcular_comissao(Decimal("5.99"), 80) == Decimal("4.7920")


def test_criar_ganho_e_idempotente(db, financeiro, criar_pedido):
    pedido = criar_pedido()

    primeiro = financeiro.criar_ganho(pedido.id)
    segundo = financeiro.criar_ganho(pedido.id)

    assert primeiro.id == segundo.id
    assert primeiro.status == StatusGanho.PENDING
    assert db.query(GanhoRestauranteModel).count() == 1


def test_ganho_de_pedido_inexistente(financeiro):
    with pytest.raises(HTTPException) as exc:
        financeiro.criar_ganho(999)
    assert exc.value.status_code == 404


def test_ganho_do_entregador_sem_entregador(db, criar_pedido):
    pedido = criar_pedido()
    svc = FinanceiroEntregadorService(db, ConfiguracaoService(db))
    assert svc.criar_ganho_entrega(pedido.id) is None


def test_gorjeta_sem_pedido_vinculado(db, cenario, criar_pedido):
    pedido = criar_pedido()
    svc = FinanceiroEntregadorService(db, ConfiguracaoService(db))

    gorjeta = svc.adicionar_gorjeta(cenario.entregador.id, pedido.id, 5)

    assert gorjeta.valor == 5
    assert svc.resumo(cenario.entregador.id)["totalTips"] == 5.0


# ───────────────────────────
# Saldo e repasses
# ───────────────────────────
def test_carencia_libera_saldo(db, financeiro, cenario, criar_pedido):
    pedido = criar_pedido()
    financeiro.criar_ganho(pedido.id)
    assert financeiro.saldo_disponivel(cenario.restaurante.id) == 0

    _ganhos_liberados(db, financeiro, criar_pedido, quantidade=1)
    assert financeiro.saldo_disponivel(cenario.restaurante.id) == Decimal("38.0605")


def test_solicitar_repasse_de_todo_o_saldo(db, financeiro, cenario, criar_pedido):
    _ganhos_liberados(db, financeiro, criar_pedido)
    _conta_bancaria(db, cenario.restaurante.id)

    resposta = financeiro.solicitar_repasse(cenario.restaurante.id)

    assert resposta.success
    assert resposta.valor == pytest.approx(76.121)
    repasse = db.get(RepasseRestauranteModel, resposta.repasse_id)
    assert repasse.quantidade_ganhos == 2
    assert all(g.status == StatusGanho.PAID_OUT for g in db.query(GanhoRestauranteModel).all())
    assert financeiro.saldo_disponivel(cenario.restaurante.id) == 0


def test_repasse_parcial_nao_ultrapassa_o_valor(db, financeiro, cenario, criar_pedido):
    _ganhos_liberados(db, financeiro, criar_pedido)
    _conta_bancaria(db, cenario.restaurante.id)

    resposta = financeiro.solicitar_repasse(cenario.restaurante.id, valor=60)

    assert resposta.valor == pytest.approx(38.0605)
    assert financeiro.saldo_disponivel(cenario.restaurante.id) == Decimal("38.0605")


def test_repasse_desfeito_quando_saldo_muda_no_meio(db, financeiro, cenario, criar_pedido, monkeypatch):
    ganhos = _ganhos_liberados(db, financeiro, criar_pedido)
    _conta_bancaria(db, cenario.restaurante.id)
    marcar_pagos = financeiro.repo_ganhos.marcar_pagos

    def marcar_pagos_concorrente(ids, repasse_id):
        # Outro repasse leva um dos ganhos entre a leitura e a baixa
        db.query(GanhoRestauranteModel).filter(GanhoRestauranteModel.id == ganhos[0].id).update(
            {GanhoRestauranteModel.status: StatusGanho.PAID_OUT}, synchronize_session=False
        )
        return marcar_pagos(ids, repasse_id)

    monkeypatch.setattr(financeiro.repo_ganhos, "marcar_pagos", marcar_pagos_concorrente)

    with pytest.raises(HTTPException) as exc:
        financeiro.solicitar_repasse(cenario.restaurante.id)

    assert exc.value.status_code == 409
    db.expire_all()
    assert db.query(RepasseRestauranteModel).count() == 0
    assert all(g.status == StatusGanho.AVAILABLE for g in db.query(GanhoRestauranteModel).all())
    assert all(g.repasse_id is None for g in db.query(GanhoRestauranteModel).all())


def test_backfill_de_restaurante_cria_ganho_pago_apos_entrega(db, financeiro, criar_pedido):
    from app.api.pedidos.models.model_pedido import PedidoModel, StatusPagamento, StatusPedido

    pago, pendente = criar_pedido(), criar_pedido()
    for pedido in (pago, pendente):
        pedido_db = db.get(PedidoModel, pedido.id)
        pedido_db.status = StatusPedido.DELIVERED
    db.get(PedidoModel, pago.id).status_pagamento = StatusPagamento.PAID
    db.commit()

    resultado = financeiro.backfill()

    assert resultado == {"processed": 1, "created": 1}
    assert [g.pedido_id for g in db.query(GanhoRestauranteModel).all()] == [pago.id]
    assert financeiro.backfill() == {"processed": 0, "created": 0}


def test_repasse_abaixo_do_minimo(db, financeiro, cenario, criar_pedido):
    _ganhos_liberados(db, financeiro, criar_pedido, quantidade=1)
    _conta_bancaria(db, cenario.restaurante.id)

    with pytest.raises(HTTPException) as exc:
        financeiro.solicitar_repasse(cenario.restaurante.id)
    assert exc.value.status_code == 400
    assert "Saldo mínimo" in exc.value.detail


def test_repasse_sem_conta_bancaria(db, financeiro, cenario, criar_pedido):
    _ganhos_liberados(db, financeiro, criar_pedido)

    with pytest.raises(HTTPException) as exc:
        financeiro.solicitar_repasse(cenario.restaurante.id)
    assert exc.value.status_code == 400
    assert db.query(RepasseRestauranteModel).count() == 0
    assert financeiro.saldo_disponivel(cenario.restaurante.id) == Decimal("76.1210")


def test_cancelar_repasse_devolve_ganhos(db, financeiro, cenario, criar_pedido):
    _ganhos_liberados(db, financeiro, criar_pedido)
    _conta_bancaria(db, cenario.restaurante.id)
    resposta = financeiro.solicitar_repasse(cenario.restaurante.id)

    repasse = financeiro.cancelar_repasse(resposta.repasse_id, "Dados bancários incorretos")

    assert repasse.status == StatusRepasse.FAILED
    assert all(g.status == StatusGanho.AVAILABLE for g in db.query(GanhoRestauranteModel).all())
    assert all(g.repasse_id is None for g in db.query(GanhoRestauranteModel).all())

    with pytest.raises(HTTPException):
        financeiro.cancelar_repasse(resposta.repasse_id, "de novo")


def test_processar_repasse(db, financeiro, cenario, criar_pedido):
    _ganhos_liberados(db, financeiro, criar_pedido)
    _conta_bancaria(db, cenario.restaurante.id)
    resposta = financeiro.solicitar_repasse(cenario.restaurante.id)

    repasse = financeiro.processar_repasse(resposta.repasse_id, USUARIO_ADMIN, referencia="E2E123")

    assert repasse.status == StatusRepasse.COMPLETED
    with pytest.raises(HTTPException):
        financeiro.cancelar_repasse(resposta.repasse_id, "tarde demais")


# ───────────────────────────
# HTTP
# ───────────────────────────
def test_rotas_do_restaurante(client, db, financeiro, cenario, criar_pedido):
    _ganhos_liberados(db, financeiro, criar_pedido)
    _conta_bancaria(db, cenario.restaurante.id)

    saldo = client.get("/api/financeiro/restaurante/saldo", headers=RESTAURANTE)
    assert saldo.status_code == 200
    assert saldo.json()["availableBalance"] == pytest.approx(76.121)

    r = client.post("/api/financeiro/restaurante/repasses", headers=RESTAURANTE)
    assert r.status_code == 201, r.text

    repasses = client.get("/api/financeiro/restaurante/repasses", headers=RESTAURANTE).json()
    assert repasses["pagination"]["total"] == 1

    r = client.post(
        f"/api/financeiro/admin/repasses/{repasses['data'][0]['id']}/cancelar",
        json={"motivo": "Conta inválida"},
        headers=ADMIN,
    )
    assert r.status_code == 200
    assert r.json()["status"] == "FAILED"


def test_rotas_admin_exigem_admin(client, cenario):
    r = client.get("/api/financeiro/admin/repasses/pendentes", headers=RESTAURANTE)
    assert r.status_code == 403
