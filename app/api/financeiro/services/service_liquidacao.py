"""
Liquidação de pedidos entregues.

Chamado pelo contexto de Pedidos depois que a entrega foi gravada. Cada razão
(restaurante e entregador) é gravada em sua própria transação; uma falha em uma
não impede a outra.
"""
from __future__ import annotations

from sqlalchemy.orm import Session

from app.api.configuracoes.contracts.configuracoes_contract import IConfiguracoesContract
from app.api.financeiro.contracts.liquidacao_contract import ILiquidacaoContract
from app.api.financeiro.services.service_financeiro_entregador import FinanceiroEntregadorService
from app.api.financeiro.services.service_financeiro_restaurante import FinanceiroRestauranteService
from app.api.pedidos.models.model_pedido import PedidoModel, MetodoPagamento, StatusPagamento
from app.utils.logger import logger


def pedido_liquidavel(pedido: PedidoModel) -> bool:
    """O restaurante só recebe por pedidos pagos (ou em dinheiro, recebido na entrega)."""
    return (
        pedido.status_pagamento == StatusPagamento.PAID
        or pedido.metodo_pagamento == MetodoPagamento.CASH
    )


class LiquidacaoService(ILiquidacaoContract):
    def __init__(self, db: Session, configuracoes: IConfiguracoesContract):
        self.db = db
        self.restaurante = FinanceiroRestauranteService(db, configuracoes)
        self.entregador = FinanceiroEntregadorService(db, configuracoes)

    def processar_pedido_entregue(self, pedido_id: int) -> None:
        pedido = self.db.get(PedidoModel, pedido_id)
        if pedido is None:
            logger.warning("[Financeiro] Liquidação ignorada: pedido %s não encontrado", pedido_id)
            return

        if pedido_liquidavel(pedido):
            try:
                self.restaurante.criar_ganho(pedido_id)
            except Exception as e:
                self.db.rollback()
                logger.error("[Financeiro] Erro ao criar ganho do restaurante pedido=%s: %s", pedido_id, e)
        else:
            logger.warning(
                "[Financeiro] Pedido %s entregue sem pagamento confirmado (%s); ganho do restaurante não criado",
                pedido_id, pedido.status_pagamento,
            )

        try:
            self.entregador.criar_ganho_entrega(pedido_id)
        except Exception as e:
            self.db.rollback()
            logger.error("[Financeiro] Erro ao criar ganho do entregador pedido=%s: %s", pedido_id, e)
