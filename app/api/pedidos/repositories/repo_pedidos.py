from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.api.pedidos.models.model_pedido import PedidoModel, StatusPedido
from app.api.pedidos.models.model_pedido_historico import PedidoHistoricoModel
from app.api.pedidos.services.maquina_status import ESTADOS_EM_ROTA


class PedidoRepository:
    def __init__(self, db: Session):
        self.db = db

    # ------------- Queries -------------
    def get_pedido(self, pedido_id: int) -> Optional[PedidoModel]:
        return (
            self.db.query(PedidoModel)
            .options(selectinload(PedidoModel.itens), selectinload(PedidoModel.historico))
            .filter(PedidoModel.id == pedido_id)
            .first()
        )

    def get_by_pagamento(self, gateway: str, pagamento_id: str) -> Optional[PedidoModel]:
        return (
            self.db.query(PedidoModel)
            .filter(PedidoModel.gateway_pagamento == gateway, PedidoModel.pagamento_id == pagamento_id)
            .first()
        )

    def numero_existe(self, numero_pedido: str) -> bool:
        return self.db.query(PedidoModel.id).filter(PedidoModel.numero_pedido == numero_pedido).first() is not None

    def _paginar(self, query, skip: int, limit: int) -> tuple[list[PedidoModel], int]:
        total = query.with_entities(func.count(PedidoModel.id)).scalar() or 0
        itens = (
            query.options(selectinload(PedidoModel.itens), selectinload(PedidoModel.historico))
            .order_by(PedidoModel.created_at.desc(), PedidoModel.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return itens, total

    def list_by_cliente(self, cliente_id: int, skip: int, limit: int) -> tuple[list[PedidoModel], int]:
        query = self.db.query(PedidoModel).filter(PedidoModel.cliente_id == cliente_id)
        return self._paginar(query, skip, limit)

    def list_by_restaurante(
        self, restaurante_id: int, status: StatusPedido | None, skip: int, limit: int
    ) -> tuple[list[PedidoModel], int]:
        query = self.db.query(PedidoModel).filter(PedidoModel.restaurante_id == restaurante_id)
        if status is not None:
            query = query.filter(PedidoModel.status == status)
        return self._paginar(query, skip, limit)

    def list_disponiveis_para_entrega(self, limit: int = 50) -> list[PedidoModel]:
        return (
            self.db.query(PedidoModel)
            .options(selectinload(PedidoModel.itens))
            .filter(PedidoModel.status == StatusPedido.READY, PedidoModel.entregador_id.is_(None))
            .order_by(PedidoModel.pronto_em.asc(), PedidoModel.id.asc())
            .limit(limit)
            .all()
        )

    def get_entrega_atual(self, entregador_id: int) -> Optional[PedidoModel]:
        return (
            self.db.query(PedidoModel)
            .filter(
                PedidoModel.entregador_id == entregador_id,
                PedidoModel.status.in_(ESTADOS_EM_ROTA),
            )
            .order_by(PedidoModel.retirado_em.desc())
            .first()
        )

    def list_entregas_concluidas(self, entregador_id: int, skip: int, limit: int) -> tuple[list[PedidoModel], int]:
        query = self.db.query(PedidoModel).filter(
            PedidoModel.entregador_id == entregador_id,
            PedidoModel.status == StatusPedido.DELIVERED,
        )
        return self._paginar(query, skip, limit)

    # ------------- Commands -------------
    def add(self, pedido: PedidoModel) -> PedidoModel:
        self.db.add(pedido)
        self.db.flush()
        return pedido

    def add_historico(
        self,
        pedido: PedidoModel,
        status_novo: StatusPedido,
        status_anterior: StatusPedido | None = None,
        usuario_id: int | None = None,
        motivo: str | None = None,
        created_at: datetime | None = None,
    ) -> PedidoHistoricoModel:
        historico = PedidoHistoricoModel(
            pedido_id=pedido.id,
            status_anterior=status_anterior,
            status=status_novo,
            usuario_id=usuario_id,
            motivo=motivo,
        )
        if created_at is not None:
            historico.created_at = created_at
        self.db.add(historico)
        return historico

    def atualizar_status_se_atual(self, pedido_id: int, status_atual: StatusPedido, valores: dict) -> bool:
        """UPDATE condicional ao status lido. False quando outra operação alterou o pedido antes."""
        linhas = (
            self.db.query(PedidoModel)
            .filter(PedidoModel.id == pedido_id, PedidoModel.status == status_atual)
            .update(valores, synchronize_session=False)
        )
        return linhas == 1

    def atualizar_pagamento(self, pedido_id: int, valores: dict) -> None:
        self.db.query(PedidoModel).filter(PedidoModel.id == pedido_id).update(valores, synchronize_session=False)

    def vincular_entregador_se_disponivel(self, pedido_id: int, entregador_id: int, agora: datetime) -> bool:
        """
        UPDATE condicional: só vincula se o pedido ainda estiver READY e sem entregador.
        Retorna True quando esta chamada efetivou o vínculo.
        """
        linhas = (
            self.db.query(PedidoModel)
            .filter(
                PedidoModel.id == pedido_id,
                PedidoModel.status == StatusPedido.READY,
                PedidoModel.entregador_id.is_(None),
            )
            .update(
                {
                    PedidoModel.entregador_id: entregador_id,
                    PedidoModel.status: StatusPedido.PICKED_UP,
                    PedidoModel.retirado_em: agora,
                    PedidoModel.updated_at: agora,
                },
                synchronize_session=False,
            )
        )
        return linhas == 1

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

    def refresh(self, pedido: PedidoModel):
        self.db.refresh(pedido)
