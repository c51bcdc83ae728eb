from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.api.cadastros.models.model_entregador import EntregadorModel
from app.api.financeiro.models.model_ganho_entregador import GanhoEntregadorModel, TipoGanhoEntregador
from app.api.pedidos.models.model_pedido import PedidoModel, StatusPedido


class GanhoEntregadorRepository:
    def __init__(self, db: Session):
        self.db = db

    # ------------- Queries -------------
    def get_by_pedido(self, pedido_id: int) -> Optional[GanhoEntregadorModel]:
        return self.db.query(GanhoEntregadorModel).filter(GanhoEntregadorModel.pedido_id == pedido_id).first()

    def list_by_entregador(self, entregador_id: int) -> list[GanhoEntregadorModel]:
        return self.db.query(GanhoEntregadorModel).filter(GanhoEntregadorModel.entregador_id == entregador_id).all()

    def list_paginado(
        self,
        entregador_id: int,
        tipo: TipoGanhoEntregador | None,
        inicio: datetime | None,
        fim: datetime | None,
        skip: int,
        limit: int,
    ) -> tuple[list[GanhoEntregadorModel], int]:
        query = self.db.query(GanhoEntregadorModel).filter(GanhoEntregadorModel.entregador_id == entregador_id)
        if tipo is not None:
            query = query.filter(GanhoEntregadorModel.tipo == tipo)
        if inicio is not None:
            query = query.filter(GanhoEntregadorModel.created_at >= inicio)
        if fim is not None:
            query = query.filter(GanhoEntregadorModel.created_at <= fim)

        total = query.with_entities(func.count(GanhoEntregadorModel.id)).scalar() or 0
        itens = (
            query.options(joinedload(GanhoEntregadorModel.pedido))
            .order_by(GanhoEntregadorModel.created_at.desc(), GanhoEntregadorModel.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return itens, total

    def list_periodo(self, entregador_id: int, inicio: datetime, fim: datetime) -> list[GanhoEntregadorModel]:
        return (
            self.db.query(GanhoEntregadorModel)
            .options(joinedload(GanhoEntregadorModel.pedido))
            .filter(
                GanhoEntregadorModel.entregador_id == entregador_id,
                GanhoEntregadorModel.created_at >= inicio,
                GanhoEntregadorModel.created_at <= fim,
            )
            .order_by(GanhoEntregadorModel.created_at.desc(), GanhoEntregadorModel.id.desc())
            .all()
        )

    def totais_por_tipo(self) -> list[tuple[TipoGanhoEntregador, int, Decimal]]:
        linhas = (
            self.db.query(
                GanhoEntregadorModel.tipo,
                func.count(GanhoEntregadorModel.id),
                func.coalesce(func.sum(GanhoEntregadorModel.valor), 0),
            )
            .group_by(GanhoEntregadorModel.tipo)
            .all()
        )
        return [(tipo, int(qtd), Decimal(str(valor))) for tipo, qtd, valor in linhas]

    def ranking(self, limit: int) -> list[tuple[EntregadorModel, Decimal, int]]:
        soma = func.coalesce(func.sum(GanhoEntregadorModel.valor), 0)
        linhas = (
            self.db.query(EntregadorModel, soma.label("total"), func.count(GanhoEntregadorModel.id))
            .join(GanhoEntregadorModel, GanhoEntregadorModel.entregador_id == EntregadorModel.id)
            .group_by(EntregadorModel.id)
            .order_by(soma.desc())
            .limit(limit)
            .all()
        )
        return [(entregador, Decimal(str(total)), int(qtd)) for entregador, total, qtd in linhas]

    def pedidos_entregues_sem_ganho(self) -> list[PedidoModel]:
        return (
            self.db.query(PedidoModel)
            .outerjoin(GanhoEntregadorModel, GanhoEntregadorModel.pedido_id == PedidoModel.id)
            .filter(
                PedidoModel.status == StatusPedido.DELIVERED,
                PedidoModel.entregador_id.isnot(None),
                GanhoEntregadorModel.id.is_(None),
            )
            .order_by(PedidoModel.id)
            .all()
        )

    # ------------- Commands -------------
    def add(self, ganho: GanhoEntregadorModel) -> GanhoEntregadorModel:
        self.db.add(ganho)
        self.db.flush()
        return ganho

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
