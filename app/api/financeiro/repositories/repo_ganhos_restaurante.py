from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from app.api.financeiro.models.model_ganho_restaurante import GanhoRestauranteModel, StatusGanho
from app.api.pedidos.models.model_pedido import MetodoPagamento, PedidoModel, StatusPagamento, StatusPedido


class GanhoRestauranteRepository:
    def __init__(self, db: Session):
        self.db = db

    # ------------- Queries -------------
    def get_by_pedido(self, pedido_id: int) -> Optional[GanhoRestauranteModel]:
        return self.db.query(GanhoRestauranteModel).filter(GanhoRestauranteModel.pedido_id == pedido_id).first()

    def list_by_restaurante(self, restaurante_id: int) -> list[GanhoRestauranteModel]:
        return (
            self.db.query(GanhoRestauranteModel)
            .filter(GanhoRestauranteModel.restaurante_id == restaurante_id)
            .all()
        )

    def list_paginado(
        self,
        restaurante_id: int,
        status: StatusGanho | None,
        inicio: datetime | None,
        fim: datetime | None,
        skip: int,
        limit: int,
    ) -> tuple[list[GanhoRestauranteModel], int]:
        query = self.db.query(GanhoRestauranteModel).filter(GanhoRestauranteModel.restaurante_id == restaurante_id)
        if status is not None:
            query = query.filter(GanhoRestauranteModel.status == status)
        if inicio is not None:
            query = query.filter(GanhoRestauranteModel.created_at >= inicio)
        if fim is not None:
            query = query.filter(GanhoRestauranteModel.created_at <= fim)

        total = query.with_entities(func.count(GanhoRestauranteModel.id)).scalar() or 0
        itens = (
            query.options(joinedload(GanhoRestauranteModel.pedido))
            .order_by(GanhoRestauranteModel.created_at.desc(), GanhoRestauranteModel.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return itens, total

    def soma_disponivel(self, restaurante_id: int) -> Decimal:
        total = (
            self.db.query(func.coalesce(func.sum(GanhoRestauranteModel.valor_liquido), 0))
            .filter(
                GanhoRestauranteModel.restaurante_id == restaurante_id,
                GanhoRestauranteModel.status == StatusGanho.AVAILABLE,
            )
            .scalar()
        )
        return Decimal(str(total or 0))

    def list_disponiveis_para_repasse(self, restaurante_id: int) -> list[GanhoRestauranteModel]:
        """Ganhos AVAILABLE do mais antigo para o mais novo, travados até o fim da transação."""
        return (
            self.db.query(GanhoRestauranteModel)
            .filter(
                GanhoRestauranteModel.restaurante_id == restaurante_id,
                GanhoRestauranteModel.status == StatusGanho.AVAILABLE,
            )
            .order_by(GanhoRestauranteModel.created_at.asc(), GanhoRestauranteModel.id.asc())
            .with_for_update()
            .all()
        )

    def pedidos_entregues_sem_ganho(self) -> list[PedidoModel]:
        """Pedidos entregues e pagos (ou em dinheiro) que ainda não geraram ganho do restaurante."""
        return (
            self.db.query(PedidoModel)
            .outerjoin(GanhoRestauranteModel, GanhoRestauranteModel.pedido_id == PedidoModel.id)
            .filter(
                PedidoModel.status == StatusPedido.DELIVERED,
                or_(
                    PedidoModel.status_pagamento == StatusPagamento.PAID,
                    PedidoModel.metodo_pagamento == MetodoPagamento.CASH,
                ),
                GanhoRestauranteModel.id.is_(None),
            )
            .order_by(PedidoModel.id)
            .all()
        )

    def totais(self) -> dict:
        bruto, plataforma, pagamento, liquido = self.db.query(
            func.coalesce(func.sum(GanhoRestauranteModel.valor_bruto), 0),
            func.coalesce(func.sum(GanhoRestauranteModel.taxa_plataforma), 0),
            func.coalesce(func.sum(GanhoRestauranteModel.taxa_pagamento), 0),
            func.coalesce(func.sum(GanhoRestauranteModel.valor_liquido), 0),
        ).one()
        return {
            "bruto": Decimal(str(bruto)),
            "plataforma": Decimal(str(plataforma)),
            "pagamento": Decimal(str(pagamento)),
            "liquido": Decimal(str(liquido)),
        }

    # ------------- Commands -------------
    def add(self, ganho: GanhoRestauranteModel) -> GanhoRestauranteModel:
        self.db.add(ganho)
        self.db.flush()
        return ganho

    def liberar_pendentes(self, agora: datetime) -> int:
        return (
            self.db.query(GanhoRestauranteModel)
            .filter(
                GanhoRestauranteModel.status == StatusGanho.PENDING,
                GanhoRestauranteModel.disponivel_em <= agora,
            )
            .update({GanhoRestauranteModel.status: StatusGanho.AVAILABLE}, synchronize_session=False)
        )

    def marcar_pagos(self, ids: list[int], repasse_id: int) -> int:
        return (
            self.db.query(GanhoRestauranteModel)
            .filter(
                GanhoRestauranteModel.id.in_(ids),
                GanhoRestauranteModel.status == StatusGanho.AVAILABLE,
            )
            .update(
                {
                    GanhoRestauranteModel.status: StatusGanho.PAID_OUT,
                    GanhoRestauranteModel.repasse_id: repasse_id,
                },
                synchronize_session=False,
            )
        )

    def reverter_do_repasse(self, repasse_id: int) -> int:
        return (
            self.db.query(GanhoRestauranteModel)
            .filter(
                GanhoRestauranteModel.repasse_id == repasse_id,
                GanhoRestauranteModel.status == StatusGanho.PAID_OUT,
            )
            .update(
                {
                    GanhoRestauranteModel.status: StatusGanho.AVAILABLE,
                    GanhoRestauranteModel.repasse_id: None,
                },
                synchronize_session=False,
            )
        )

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
