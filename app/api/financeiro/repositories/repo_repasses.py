from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.api.financeiro.models.model_conta_bancaria import ContaBancariaModel
from app.api.financeiro.models.model_repasse_restaurante import RepasseRestauranteModel, StatusRepasse


class RepasseRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, repasse_id: int) -> Optional[RepasseRestauranteModel]:
        return self.db.get(RepasseRestauranteModel, repasse_id)

    def add(self, repasse: RepasseRestauranteModel) -> RepasseRestauranteModel:
        self.db.add(repasse)
        self.db.flush()
        return repasse

    def list_paginado(
        self, restaurante_id: int | None, status: StatusRepasse | None, skip: int, limit: int, mais_antigos_primeiro=False
    ) -> tuple[list[RepasseRestauranteModel], int]:
        query = self.db.query(RepasseRestauranteModel)
        if restaurante_id is not None:
            query = query.filter(RepasseRestauranteModel.restaurante_id == restaurante_id)
        if status is not None:
            query = query.filter(RepasseRestauranteModel.status == status)

        total = query.with_entities(func.count(RepasseRestauranteModel.id)).scalar() or 0
        ordem = RepasseRestauranteModel.solicitado_em.asc() if mais_antigos_primeiro else RepasseRestauranteModel.solicitado_em.desc()
        itens = (
            query.options(joinedload(RepasseRestauranteModel.restaurante))
            .order_by(ordem, RepasseRestauranteModel.id)
            .offset(skip)
            .limit(limit)
            .all()
        )
        return itens, total

    def agregado_por_status(self, status: StatusRepasse) -> tuple[int, Decimal]:
        quantidade, valor = (
            self.db.query(
                func.count(RepasseRestauranteModel.id),
                func.coalesce(func.sum(RepasseRestauranteModel.valor), 0),
            )
            .filter(RepasseRestauranteModel.status == status)
            .one()
        )
        return int(quantidade or 0), Decimal(str(valor))

    # ---------------- Conta bancária ----------------
    def get_conta_bancaria(self, restaurante_id: int) -> Optional[ContaBancariaModel]:
        return (
            self.db.query(ContaBancariaModel)
            .filter(ContaBancariaModel.restaurante_id == restaurante_id)
            .first()
        )

    def add_conta_bancaria(self, conta: ContaBancariaModel) -> ContaBancariaModel:
        self.db.add(conta)
        self.db.flush()
        return conta

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
