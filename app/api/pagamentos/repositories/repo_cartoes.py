from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from app.api.pagamentos.models.model_cartao_salvo import CartaoSalvoModel
from app.api.pagamentos.models.model_cliente_gateway import ClienteGatewayModel


class CartaoRepository:
    def __init__(self, db: Session):
        self.db = db

    # ------------- Cartões -------------
    def list_by_cliente(self, cliente_id: int) -> list[CartaoSalvoModel]:
        return (
            self.db.query(CartaoSalvoModel)
            .filter(CartaoSalvoModel.cliente_id == cliente_id)
            .order_by(CartaoSalvoModel.padrao.desc(), CartaoSalvoModel.created_at.desc(), CartaoSalvoModel.id.desc())
            .all()
        )

    def get(self, cliente_id: int, cartao_id: int) -> Optional[CartaoSalvoModel]:
        return (
            self.db.query(CartaoSalvoModel)
            .filter(CartaoSalvoModel.id == cartao_id, CartaoSalvoModel.cliente_id == cliente_id)
            .first()
        )

    def count_by_cliente(self, cliente_id: int) -> int:
        return self.db.query(CartaoSalvoModel).filter(CartaoSalvoModel.cliente_id == cliente_id).count()

    def mais_recente(self, cliente_id: int) -> Optional[CartaoSalvoModel]:
        return (
            self.db.query(CartaoSalvoModel)
            .filter(CartaoSalvoModel.cliente_id == cliente_id)
            .order_by(CartaoSalvoModel.created_at.desc(), CartaoSalvoModel.id.desc())
            .first()
        )

    def desmarcar_padrao(self, cliente_id: int) -> None:
        (
            self.db.query(CartaoSalvoModel)
            .filter(CartaoSalvoModel.cliente_id == cliente_id, CartaoSalvoModel.padrao.is_(True))
            .update({CartaoSalvoModel.padrao: False}, synchronize_session="fetch")
        )

    def add(self, cartao: CartaoSalvoModel) -> CartaoSalvoModel:
        self.db.add(cartao)
        self.db.flush()
        return cartao

    def delete(self, cartao: CartaoSalvoModel) -> None:
        self.db.delete(cartao)
        self.db.flush()

    # ------------- Clientes no provedor -------------
    def get_customer_id(self, cliente_id: int, provider: str) -> Optional[str]:
        registro = (
            self.db.query(ClienteGatewayModel)
            .filter(ClienteGatewayModel.cliente_id == cliente_id, ClienteGatewayModel.provider == provider)
            .first()
        )
        return registro.gateway_customer_id if registro else None

    def add_customer(self, cliente_id: int, provider: str, gateway_customer_id: str) -> ClienteGatewayModel:
        registro = ClienteGatewayModel(cliente_id=cliente_id, provider=provider, gateway_customer_id=gateway_customer_id)
        self.db.add(registro)
        self.db.flush()
        return registro

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
