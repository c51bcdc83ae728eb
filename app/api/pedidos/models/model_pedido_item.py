from sqlalchemy import Column, Integer, String, ForeignKey, Numeric
from sqlalchemy.orm import relationship

from app.database.db_connection import Base


class PedidoItemModel(Base):
    """Linha do pedido com nome e preço congelados no momento da compra."""
    __tablename__ = "pedidos_itens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    pedido_id = Column(Integer, ForeignKey("pedidos.id", ondelete="CASCADE"), nullable=False)
    item_cardapio_id = Column(Integer, ForeignKey("itens_cardapio.id", ondelete="SET NULL"), nullable=True)

    nome = Column(String(120), nullable=False)
    quantidade = Column(Integer, nullable=False)
    preco_unitario = Column(Numeric(18, 2), nullable=False)
    preco_total = Column(Numeric(18, 2), nullable=False)
    observacao = Column(String(255), nullable=True)

    pedido = relationship("PedidoModel", back_populates="itens")
