from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship

from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed


class CartaoSalvoModel(Base):
    """
    Cartão guardado no provedor. Aqui ficam só a referência do provedor e os dados
    de exibição (final, validade, bandeira); número e CVV nunca são gravados.
    """
    __tablename__ = "cartoes_salvos"
    __table_args__ = (
        UniqueConstraint("provider", "gateway_card_id", name="uq_cartoes_salvos_provider_card"),
        Index("idx_cartoes_salvos_cliente", "cliente_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    cliente_id = Column(Integer, ForeignKey("clientes.id", ondelete="CASCADE"), nullable=False)
    cliente = relationship("ClienteModel")

    provider = Column(String(30), nullable=False)
    gateway_card_id = Column(String(100), nullable=False)
    gateway_customer_id = Column(String(100), nullable=False)

    ultimos_digitos = Column(String(4), nullable=False)
    mes_validade = Column(Integer, nullable=False)
    ano_validade = Column(Integer, nullable=False)
    titular = Column(String(100), nullable=False)
    bandeira = Column(String(30), nullable=False)
    padrao = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), default=now_trimmed, nullable=False)
