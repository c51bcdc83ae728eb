from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint

from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed


class ClienteGatewayModel(Base):
    """Id do cliente em cada provedor (customer do Stripe/Mercado Pago)."""
    __tablename__ = "clientes_gateways"
    __table_args__ = (
        UniqueConstraint("cliente_id", "provider", name="uq_clientes_gateways_cliente_provider"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    cliente_id = Column(Integer, ForeignKey("clientes.id", ondelete="CASCADE"), nullable=False)
    provider = Column(String(30), nullable=False)
    gateway_customer_id = Column(String(100), nullable=False)

    created_at = Column(DateTime(timezone=True), default=now_trimmed, nullable=False)
