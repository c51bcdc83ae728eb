from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum as SAEnum, Index
from sqlalchemy.orm import relationship

from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed
from .model_pedido import StatusPedido


class PedidoHistoricoModel(Base):
    """Histórico de status do pedido (somente inserção)."""
    __tablename__ = "pedidos_historico"
    __table_args__ = (
        Index("idx_pedidos_historico_pedido", "pedido_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    pedido_id = Column(Integer, ForeignKey("pedidos.id", ondelete="CASCADE"), nullable=False)

    status_anterior = Column(SAEnum(StatusPedido, name="pedido_status_enum"), nullable=True)
    status = Column(SAEnum(StatusPedido, name="pedido_status_enum"), nullable=False)
    usuario_id = Column(Integer, nullable=True)
    motivo = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=now_trimmed)

    pedido = relationship("PedidoModel", back_populates="historico")
