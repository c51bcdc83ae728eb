import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric, Enum as SAEnum, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed


class TipoGanhoEntregador(str, enum.Enum):
    DELIVERY = "DELIVERY"
    BONUS = "BONUS"
    TIP = "TIP"


class GanhoEntregadorModel(Base):
    """
    Lançamento do entregador. Entregas referenciam o pedido (no máximo um por pedido);
    bônus e gorjetas ficam sem pedido vinculado.
    """
    __tablename__ = "ganhos_entregadores"
    __table_args__ = (
        UniqueConstraint("pedido_id", name="uq_ganhos_entregadores_pedido"),
        Index("idx_ganhos_entregadores_entregador_data", "entregador_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    entregador_id = Column(Integer, ForeignKey("entregadores.id", ondelete="RESTRICT"), nullable=False)
    pedido_id = Column(Integer, ForeignKey("pedidos.id", ondelete="RESTRICT"), nullable=True)

    valor = Column(Numeric(18, 4), nullable=False)
    tipo = Column(SAEnum(TipoGanhoEntregador, name="ganho_entregador_tipo_enum"), nullable=False)
    descricao = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=now_trimmed)

    entregador = relationship("EntregadorModel", lazy="select")
    pedido = relationship("PedidoModel", lazy="select")
