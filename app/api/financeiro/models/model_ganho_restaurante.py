import enum

from sqlalchemy import Column, Integer, DateTime, ForeignKey, Numeric, Enum as SAEnum, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed


class StatusGanho(str, enum.Enum):
    PENDING = "PENDING"
    AVAILABLE = "AVAILABLE"
    PAID_OUT = "PAID_OUT"


class GanhoRestauranteModel(Base):
    """
    Valor devido ao restaurante por um pedido entregue.

    Um lançamento por pedido (constraint única). Os valores são gravados uma vez;
    depois disso só `status` e `repasse_id` mudam.
    """
    __tablename__ = "ganhos_restaurantes"
    __table_args__ = (
        UniqueConstraint("pedido_id", name="uq_ganhos_restaurantes_pedido"),
        Index("idx_ganhos_restaurantes_restaurante_status", "restaurante_id", "status"),
        Index("idx_ganhos_restaurantes_disponivel_em", "status", "disponivel_em"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    restaurante_id = Column(Integer, ForeignKey("restaurantes.id", ondelete="RESTRICT"), nullable=False)
    pedido_id = Column(Integer, ForeignKey("pedidos.id", ondelete="RESTRICT"), nullable=False)
    repasse_id = Column(Integer, ForeignKey("repasses_restaurantes.id", ondelete="SET NULL"), nullable=True)

    valor_bruto = Column(Numeric(18, 4), nullable=False)
    taxa_plataforma = Column(Numeric(18, 4), nullable=False)
    taxa_pagamento = Column(Numeric(18, 4), nullable=False)
    valor_liquido = Column(Numeric(18, 4), nullable=False)
    percentual_taxa = Column(Numeric(5, 2), nullable=False)

    disponivel_em = Column(DateTime(timezone=True), nullable=False)
    status = Column(SAEnum(StatusGanho, name="ganho_status_enum"), nullable=False, default=StatusGanho.PENDING)

    created_at = Column(DateTime(timezone=True), nullable=False, default=now_trimmed)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=now_trimmed, onupdate=now_trimmed)

    pedido = relationship("PedidoModel", lazy="select")
    repasse = relationship("RepasseRestauranteModel", back_populates="ganhos")
