# app/api/pedidos/models/model_pedido.py
import enum

from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, Numeric, Enum as SAEnum,
    UniqueConstraint, Index, JSON
)
from sqlalchemy.orm import relationship

from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed


class StatusPedido(str, enum.Enum):
    """Status do pedido. DELIVERED, CANCELLED e REJECTED são terminais."""
    PENDING = "PENDING"
    PAID = "PAID"
    CONFIRMED = "CONFIRMED"
    ACCEPTED = "ACCEPTED"
    PREPARING = "PREPARING"
    READY = "READY"
    PICKED_UP = "PICKED_UP"
    IN_TRANSIT = "IN_TRANSIT"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"


class MetodoPagamento(str, enum.Enum):
    PIX = "PIX"
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    CASH = "CASH"


class StatusPagamento(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


STATUS_DESCRICAO = {
    StatusPedido.PENDING: "Aguardando confirmação",
    StatusPedido.PAID: "Pago",
    StatusPedido.CONFIRMED: "Confirmado",
    StatusPedido.ACCEPTED: "Aceito pelo restaurante",
    StatusPedido.PREPARING: "Em preparo",
    StatusPedido.READY: "Pronto para retirada",
    StatusPedido.PICKED_UP: "Retirado pelo entregador",
    StatusPedido.IN_TRANSIT: "A caminho",
    StatusPedido.OUT_FOR_DELIVERY: "Saiu para entrega",
    StatusPedido.DELIVERED: "Entregue",
    StatusPedido.CANCELLED: "Cancelado",
    StatusPedido.REJECTED: "Recusado pelo restaurante",
}


class PedidoModel(Base):
    """
    Agregado do pedido de delivery.

    Itens, valores e endereço são snapshots gravados na criação; mudanças posteriores
    no cardápio ou no cadastro de endereços não alteram o pedido.
    Invariante: valor_total == subtotal + taxa_entrega - desconto.
    """
    __tablename__ = "pedidos"
    __table_args__ = (
        UniqueConstraint("numero_pedido", name="uq_pedidos_numero"),
        Index("idx_pedidos_cliente", "cliente_id"),
        Index("idx_pedidos_restaurante_status", "restaurante_id", "status"),
        Index("idx_pedidos_entregador_status", "entregador_id", "status"),
        Index("idx_pedidos_pagamento", "gateway_pagamento", "pagamento_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    numero_pedido = Column(String(20), nullable=False)

    cliente_id = Column(Integer, ForeignKey("clientes.id", ondelete="RESTRICT"), nullable=False)
    cliente = relationship("ClienteModel", lazy="select")

    restaurante_id = Column(Integer, ForeignKey("restaurantes.id", ondelete="RESTRICT"), nullable=False)
    restaurante = relationship("RestauranteModel", lazy="select")

    entregador_id = Column(Integer, ForeignKey("entregadores.id", ondelete="SET NULL"), nullable=True)
    entregador = relationship("EntregadorModel", lazy="select")

    status = Column(SAEnum(StatusPedido, name="pedido_status_enum"), nullable=False, default=StatusPedido.PENDING)

    # Valores
    subtotal = Column(Numeric(18, 2), nullable=False, default=0)
    taxa_entrega = Column(Numeric(18, 2), nullable=False, default=0)
    desconto = Column(Numeric(18, 2), nullable=False, default=0)
    valor_total = Column(Numeric(18, 2), nullable=False, default=0)

    # Pagamento
    metodo_pagamento = Column(SAEnum(MetodoPagamento, name="metodo_pagamento_enum"), nullable=False)
    status_pagamento = Column(
        SAEnum(StatusPagamento, name="status_pagamento_enum"), nullable=False, default=StatusPagamento.PENDING
    )
    gateway_pagamento = Column(String(30), nullable=True)
    pagamento_id = Column(String(100), nullable=True)
    # Tentativas concluídas no provedor; compõe a chave de idempotência da próxima
    tentativas_pagamento = Column(Integer, nullable=False, default=0, server_default="0")

    endereco_snapshot = Column(JSON, nullable=False)
    observacoes = Column(String(500), nullable=True)

    # Marcos do ciclo de vida
    confirmado_em = Column(DateTime(timezone=True), nullable=True)
    pronto_em = Column(DateTime(timezone=True), nullable=True)
    retirado_em = Column(DateTime(timezone=True), nullable=True)
    entregue_em = Column(DateTime(timezone=True), nullable=True)
    cancelado_em = Column(DateTime(timezone=True), nullable=True)
    previsao_entrega = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=now_trimmed)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=now_trimmed, onupdate=now_trimmed)

    itens = relationship(
        "PedidoItemModel",
        back_populates="pedido",
        cascade="all, delete-orphan",
        order_by="PedidoItemModel.id",
    )
    historico = relationship(
        "PedidoHistoricoModel",
        back_populates="pedido",
        cascade="all, delete-orphan",
        order_by="PedidoHistoricoModel.id",
    )

    @property
    def status_descricao(self) -> str:
        return STATUS_DESCRICAO.get(self.status, str(self.status))

    def __repr__(self):
        return f"<Pedido {self.numero_pedido} status={self.status}>"
