from sqlalchemy import Column, Integer, String, Boolean, DateTime, Numeric, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed


class RestauranteModel(Base):
    __tablename__ = "restaurantes"
    __table_args__ = (
        Index("idx_restaurantes_owner", "owner_user_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_user_id = Column(Integer, nullable=False)
    nome = Column(String(120), nullable=False)
    slug = Column(String(120), nullable=True, unique=True)

    logradouro = Column(String(100), nullable=True)
    numero = Column(String(10), nullable=True)
    bairro = Column(String(50), nullable=True)
    cidade = Column(String(50), nullable=False)
    estado = Column(String(2), nullable=True)
    latitude = Column(Numeric(10, 6), nullable=True)
    longitude = Column(Numeric(10, 6), nullable=True)

    aberto = Column(Boolean, nullable=False, default=True)
    pedido_minimo = Column(Numeric(18, 2), nullable=True)
    taxa_entrega = Column(Numeric(18, 2), nullable=False, default=0)
    tempo_estimado_min = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), default=now_trimmed, nullable=False)

    itens_cardapio = relationship("ItemCardapioModel", back_populates="restaurante")

    @property
    def endereco_resumido(self) -> str:
        return f"{self.logradouro or ''}, {self.numero or 's/n'} - {self.bairro or ''}".strip(" ,-")


class ItemCardapioModel(Base):
    __tablename__ = "itens_cardapio"
    __table_args__ = (
        Index("idx_itens_cardapio_restaurante", "restaurante_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    restaurante_id = Column(Integer, ForeignKey("restaurantes.id", ondelete="CASCADE"), nullable=False)
    nome = Column(String(120), nullable=False)
    preco = Column(Numeric(18, 2), nullable=False)
    disponivel = Column(Boolean, nullable=False, default=True)

    restaurante = relationship("RestauranteModel", back_populates="itens_cardapio")
