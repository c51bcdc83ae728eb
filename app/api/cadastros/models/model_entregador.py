from sqlalchemy import Column, Integer, String, Boolean, DateTime, Numeric, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed


class EntregadorModel(Base):
    __tablename__ = "entregadores"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, unique=True)
    nome = Column(String(100), nullable=False)
    telefone = Column(String(20), nullable=True)

    online = Column(Boolean, nullable=False, default=False)
    latitude_atual = Column(Numeric(10, 6), nullable=True)
    longitude_atual = Column(Numeric(10, 6), nullable=True)
    ultima_localizacao_em = Column(DateTime(timezone=True), nullable=True)

    tipo_veiculo = Column(String(20), nullable=True)
    placa = Column(String(10), nullable=True)

    created_at = Column(DateTime(timezone=True), default=now_trimmed, nullable=False)

    localizacoes = relationship("EntregadorLocalizacaoModel", back_populates="entregador", cascade="all, delete-orphan")


class EntregadorLocalizacaoModel(Base):
    """Histórico de posições enviadas pelo app do entregador."""
    __tablename__ = "entregadores_localizacoes"
    __table_args__ = (
        Index("idx_entregadores_localizacoes_entregador", "entregador_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    entregador_id = Column(Integer, ForeignKey("entregadores.id", ondelete="CASCADE"), nullable=False)
    latitude = Column(Numeric(10, 6), nullable=False)
    longitude = Column(Numeric(10, 6), nullable=False)
    precisao = Column(Numeric(8, 2), nullable=True)
    velocidade = Column(Numeric(8, 2), nullable=True)
    direcao = Column(Numeric(6, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_trimmed, nullable=False)

    entregador = relationship("EntregadorModel", back_populates="localizacoes")
