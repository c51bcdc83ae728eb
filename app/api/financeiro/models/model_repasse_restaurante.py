import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric, Enum as SAEnum, Index
from sqlalchemy.orm import relationship

from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed


class StatusRepasse(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class MetodoRepasse(str, enum.Enum):
    PIX = "PIX"
    TED = "TED"


class RepasseRestauranteModel(Base):
    """Saque solicitado pelo restaurante, agrupando ganhos disponíveis."""
    __tablename__ = "repasses_restaurantes"
    __table_args__ = (
        Index("idx_repasses_restaurante_status", "restaurante_id", "status"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    restaurante_id = Column(Integer, ForeignKey("restaurantes.id", ondelete="RESTRICT"), nullable=False)

    valor = Column(Numeric(18, 4), nullable=False)
    status = Column(SAEnum(StatusRepasse, name="repasse_status_enum"), nullable=False, default=StatusRepasse.PENDING)
    metodo = Column(SAEnum(MetodoRepasse, name="repasse_metodo_enum"), nullable=False)

    periodo_inicio = Column(DateTime(timezone=True), nullable=False)
    periodo_fim = Column(DateTime(timezone=True), nullable=False)
    quantidade_ganhos = Column(Integer, nullable=False, default=0)

    solicitado_em = Column(DateTime(timezone=True), nullable=False, default=now_trimmed)
    processado_em = Column(DateTime(timezone=True), nullable=True)
    processado_por = Column(Integer, nullable=True)
    referencia = Column(String(100), nullable=True)
    comprovante_url = Column(String(500), nullable=True)
    observacoes = Column(String(500), nullable=True)

    restaurante = relationship("RestauranteModel", lazy="select")
    ganhos = relationship("GanhoRestauranteModel", back_populates="repasse")
