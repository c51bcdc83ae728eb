import enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import relationship

from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed


class TipoConta(str, enum.Enum):
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"


class TipoChavePix(str, enum.Enum):
    CPF = "CPF"
    CNPJ = "CNPJ"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    RANDOM = "RANDOM"


class ContaBancariaModel(Base):
    __tablename__ = "contas_bancarias_restaurantes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    restaurante_id = Column(
        Integer, ForeignKey("restaurantes.id", ondelete="CASCADE"), nullable=False, unique=True
    )

    titular_nome = Column(String(100), nullable=False)
    titular_documento = Column(String(20), nullable=False)
    banco_codigo = Column(String(5), nullable=False)
    banco_nome = Column(String(100), nullable=False)
    tipo_conta = Column(SAEnum(TipoConta, name="tipo_conta_enum"), nullable=False)
    agencia = Column(String(10), nullable=False)
    agencia_digito = Column(String(2), nullable=True)
    conta_numero = Column(String(20), nullable=False)
    conta_digito = Column(String(2), nullable=False)

    chave_pix = Column(String(100), nullable=True)
    tipo_chave_pix = Column(SAEnum(TipoChavePix, name="tipo_chave_pix_enum"), nullable=True)

    verificada = Column(Boolean, nullable=False, default=False)
    verificada_em = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=now_trimmed)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=now_trimmed, onupdate=now_trimmed)

    restaurante = relationship("RestauranteModel", lazy="select")
