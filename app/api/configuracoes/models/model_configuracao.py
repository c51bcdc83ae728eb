# app/api/configuracoes/models/model_configuracao.py
import enum

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Enum as SAEnum, Index

from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed


class TipoConfiguracao(str, enum.Enum):
    STRING = "STRING"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"
    JSON = "JSON"


class ConfiguracaoModel(Base):
    """
    Configuração chave/valor da plataforma (taxas, mínimos de saque, toggles de gateway).

    O valor é sempre persistido como texto e convertido conforme `tipo` na leitura.
    `versao` é incrementada a cada alteração.
    """
    __tablename__ = "configuracoes"
    __table_args__ = (
        Index("idx_configuracoes_categoria", "categoria"),
    )

    chave = Column(String(100), primary_key=True)
    valor = Column(Text, nullable=False, default="")
    tipo = Column(SAEnum(TipoConfiguracao, name="tipo_configuracao_enum"), nullable=False, default=TipoConfiguracao.STRING)
    categoria = Column(String(50), nullable=False, default="general")
    descricao = Column(String(255), nullable=True)
    publica = Column(Boolean, nullable=False, default=False)
    versao = Column(Integer, nullable=False, default=1)

    updated_at = Column(DateTime(timezone=True), nullable=False, default=now_trimmed, onupdate=now_trimmed)

    def __repr__(self):
        return f"<Configuracao {self.chave}={self.valor!r} v{self.versao}>"
