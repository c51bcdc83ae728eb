from sqlalchemy import Column, String, DateTime, Index, Integer
from sqlalchemy.orm import relationship

from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed


class ClienteModel(Base):
    __tablename__ = "clientes"
    __table_args__ = (
        Index("idx_clientes_email", "email"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, unique=True)  # id do usuário no serviço de autenticação
    nome = Column(String(100), nullable=False)
    email = Column(String(100), nullable=True)
    telefone = Column(String(20), nullable=True)
    cpf = Column(String(14), nullable=True)

    created_at = Column(DateTime(timezone=True), default=now_trimmed, nullable=False)

    enderecos = relationship("EnderecoModel", back_populates="cliente", cascade="all, delete-orphan")
