from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Numeric
from sqlalchemy.orm import relationship

from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed


class EnderecoModel(Base):
    __tablename__ = "enderecos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    cliente_id = Column(Integer, ForeignKey("clientes.id", ondelete="CASCADE"), nullable=False)

    cep         = Column(String(10),  nullable=True)
    logradouro  = Column(String(100), nullable=False)
    numero      = Column(String(10),  nullable=False)
    complemento = Column(String(50),  nullable=True)
    bairro      = Column(String(50),  nullable=False)
    cidade      = Column(String(50),  nullable=False)
    estado      = Column(String(2),   nullable=False)

    latitude   = Column(Numeric(10, 6), nullable=True)
    longitude  = Column(Numeric(10, 6), nullable=True)

    created_at = Column(DateTime(timezone=True), default=now_trimmed, nullable=False)

    cliente = relationship("ClienteModel", back_populates="enderecos")

    def to_snapshot(self) -> dict:
        """Cópia desnormalizada gravada no pedido."""
        return {
            "endereco_id": self.id,
            "logradouro": self.logradouro,
            "numero": self.numero,
            "complemento": self.complemento,
            "bairro": self.bairro,
            "cidade": self.cidade,
            "estado": self.estado,
            "cep": self.cep,
            "latitude": float(self.latitude) if self.latitude is not None else None,
            "longitude": float(self.longitude) if self.longitude is not None else None,
        }
