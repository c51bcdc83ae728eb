from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class EntregadorDTO(BaseModel):
    """DTO de entregador para comunicação entre contextos."""
    id: int
    user_id: int
    nome: str
    telefone: Optional[str] = None
    online: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    ultima_localizacao_em: Optional[datetime] = None
    tipo_veiculo: Optional[str] = None
    placa: Optional[str] = None


class IEntregadorContract(ABC):
    """Contrato para acesso a entregadores do contexto Cadastros."""

    @abstractmethod
    def obter_entregador(self, entregador_id: int) -> Optional[EntregadorDTO]:
        raise NotImplementedError

    @abstractmethod
    def obter_por_usuario(self, user_id: int) -> Optional[EntregadorDTO]:
        raise NotImplementedError
