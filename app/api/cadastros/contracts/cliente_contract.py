from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel


class ClienteDTO(BaseModel):
    """DTO de cliente para comunicação entre contextos."""
    id: int
    user_id: int
    nome: str
    email: Optional[str] = None
    telefone: Optional[str] = None
    cpf: Optional[str] = None


class IClienteContract(ABC):
    """Contrato para acesso a clientes e seus endereços do contexto Cadastros."""

    @abstractmethod
    def obter_cliente_por_usuario(self, user_id: int) -> Optional[ClienteDTO]:
        raise NotImplementedError

    @abstractmethod
    def obter_snapshot_endereco(self, cliente_id: int, endereco_id: int) -> Optional[dict]:
        """Snapshot do endereço, somente se ele pertencer ao cliente."""
        raise NotImplementedError
