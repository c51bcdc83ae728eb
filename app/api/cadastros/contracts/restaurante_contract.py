from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional, List

from pydantic import BaseModel


class RestauranteDTO(BaseModel):
    """DTO de restaurante para comunicação entre contextos."""
    id: int
    owner_user_id: int
    nome: str
    cidade: str
    endereco: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    aberto: bool
    pedido_minimo: Optional[Decimal] = None
    taxa_entrega: Decimal = Decimal("0")
    tempo_estimado_min: Optional[int] = None


class ItemCardapioDTO(BaseModel):
    id: int
    restaurante_id: int
    nome: str
    preco: Decimal
    disponivel: bool = True


class IRestauranteContract(ABC):
    """Contrato para acesso a restaurantes e itens de cardápio."""

    @abstractmethod
    def obter_restaurante(self, restaurante_id: int) -> Optional[RestauranteDTO]:
        raise NotImplementedError

    @abstractmethod
    def obter_restaurante_por_usuario(self, user_id: int) -> Optional[RestauranteDTO]:
        raise NotImplementedError

    @abstractmethod
    def listar_itens(self, restaurante_id: int, item_ids: List[int]) -> List[ItemCardapioDTO]:
        """Retorna apenas os itens que pertencem ao restaurante."""
        raise NotImplementedError
