"""
Contract para leitura de configurações da plataforma por outros contextos
(financeiro, pagamentos, pedidos). Somente leitura.
"""
from abc import ABC, abstractmethod
from typing import Any


class IConfiguracoesContract(ABC):

    @abstractmethod
    def get(self, chave: str) -> Any | None:
        """Valor já convertido para o tipo declarado, ou None quando a chave não existe."""
        raise NotImplementedError

    def get_or_default(self, chave: str, default: Any) -> Any:
        valor = self.get(chave)
        return default if valor is None or valor == "" else valor
