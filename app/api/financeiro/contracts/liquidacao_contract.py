"""
Contract usado pelo contexto de Pedidos para disparar a liquidação financeira
sem depender das implementações do Financeiro.
"""
from abc import ABC, abstractmethod


class ILiquidacaoContract(ABC):

    @abstractmethod
    def processar_pedido_entregue(self, pedido_id: int) -> None:
        """Registra os ganhos do restaurante e do entregador. Chamadas repetidas não duplicam lançamentos."""
        raise NotImplementedError
