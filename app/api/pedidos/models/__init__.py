"""
Models do bounded context de Pedidos.
"""
from .model_pedido import (
    PedidoModel,
    StatusPedido,
    MetodoPagamento,
    StatusPagamento,
    STATUS_DESCRICAO,
)
from .model_pedido_item import PedidoItemModel
from .model_pedido_historico import PedidoHistoricoModel
