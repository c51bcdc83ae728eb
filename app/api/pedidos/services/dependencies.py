from fastapi import Depends
from sqlalchemy.orm import Session

from app.database.db_connection import get_db
from app.api.cadastros.contracts.cliente_contract import IClienteContract
from app.api.cadastros.contracts.entregador_contract import IEntregadorContract
from app.api.cadastros.contracts.restaurante_contract import IRestauranteContract
from app.api.cadastros.contracts.dependencies import (
    get_cliente_contract,
    get_entregador_contract,
    get_restaurante_contract,
)
from app.api.cadastros.services.service_entregadores import EntregadoresService
from app.api.configuracoes.services.service_configuracoes import ConfiguracaoService
from app.api.financeiro.services.dependencies import get_liquidacao_service
from app.api.financeiro.services.service_liquidacao import LiquidacaoService
from app.api.notifications.services.pedido_event_publisher import (
    PedidoEventPublisher,
    get_pedido_event_publisher,
)
from app.api.pedidos.services.service_entregas import EntregaService
from app.api.pedidos.services.service_pedido import PedidoService


def get_pedido_service(
    db: Session = Depends(get_db),
    cliente_contract: IClienteContract = Depends(get_cliente_contract),
    restaurante_contract: IRestauranteContract = Depends(get_restaurante_contract),
    entregador_contract: IEntregadorContract = Depends(get_entregador_contract),
    eventos: PedidoEventPublisher = Depends(get_pedido_event_publisher),
    liquidacao: LiquidacaoService = Depends(get_liquidacao_service),
) -> PedidoService:
    return PedidoService(
        db,
        cliente_contract=cliente_contract,
        restaurante_contract=restaurante_contract,
        configuracoes=ConfiguracaoService(db),
        eventos=eventos,
        liquidacao=liquidacao,
        entregador_contract=entregador_contract,
    )


def get_entrega_service(
    db: Session = Depends(get_db),
    pedido_service: PedidoService = Depends(get_pedido_service),
    eventos: PedidoEventPublisher = Depends(get_pedido_event_publisher),
) -> EntregaService:
    return EntregaService(
        db,
        pedido_service=pedido_service,
        entregadores=EntregadoresService(db),
        eventos=eventos,
    )
