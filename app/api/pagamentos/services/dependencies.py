from fastapi import Depends
from sqlalchemy.orm import Session

from app.api.cadastros.contracts.cliente_contract import IClienteContract
from app.api.cadastros.contracts.dependencies import get_cliente_contract
from app.api.pagamentos.gateways.registry import GatewayRegistry, get_gateway_registry
from app.api.pagamentos.services.service_cartoes import CartoesService
from app.api.pagamentos.services.service_pagamento import PagamentoService
from app.api.pedidos.services.dependencies import get_pedido_service
from app.api.pedidos.services.service_pedido import PedidoService
from app.database.db_connection import get_db


def get_cartoes_service(
    db: Session = Depends(get_db),
    registry: GatewayRegistry = Depends(get_gateway_registry),
    cliente_contract: IClienteContract = Depends(get_cliente_contract),
) -> CartoesService:
    return CartoesService(db, registry=registry, cliente_contract=cliente_contract)


def get_pagamento_service(
    db: Session = Depends(get_db),
    registry: GatewayRegistry = Depends(get_gateway_registry),
    pedido_service: PedidoService = Depends(get_pedido_service),
    cliente_contract: IClienteContract = Depends(get_cliente_contract),
    cartoes: CartoesService = Depends(get_cartoes_service),
) -> PagamentoService:
    return PagamentoService(
        db,
        registry=registry,
        pedido_service=pedido_service,
        cliente_contract=cliente_contract,
        cartoes=cartoes,
    )
