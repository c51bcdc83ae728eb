from fastapi import Depends
from sqlalchemy.orm import Session

from app.database.db_connection import get_db

from .cliente_contract import IClienteContract
from .restaurante_contract import IRestauranteContract
from .entregador_contract import IEntregadorContract

from app.api.cadastros.adapters.cliente_adapter import ClienteAdapter
from app.api.cadastros.adapters.restaurante_adapter import RestauranteAdapter
from app.api.cadastros.adapters.entregador_adapter import EntregadorAdapter


def get_cliente_contract(db: Session = Depends(get_db)) -> IClienteContract:
    return ClienteAdapter(db)


def get_restaurante_contract(db: Session = Depends(get_db)) -> IRestauranteContract:
    return RestauranteAdapter(db)


def get_entregador_contract(db: Session = Depends(get_db)) -> IEntregadorContract:
    return EntregadorAdapter(db)
