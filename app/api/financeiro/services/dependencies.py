from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.cadastros.contracts.dependencies import get_restaurante_contract, get_entregador_contract
from app.api.cadastros.contracts.entregador_contract import IEntregadorContract
from app.api.cadastros.contracts.restaurante_contract import IRestauranteContract
from app.api.configuracoes.services.service_configuracoes import ConfiguracaoService
from app.api.financeiro.services.service_financeiro_entregador import FinanceiroEntregadorService
from app.api.financeiro.services.service_financeiro_restaurante import FinanceiroRestauranteService
from app.api.financeiro.services.service_liquidacao import LiquidacaoService
from app.core.admin_dependencies import (
    UsuarioAutenticado,
    get_current_restaurant_user,
    get_current_driver,
)
from app.database.db_connection import get_db


def get_financeiro_restaurante_service(db: Session = Depends(get_db)) -> FinanceiroRestauranteService:
    return FinanceiroRestauranteService(db, ConfiguracaoService(db))


def get_financeiro_entregador_service(db: Session = Depends(get_db)) -> FinanceiroEntregadorService:
    return FinanceiroEntregadorService(db, ConfiguracaoService(db))


def get_liquidacao_service(db: Session = Depends(get_db)) -> LiquidacaoService:
    return LiquidacaoService(db, ConfiguracaoService(db))


def get_restaurante_id_do_usuario(
    usuario: UsuarioAutenticado = Depends(get_current_restaurant_user),
    restaurante_contract: IRestauranteContract = Depends(get_restaurante_contract),
) -> int:
    restaurante = restaurante_contract.obter_restaurante_por_usuario(usuario.id)
    if not restaurante:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Restaurante não encontrado para este usuário")
    return restaurante.id


def get_entregador_id_do_usuario(
    usuario: UsuarioAutenticado = Depends(get_current_driver),
    entregador_contract: IEntregadorContract = Depends(get_entregador_contract),
) -> int:
    entregador = entregador_contract.obter_por_usuario(usuario.id)
    if not entregador:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Entregador não encontrado")
    return entregador.id
