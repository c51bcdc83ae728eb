from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, status

from app.api.cadastros.contracts.entregador_contract import EntregadorDTO
from app.api.pedidos.schemas.schema_pedido import (
    AtualizarStatusRequest,
    LocalizacaoRequest,
    PedidoListResponse,
    PedidoOut,
    StatusOnlineRequest,
)
from app.api.pedidos.services.dependencies import get_entrega_service
from app.api.pedidos.services.service_entregas import EntregaService
from app.core.admin_dependencies import UsuarioAutenticado, get_current_driver
from app.utils.logger import logger

router = APIRouter(prefix="/api/pedidos/entregador", tags=["Entregador - Entregas"])


@router.put("/status-online", response_model=EntregadorDTO, status_code=status.HTTP_200_OK)
def definir_status_online(
    payload: StatusOnlineRequest,
    usuario: UsuarioAutenticado = Depends(get_current_driver),
    svc: EntregaService = Depends(get_entrega_service),
):
    return svc.definir_online(usuario.id, payload.online)


@router.post("/localizacao", status_code=status.HTTP_200_OK)
async def atualizar_localizacao(
    payload: LocalizacaoRequest,
    usuario: UsuarioAutenticado = Depends(get_current_driver),
    svc: EntregaService = Depends(get_entrega_service),
):
    """Grava a posição atual. Com **pedido_id**, repassa a posição para quem acompanha o pedido."""
    return svc.atualizar_localizacao(usuario.id, payload)


@router.get("/disponiveis", response_model=List[PedidoOut], status_code=status.HTTP_200_OK)
def listar_disponiveis(
    usuario: UsuarioAutenticado = Depends(get_current_driver),
    svc: EntregaService = Depends(get_entrega_service),
):
    return svc.listar_disponiveis(usuario.id)


@router.get("/atual", response_model=Optional[PedidoOut], status_code=status.HTTP_200_OK)
def entrega_atual(
    usuario: UsuarioAutenticado = Depends(get_current_driver),
    svc: EntregaService = Depends(get_entrega_service),
):
    return svc.entrega_atual(usuario.id)


@router.get("/historico", response_model=PedidoListResponse, status_code=status.HTTP_200_OK)
def historico_entregas(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    usuario: UsuarioAutenticado = Depends(get_current_driver),
    svc: EntregaService = Depends(get_entrega_service),
):
    return svc.historico_entregas(usuario.id, page=page, limit=limit)


@router.post("/{pedido_id}/aceitar", response_model=PedidoOut, status_code=status.HTTP_200_OK)
async def aceitar_entrega(
    pedido_id: int = Path(..., gt=0),
    usuario: UsuarioAutenticado = Depends(get_current_driver),
    svc: EntregaService = Depends(get_entrega_service),
):
    logger.info(f"[Entregas] Aceitar entrega - pedido_id={pedido_id} user_id={usuario.id}")
    return svc.aceitar_entrega(usuario.id, pedido_id)


@router.put("/{pedido_id}/status", response_model=PedidoOut, status_code=status.HTTP_200_OK)
async def atualizar_status(
    pedido_id: int = Path(..., gt=0),
    payload: AtualizarStatusRequest = Body(...),
    usuario: UsuarioAutenticado = Depends(get_current_driver),
    svc: EntregaService = Depends(get_entrega_service),
):
    return svc.atualizar_status(usuario.id, pedido_id, payload.status, payload.motivo)
