from typing import Optional

from fastapi import APIRouter, Body, Depends, Path, Query, status

from app.api.pedidos.schemas.schema_pedido import (
    CancelarPedidoRequest,
    CriarPedidoRequest,
    PedidoListResponse,
    PedidoOut,
)
from app.api.pedidos.services.dependencies import get_pedido_service
from app.api.pedidos.services.service_pedido import PedidoService
from app.core.admin_dependencies import UsuarioAutenticado, get_current_customer
from app.utils.logger import logger

router = APIRouter(prefix="/api/pedidos/client", tags=["Client - Pedidos"])


# Rotas que disparam eventos de tempo real são async: o publisher agenda o envio no loop ativo.
@router.post("", response_model=PedidoOut, status_code=status.HTTP_201_CREATED)
async def criar_pedido(
    payload: CriarPedidoRequest = Body(...),
    usuario: UsuarioAutenticado = Depends(get_current_customer),
    svc: PedidoService = Depends(get_pedido_service),
):
    """
    Cria um pedido de delivery.

    - **endereco_id** ou **endereco_entrega**: exatamente um dos dois.
    - Preços dos itens são lidos do cardápio e congelados no pedido.
    """
    logger.info(f"[Pedidos] Criar pedido - user_id={usuario.id} restaurante_id={payload.restaurante_id}")
    return svc.criar_pedido(usuario.id, payload)


@router.get("", response_model=PedidoListResponse, status_code=status.HTTP_200_OK)
def listar_meus_pedidos(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    usuario: UsuarioAutenticado = Depends(get_current_customer),
    svc: PedidoService = Depends(get_pedido_service),
):
    return svc.listar_pedidos_cliente(usuario.id, page=page, limit=limit)


@router.get("/{pedido_id}", response_model=PedidoOut, status_code=status.HTTP_200_OK)
def get_pedido(
    pedido_id: int = Path(..., gt=0),
    usuario: UsuarioAutenticado = Depends(get_current_customer),
    svc: PedidoService = Depends(get_pedido_service),
):
    return svc.get_pedido_cliente(usuario.id, pedido_id)


@router.post("/{pedido_id}/cancelar", response_model=PedidoOut, status_code=status.HTTP_200_OK)
async def cancelar_pedido(
    pedido_id: int = Path(..., gt=0),
    payload: Optional[CancelarPedidoRequest] = Body(None),
    usuario: UsuarioAutenticado = Depends(get_current_customer),
    svc: PedidoService = Depends(get_pedido_service),
):
    logger.info(f"[Pedidos] Cancelamento pelo cliente - pedido_id={pedido_id} user_id={usuario.id}")
    return svc.cancelar_pedido_cliente(usuario.id, pedido_id, payload.motivo if payload else None)
