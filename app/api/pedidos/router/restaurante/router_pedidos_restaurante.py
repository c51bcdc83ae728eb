from typing import Optional

from fastapi import APIRouter, Body, Depends, Path, Query, status

from app.api.pedidos.models.model_pedido import StatusPedido
from app.api.pedidos.schemas.schema_pedido import AtualizarStatusRequest, PedidoListResponse, PedidoOut
from app.api.pedidos.services.dependencies import get_pedido_service
from app.api.pedidos.services.service_pedido import PedidoService
from app.core.admin_dependencies import UsuarioAutenticado, get_current_restaurant_user
from app.utils.logger import logger

router = APIRouter(prefix="/api/pedidos/restaurante", tags=["Restaurante - Pedidos"])


@router.get("", response_model=PedidoListResponse, status_code=status.HTTP_200_OK)
def listar_pedidos_restaurante(
    status_filtro: Optional[StatusPedido] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    usuario: UsuarioAutenticado = Depends(get_current_restaurant_user),
    svc: PedidoService = Depends(get_pedido_service),
):
    return svc.listar_pedidos_restaurante(usuario.id, status_filtro=status_filtro, page=page, limit=limit)


@router.get("/{pedido_id}", response_model=PedidoOut, status_code=status.HTTP_200_OK)
def get_pedido(
    pedido_id: int = Path(..., gt=0),
    usuario: UsuarioAutenticado = Depends(get_current_restaurant_user),
    svc: PedidoService = Depends(get_pedido_service),
):
    return svc.get_pedido_restaurante(usuario.id, pedido_id)


@router.put("/{pedido_id}/status", response_model=PedidoOut, status_code=status.HTTP_200_OK)
async def atualizar_status(
    pedido_id: int = Path(..., gt=0),
    payload: AtualizarStatusRequest = Body(...),
    usuario: UsuarioAutenticado = Depends(get_current_restaurant_user),
    svc: PedidoService = Depends(get_pedido_service),
):
    """
    Avança o pedido na máquina de estados (confirmar, preparar, pronto, recusar...).
    Transições fora da tabela retornam 400 e não alteram o pedido.
    """
    logger.info(f"[Pedidos] Restaurante altera status - pedido_id={pedido_id} -> {payload.status.value}")
    return svc.atualizar_status_restaurante(usuario.id, pedido_id, payload.status, payload.motivo)
