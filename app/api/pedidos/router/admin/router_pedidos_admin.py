from fastapi import APIRouter, Body, Depends, Path, status

from app.api.pedidos.schemas.schema_pedido import AtualizarStatusRequest, PedidoOut
from app.api.pedidos.services.dependencies import get_pedido_service
from app.api.pedidos.services.service_pedido import PedidoService
from app.core.admin_dependencies import UsuarioAutenticado, get_current_admin
from app.utils.logger import logger

router = APIRouter(
    prefix="/api/pedidos/admin",
    tags=["Admin - Pedidos"],
    dependencies=[Depends(get_current_admin)],
)


@router.get("/{pedido_id}", response_model=PedidoOut, status_code=status.HTTP_200_OK)
def get_pedido(
    pedido_id: int = Path(..., description="ID do pedido", gt=0),
    svc: PedidoService = Depends(get_pedido_service),
):
    return svc.get_pedido(pedido_id)


@router.put("/{pedido_id}/status", response_model=PedidoOut, status_code=status.HTTP_200_OK)
async def atualizar_status(
    pedido_id: int = Path(..., description="ID do pedido", gt=0),
    payload: AtualizarStatusRequest = Body(...),
    admin: UsuarioAutenticado = Depends(get_current_admin),
    svc: PedidoService = Depends(get_pedido_service),
):
    logger.info(f"[Pedidos] Admin altera status - pedido_id={pedido_id} -> {payload.status.value}")
    return svc.atualizar_status(pedido_id, payload.status, usuario_id=admin.id, motivo=payload.motivo)
