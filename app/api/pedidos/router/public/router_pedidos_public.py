from fastapi import APIRouter, Depends, Path, status

from app.api.pedidos.services.dependencies import get_pedido_service
from app.api.pedidos.services.service_pedido import PedidoService

router = APIRouter(prefix="/api/pedidos/public", tags=["Public - Pedidos"])


@router.get("/{pedido_id}/rastreamento", status_code=status.HTTP_200_OK)
def rastreamento(
    pedido_id: int = Path(..., gt=0),
    svc: PedidoService = Depends(get_pedido_service),
):
    """Status, entregador (com última posição), restaurante e previsão de entrega."""
    return svc.get_rastreamento(pedido_id)
