from typing import Optional

from fastapi import APIRouter, Body, Depends, Path, status
from sqlalchemy.orm import Session

from app.api.configuracoes.services.service_configuracoes import ConfiguracaoService
from app.api.pagamentos.gateways.registry import GatewayRegistry, get_gateway_registry
from app.api.pagamentos.schemas.schema_pagamento import EstornoRequest
from app.api.pagamentos.services.dependencies import get_pagamento_service
from app.api.pagamentos.services.service_pagamento import PagamentoService
from app.core.admin_dependencies import UsuarioAutenticado, get_current_admin
from app.database.db_connection import get_db
from app.utils.logger import logger

router = APIRouter(
    prefix="/api/pagamentos/admin",
    tags=["Admin - Pagamentos"],
    dependencies=[Depends(get_current_admin)],
)


@router.get("/gateways", status_code=status.HTTP_200_OK)
def status_gateways(registry: GatewayRegistry = Depends(get_gateway_registry)):
    """Situação de cada gateway (configurado/habilitado) e recursos suportados."""
    return {
        "gateways": registry.get_status(),
        "features": {g.name: g.get_supported_features() for g in registry.get_all()},
        "cardGateway": registry.configuracao.card_gateway,
    }


@router.post("/gateways/reinicializar", status_code=status.HTTP_200_OK)
async def reinicializar_gateways(
    db: Session = Depends(get_db),
    registry: GatewayRegistry = Depends(get_gateway_registry),
    usuario: UsuarioAutenticado = Depends(get_current_admin),
):
    logger.info(f"[Pagamentos] Reinicialização de gateways solicitada - user_id={usuario.id}")
    configurados = await registry.reinitialize(ConfiguracaoService(db))
    return {"gateways": configurados}


@router.post("/{pedido_id}/estorno", status_code=status.HTTP_200_OK)
async def estornar_pagamento(
    pedido_id: int = Path(..., gt=0),
    payload: Optional[EstornoRequest] = Body(None),
    usuario: UsuarioAutenticado = Depends(get_current_admin),
    svc: PagamentoService = Depends(get_pagamento_service),
):
    """Estorno total (sem **valor**) ou parcial do pagamento do pedido."""
    logger.info(f"[Pagamentos] Estorno solicitado - pedido_id={pedido_id} user_id={usuario.id}")
    return await svc.refund(
        pedido_id,
        valor=payload.valor if payload else None,
        motivo=payload.motivo if payload else None,
    )


@router.post("/{pedido_id}/simular", status_code=status.HTTP_200_OK)
async def simular_confirmacao(
    pedido_id: int = Path(..., gt=0),
    svc: PagamentoService = Depends(get_pagamento_service),
):
    """Confirma o pagamento sem gateway. Só em ambientes com ALLOW_PAYMENT_SIMULATION."""
    return svc.simulate_payment_confirmation(pedido_id)
