from fastapi import APIRouter, Depends, Path, Query, status

from app.api.financeiro.schemas.schema_financeiro import (
    BonusRequest,
    CancelarRepasseRequest,
    ContaBancariaOut,
    GanhoEntregadorOut,
    GorjetaRequest,
    ProcessarRepasseRequest,
    RepasseOut,
)
from app.api.financeiro.services.dependencies import (
    get_financeiro_entregador_service,
    get_financeiro_restaurante_service,
)
from app.api.financeiro.services.service_financeiro_entregador import FinanceiroEntregadorService
from app.api.financeiro.services.service_financeiro_restaurante import FinanceiroRestauranteService
from app.core.admin_dependencies import UsuarioAutenticado, get_current_admin
from app.utils.logger import logger

router = APIRouter(
    prefix="/api/financeiro/admin",
    tags=["Admin - Financeiro"],
    dependencies=[Depends(get_current_admin)],
)


# ======================================================================
# =========================== RESTAURANTES =============================
# ======================================================================
@router.get("/visao-geral", status_code=status.HTTP_200_OK)
def visao_geral(svc: FinanceiroRestauranteService = Depends(get_financeiro_restaurante_service)):
    return svc.visao_geral()


@router.get("/repasses/pendentes", status_code=status.HTTP_200_OK)
def repasses_pendentes(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    svc: FinanceiroRestauranteService = Depends(get_financeiro_restaurante_service),
):
    return svc.listar_repasses_pendentes(page=page, limit=limit)


@router.post("/repasses/{repasse_id}/processar", response_model=RepasseOut, status_code=status.HTTP_200_OK)
def processar_repasse(
    payload: ProcessarRepasseRequest,
    repasse_id: int = Path(..., gt=0),
    admin: UsuarioAutenticado = Depends(get_current_admin),
    svc: FinanceiroRestauranteService = Depends(get_financeiro_restaurante_service),
):
    logger.info(f"[Financeiro] Processar repasse - repasse_id={repasse_id} admin={admin.id}")
    return svc.processar_repasse(
        repasse_id,
        admin.id,
        referencia=payload.referencia,
        comprovante_url=payload.comprovante_url,
        observacoes=payload.observacoes,
    )


@router.post("/repasses/{repasse_id}/cancelar", response_model=RepasseOut, status_code=status.HTTP_200_OK)
def cancelar_repasse(
    payload: CancelarRepasseRequest,
    repasse_id: int = Path(..., gt=0),
    svc: FinanceiroRestauranteService = Depends(get_financeiro_restaurante_service),
):
    logger.info(f"[Financeiro] Cancelar repasse - repasse_id={repasse_id}")
    return svc.cancelar_repasse(repasse_id, payload.motivo)


@router.post(
    "/restaurantes/{restaurante_id}/conta-bancaria/verificar",
    response_model=ContaBancariaOut,
    status_code=status.HTTP_200_OK,
)
def verificar_conta_bancaria(
    restaurante_id: int = Path(..., gt=0),
    svc: FinanceiroRestauranteService = Depends(get_financeiro_restaurante_service),
):
    return svc.verificar_conta_bancaria(restaurante_id)


@router.post("/ganhos/liberar-pendentes", status_code=status.HTTP_200_OK)
def liberar_ganhos_pendentes(svc: FinanceiroRestauranteService = Depends(get_financeiro_restaurante_service)):
    """Executa na hora a liberação que também roda periodicamente em background."""
    return {"updated": svc.liberar_ganhos_pendentes()}


@router.post("/restaurantes/backfill", status_code=status.HTTP_200_OK)
def backfill_ganhos_restaurantes(svc: FinanceiroRestauranteService = Depends(get_financeiro_restaurante_service)):
    return svc.backfill()


# ======================================================================
# =========================== ENTREGADORES =============================
# ======================================================================
@router.get("/entregadores/visao-geral", status_code=status.HTTP_200_OK)
def visao_geral_entregadores(svc: FinanceiroEntregadorService = Depends(get_financeiro_entregador_service)):
    return svc.visao_geral()


@router.get("/entregadores/ranking", status_code=status.HTTP_200_OK)
def ranking_entregadores(
    limit: int = Query(10, ge=1, le=100),
    svc: FinanceiroEntregadorService = Depends(get_financeiro_entregador_service),
):
    return svc.ranking(limit)


@router.post("/entregadores/backfill", status_code=status.HTTP_200_OK)
def backfill_ganhos_entregadores(svc: FinanceiroEntregadorService = Depends(get_financeiro_entregador_service)):
    return svc.backfill()


@router.post("/entregadores/bonus", response_model=GanhoEntregadorOut, status_code=status.HTTP_201_CREATED)
def adicionar_bonus(
    payload: BonusRequest,
    svc: FinanceiroEntregadorService = Depends(get_financeiro_entregador_service),
):
    return svc.adicionar_bonus(payload.entregador_id, payload.valor, payload.descricao)


@router.post("/entregadores/gorjeta", response_model=GanhoEntregadorOut, status_code=status.HTTP_201_CREATED)
def adicionar_gorjeta(
    payload: GorjetaRequest,
    svc: FinanceiroEntregadorService = Depends(get_financeiro_entregador_service),
):
    return svc.adicionar_gorjeta(payload.entregador_id, payload.pedido_id, payload.valor)
