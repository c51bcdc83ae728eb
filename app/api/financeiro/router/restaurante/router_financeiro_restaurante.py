from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Body, status

from app.api.financeiro.models.model_ganho_restaurante import StatusGanho
from app.api.financeiro.models.model_repasse_restaurante import StatusRepasse
from app.api.financeiro.schemas.schema_financeiro import (
    ContaBancariaOut,
    ContaBancariaRequest,
    SolicitarRepasseRequest,
    SolicitarRepasseResponse,
)
from app.api.financeiro.services.dependencies import (
    get_financeiro_restaurante_service,
    get_restaurante_id_do_usuario,
)
from app.api.financeiro.services.service_financeiro_restaurante import FinanceiroRestauranteService
from app.utils.database_utils import inicio_do_dia, fim_do_dia
from app.utils.logger import logger

router = APIRouter(prefix="/api/financeiro/restaurante", tags=["Restaurante - Financeiro"])


# ======================================================================
# ============================ GANHOS ==================================
# ======================================================================
@router.get("/resumo", status_code=status.HTTP_200_OK)
def resumo_ganhos(
    restaurante_id: int = Depends(get_restaurante_id_do_usuario),
    svc: FinanceiroRestauranteService = Depends(get_financeiro_restaurante_service),
):
    """Totais bruto, taxas e líquido, separados por situação (pendente, disponível, sacado)."""
    return svc.resumo(restaurante_id)


@router.get("/saldo", status_code=status.HTTP_200_OK)
def saldo_disponivel(
    restaurante_id: int = Depends(get_restaurante_id_do_usuario),
    svc: FinanceiroRestauranteService = Depends(get_financeiro_restaurante_service),
):
    return {"availableBalance": float(svc.saldo_disponivel(restaurante_id))}


@router.get("/ganhos", status_code=status.HTTP_200_OK)
def listar_ganhos(
    status_filtro: Optional[StatusGanho] = Query(None, alias="status"),
    data_inicio: Optional[date] = Query(None),
    data_fim: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    restaurante_id: int = Depends(get_restaurante_id_do_usuario),
    svc: FinanceiroRestauranteService = Depends(get_financeiro_restaurante_service),
):
    return svc.listar_ganhos(
        restaurante_id,
        status_filtro=status_filtro,
        inicio=inicio_do_dia(data_inicio) if data_inicio else None,
        fim=fim_do_dia(data_fim) if data_fim else None,
        page=page,
        limit=limit,
    )


# ======================================================================
# ============================ REPASSES ================================
# ======================================================================
@router.get("/repasses", status_code=status.HTTP_200_OK)
def listar_repasses(
    status_filtro: Optional[StatusRepasse] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    restaurante_id: int = Depends(get_restaurante_id_do_usuario),
    svc: FinanceiroRestauranteService = Depends(get_financeiro_restaurante_service),
):
    return svc.listar_repasses(restaurante_id, status_filtro=status_filtro, page=page, limit=limit)


@router.post("/repasses", response_model=SolicitarRepasseResponse, status_code=status.HTTP_201_CREATED)
def solicitar_repasse(
    payload: Optional[SolicitarRepasseRequest] = Body(None),
    restaurante_id: int = Depends(get_restaurante_id_do_usuario),
    svc: FinanceiroRestauranteService = Depends(get_financeiro_restaurante_service),
):
    """
    Solicita saque do saldo disponível.

    - **valor**: opcional; sem ele todo o saldo disponível é sacado.
    """
    valor = payload.valor if payload else None
    logger.info(f"[Financeiro] Solicitação de repasse - restaurante_id={restaurante_id} valor={valor}")
    return svc.solicitar_repasse(restaurante_id, valor)


# ======================================================================
# ========================= CONTA BANCÁRIA =============================
# ======================================================================
@router.get("/conta-bancaria", response_model=Optional[ContaBancariaOut], status_code=status.HTTP_200_OK)
def get_conta_bancaria(
    restaurante_id: int = Depends(get_restaurante_id_do_usuario),
    svc: FinanceiroRestauranteService = Depends(get_financeiro_restaurante_service),
):
    return svc.get_conta_bancaria(restaurante_id)


@router.put("/conta-bancaria", response_model=ContaBancariaOut, status_code=status.HTTP_200_OK)
def salvar_conta_bancaria(
    payload: ContaBancariaRequest,
    restaurante_id: int = Depends(get_restaurante_id_do_usuario),
    svc: FinanceiroRestauranteService = Depends(get_financeiro_restaurante_service),
):
    logger.info(f"[Financeiro] Conta bancária atualizada - restaurante_id={restaurante_id}")
    return svc.salvar_conta_bancaria(restaurante_id, payload)
