from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.financeiro.models.model_ganho_entregador import TipoGanhoEntregador
from app.api.financeiro.services.dependencies import (
    get_financeiro_entregador_service,
    get_entregador_id_do_usuario,
)
from app.api.financeiro.services.service_financeiro_entregador import FinanceiroEntregadorService
from app.utils.database_utils import inicio_do_dia, fim_do_dia

router = APIRouter(prefix="/api/financeiro/entregador", tags=["Entregador - Financeiro"])


@router.get("/resumo", status_code=status.HTTP_200_OK)
def resumo_ganhos(
    entregador_id: int = Depends(get_entregador_id_do_usuario),
    svc: FinanceiroEntregadorService = Depends(get_financeiro_entregador_service),
):
    return svc.resumo(entregador_id)


@router.get("/ganhos", status_code=status.HTTP_200_OK)
def listar_ganhos(
    tipo: Optional[TipoGanhoEntregador] = Query(None),
    data_inicio: Optional[date] = Query(None),
    data_fim: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    entregador_id: int = Depends(get_entregador_id_do_usuario),
    svc: FinanceiroEntregadorService = Depends(get_financeiro_entregador_service),
):
    return svc.listar_ganhos(
        entregador_id,
        tipo=tipo,
        inicio=inicio_do_dia(data_inicio) if data_inicio else None,
        fim=fim_do_dia(data_fim) if data_fim else None,
        page=page,
        limit=limit,
    )


@router.get("/hoje", status_code=status.HTTP_200_OK)
def ganhos_de_hoje(
    entregador_id: int = Depends(get_entregador_id_do_usuario),
    svc: FinanceiroEntregadorService = Depends(get_financeiro_entregador_service),
):
    return svc.ganhos_do_dia(entregador_id)


@router.get("/diario", status_code=status.HTTP_200_OK)
def ganhos_por_dia(
    dia: date = Query(..., description="Data (YYYY-MM-DD)"),
    entregador_id: int = Depends(get_entregador_id_do_usuario),
    svc: FinanceiroEntregadorService = Depends(get_financeiro_entregador_service),
):
    return svc.ganhos_do_dia(entregador_id, dia)
