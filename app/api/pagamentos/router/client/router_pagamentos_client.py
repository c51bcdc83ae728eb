from typing import List

from fastapi import APIRouter, Body, Depends, Path, status

from app.api.pagamentos.schemas.schema_pagamento import (
    CartaoSalvoOut,
    ProcessarPagamentoRequest,
    SalvarCartaoRequest,
)
from app.api.pagamentos.services.dependencies import get_cartoes_service, get_pagamento_service
from app.api.pagamentos.services.service_cartoes import CartoesService
from app.api.pagamentos.services.service_pagamento import PagamentoService
from app.core.admin_dependencies import UsuarioAutenticado, get_current_customer
from app.utils.logger import logger

router = APIRouter(prefix="/api/pagamentos/client", tags=["Client - Pagamentos"])


@router.get("/metodos", status_code=status.HTTP_200_OK)
def metodos_disponiveis(
    usuario: UsuarioAutenticado = Depends(get_current_customer),
    svc: PagamentoService = Depends(get_pagamento_service),
):
    """Formas de pagamento habilitadas e chaves públicas dos gateways de cartão."""
    return svc.metodos_disponiveis()


@router.post("/processar", status_code=status.HTTP_200_OK)
async def processar_pagamento(
    payload: ProcessarPagamentoRequest = Body(...),
    usuario: UsuarioAutenticado = Depends(get_current_customer),
    svc: PagamentoService = Depends(get_pagamento_service),
):
    """
    Processa o pagamento de um pedido do cliente.

    - **metodo**: quando omitido, usa o método escolhido na criação do pedido.
    - **saved_card_id**: cobra um cartão salvo no gateway em que ele foi salvo.
    - Recusa ou indisponibilidade do gateway volta com `success=false` e `errorCode`.
    """
    logger.info(f"[Pagamentos] Processar pagamento - pedido_id={payload.pedido_id} user_id={usuario.id}")
    return await svc.process_payment(usuario, payload)


# ======================================================================
# ============================== CARTÕES ===============================
# ======================================================================
@router.get("/cartoes", response_model=List[CartaoSalvoOut], status_code=status.HTTP_200_OK)
def listar_cartoes(
    usuario: UsuarioAutenticado = Depends(get_current_customer),
    svc: CartoesService = Depends(get_cartoes_service),
):
    return svc.list_cards(usuario.id)


@router.post("/cartoes", response_model=CartaoSalvoOut, status_code=status.HTTP_201_CREATED)
async def salvar_cartao(
    payload: SalvarCartaoRequest = Body(...),
    usuario: UsuarioAutenticado = Depends(get_current_customer),
    svc: CartoesService = Depends(get_cartoes_service),
):
    return await svc.save_card(
        usuario.id, payload.card_token, gateway=payload.gateway, padrao=payload.padrao, email=usuario.email
    )


@router.delete("/cartoes/{cartao_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remover_cartao(
    cartao_id: int = Path(..., gt=0),
    usuario: UsuarioAutenticado = Depends(get_current_customer),
    svc: CartoesService = Depends(get_cartoes_service),
):
    await svc.delete_card(usuario.id, cartao_id)


@router.put("/cartoes/{cartao_id}/padrao", response_model=CartaoSalvoOut, status_code=status.HTTP_200_OK)
def definir_cartao_padrao(
    cartao_id: int = Path(..., gt=0),
    usuario: UsuarioAutenticado = Depends(get_current_customer),
    svc: CartoesService = Depends(get_cartoes_service),
):
    return svc.set_default_card(usuario.id, cartao_id)
