import json

from fastapi import APIRouter, Depends, Path, Request, status

from app.api.pagamentos.services.dependencies import get_pagamento_service
from app.api.pagamentos.services.service_pagamento import PagamentoService
from app.utils.logger import logger

router = APIRouter(prefix="/api/pagamentos/public/webhook", tags=["Public - Pagamentos - Webhooks"])


@router.post("/{provider}", status_code=status.HTTP_200_OK)
async def receber_webhook(
    request: Request,
    provider: str = Path(..., pattern="^(mercadopago|stripe|pagseguro)$"),
    svc: PagamentoService = Depends(get_pagamento_service),
):
    """
    Notificações dos gateways. O corpo bruto é repassado ao adapter para a
    verificação de assinatura; a resposta é sempre 200 para o provedor não reenviar.
    """
    raw_body = await request.body()
    try:
        payload = json.loads(raw_body or b"{}")
    except ValueError:
        logger.warning(f"[Pagamentos][Webhook] Corpo inválido recebido de {provider}")
        return {"status": "ignored", "reason": "invalid_body"}
    if not isinstance(payload, dict):
        return {"status": "ignored", "reason": "invalid_body"}

    headers = {k.lower(): v for k, v in request.headers.items()}
    return await svc.handle_webhook(provider, payload, headers, raw_body)
