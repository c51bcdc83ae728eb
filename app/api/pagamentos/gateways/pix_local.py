from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from app.api.pagamentos.contracts.gateway_contract import OrderData, PaymentResult
from app.api.pagamentos.utils.pix import build_pix_payload, gerar_txid
from app.api.pagamentos.utils.pix_qrcode import render_qr_code_data_url
from app.api.pedidos.models.model_pedido import StatusPagamento
from app.utils.database_utils import now_trimmed
from app.utils.logger import logger

CIDADE_PADRAO = "SAO PAULO"


def gerar_pix_local(order: OrderData, amount: Decimal, pix_key: str, expiracao_minutos: int = 30) -> PaymentResult:
    """PIX estático gerado localmente, usado quando nenhum gateway PIX responde."""
    payload = build_pix_payload(
        pix_key=pix_key,
        merchant_name=order.restaurante_nome,
        city=order.restaurante_cidade or CIDADE_PADRAO,
        amount=amount,
        txid=gerar_txid(order.numero),
    )
    logger.info("[Pagamentos][PIX] PIX local gerado para o pedido %s", order.id)
    return PaymentResult(
        success=True,
        status=StatusPagamento.PENDING,
        payment_id=f"pix_{order.id}",
        pix_code=payload,
        pix_qr_code=render_qr_code_data_url(payload),
        pix_expires_at=now_trimmed() + timedelta(minutes=expiracao_minutos),
        metadata={"gateway": "pix_local"},
    )
