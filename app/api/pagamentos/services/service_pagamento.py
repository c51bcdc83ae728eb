from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.api.cadastros.contracts.cliente_contract import IClienteContract
from app.api.pagamentos.contracts.gateway_contract import (
    CardDataInput,
    CardVault,
    OrderData,
    PaymentData,
    PaymentGateway,
    PaymentResult,
    RefundRequest,
    UserData,
    WebhookResult,
)
from app.api.pagamentos.gateways.pix_local import gerar_pix_local
from app.api.pagamentos.gateways.registry import GatewayRegistry
from app.api.pagamentos.schemas.schema_pagamento import ProcessarPagamentoRequest
from app.api.pagamentos.services.service_cartoes import CartoesService, user_data_do_cliente
from app.api.pedidos.models.model_pedido import (
    MetodoPagamento,
    PedidoModel,
    StatusPagamento,
    StatusPedido,
)
from app.api.pedidos.repositories.repo_pedidos import PedidoRepository
from app.api.pedidos.services.service_pedido import PedidoService
from app.config import settings
from app.core.admin_dependencies import UsuarioAutenticado
from app.utils.logger import logger

METODOS_CARTAO = {MetodoPagamento.CREDIT_CARD, MetodoPagamento.DEBIT_CARD}
STATUS_PEDIDO_ENCERRADO = {StatusPedido.CANCELLED, StatusPedido.REJECTED}
# Registros de pagamento que não existem em nenhum provedor
GATEWAYS_LOCAIS = {"cash", "pix_local"}
CODIGO_TIMEOUT = "GATEWAY_TIMEOUT"


def _ignorado(motivo: str) -> Dict[str, Any]:
    return {"status": "ignored", "reason": motivo}


class PagamentoService:
    """
    Orquestra pagamento de pedidos sobre o registro de gateways.

    Falha ou indisponibilidade de provedor volta como `PaymentResult` (nunca
    troca o método escolhido pelo cliente). Só erros de regra do pedido viram
    HTTPException.
    """

    def __init__(
        self,
        db: Session,
        registry: GatewayRegistry,
        pedido_service: PedidoService,
        cliente_contract: IClienteContract,
        cartoes: CartoesService,
    ):
        self.db = db
        self.repo = PedidoRepository(db)
        self.registry = registry
        self.pedido_service = pedido_service
        self.cliente_contract = cliente_contract
        self.cartoes = cartoes

    # ---------------- Helpers ----------------
    def _get_pedido(self, pedido_id: int) -> PedidoModel:
        pedido = self.repo.get_pedido(pedido_id)
        if not pedido:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Pedido não encontrado")
        return pedido

    @staticmethod
    def _order_data(pedido: PedidoModel) -> OrderData:
        restaurante = pedido.restaurante
        return OrderData(
            id=pedido.id,
            numero=pedido.numero_pedido,
            cliente_id=pedido.cliente_id,
            restaurante_id=pedido.restaurante_id,
            restaurante_nome=restaurante.nome if restaurante else "Restaurante",
            restaurante_cidade=restaurante.cidade if restaurante else None,
            tentativa=(pedido.tentativas_pagamento or 0) + 1,
        )

    def _avancar_para_pago(self, pedido_id: int) -> None:
        """PENDING -> PAID pela máquina de estados. Conflito é só registrado: o pagamento já foi gravado."""
        try:
            self.pedido_service.atualizar_status(pedido_id, StatusPedido.PAID, motivo="Pagamento confirmado")
        except HTTPException as e:
            logger.warning("[Pagamentos] Pedido %s não avançou para PAID: %s", pedido_id, e.detail)

    def _registrar_pagamento(
        self, pedido: PedidoModel, gateway: str, result: PaymentResult, metodo: MetodoPagamento
    ) -> None:
        valores = {
            PedidoModel.gateway_pagamento: gateway,
            PedidoModel.status_pagamento: result.status,
            PedidoModel.metodo_pagamento: metodo,
        }
        if result.payment_id:
            valores[PedidoModel.pagamento_id] = result.payment_id
        if result.error_code != CODIGO_TIMEOUT:
            # Resultado definitivo: a próxima tentativa usa outra chave de idempotência
            valores[PedidoModel.tentativas_pagamento] = PedidoModel.tentativas_pagamento + 1
        try:
            self.repo.atualizar_pagamento(pedido.id, valores)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

    # ---------------- Métodos disponíveis ----------------
    def metodos_disponiveis(self) -> dict:
        resposta = self.registry.get_available_payment_methods()
        chaves = {}
        for nome in ("stripe", "mercadopago"):
            gateway = self.registry.get(nome)
            if gateway is not None and gateway.is_enabled():
                chaves[nome] = gateway.config.public_key
        resposta["publicKeys"] = chaves
        return resposta

    # ---------------- Processamento ----------------
    async def process_payment(self, user: UsuarioAutenticado, payload: ProcessarPagamentoRequest) -> dict:
        cliente = self.cliente_contract.obter_cliente_por_usuario(user.id)
        if not cliente:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Cliente não encontrado")

        pedido = self._get_pedido(payload.pedido_id)
        if pedido.cliente_id != cliente.id:
            raise HTTPException(status.HTTP_403_FORBIDDEN, "Pedido não pertence ao cliente")
        if pedido.status_pagamento == StatusPagamento.PAID:
            raise HTTPException(status.HTTP_409_CONFLICT, "Pedido já pago")
        if pedido.status in STATUS_PEDIDO_ENCERRADO:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, "Pedido encerrado não pode ser pago")

        metodo = MetodoPagamento(payload.metodo or pedido.metodo_pagamento)
        amount = Decimal(pedido.valor_total)
        order = self._order_data(pedido)
        usuario = user_data_do_cliente(cliente, user.email)

        gateway_nome, result = await self._executar(metodo, payload, order, amount, usuario, cliente.id)
        if gateway_nome is None:
            # Nada foi cobrado: o pedido fica como estava
            return {**result.to_dict(), "orderId": pedido.id}

        self._registrar_pagamento(pedido, gateway_nome, result, metodo)
        logger.info(
            "[Pagamentos] Pedido %s via %s (%s): %s",
            pedido.id, gateway_nome, metodo.value, result.status.value,
        )

        if result.status == StatusPagamento.PAID and pedido.status == StatusPedido.PENDING:
            self._avancar_para_pago(pedido.id)

        return {**result.to_dict(), "orderId": pedido.id, "gateway": gateway_nome}

    async def _executar(
        self,
        metodo: MetodoPagamento,
        payload: ProcessarPagamentoRequest,
        order: OrderData,
        amount: Decimal,
        usuario: UserData,
        cliente_id: int,
    ) -> tuple[Optional[str], PaymentResult]:
        configuracao = self.registry.configuracao

        if metodo == MetodoPagamento.CASH:
            if not configuracao.cash_enabled:
                return None, self._indisponivel()
            return "cash", PaymentResult(success=True, status=StatusPagamento.PENDING)

        if metodo == MetodoPagamento.PIX:
            if not self.registry.has_pix_payment():
                return None, self._indisponivel()
            gateway = self.registry.get_pix_gateway()
            if gateway is None:
                result = gerar_pix_local(order, amount, configuracao.pix_key, configuracao.pix_expiracao_minutos)
                return "pix_local", result
            result = await gateway.create_payment(order, amount, PaymentData(method=metodo.value), usuario)
            return result.metadata.get("gateway") or gateway.name, result

        # Cartão
        if not configuracao.card_enabled:
            return None, self._indisponivel()

        saved_card = None
        if payload.saved_card_id is not None:
            saved_card = self.cartoes.get_saved_card(cliente_id, payload.saved_card_id)
            gateway = self.registry.get(saved_card.provider)
            if gateway is None or not gateway.is_enabled() or not isinstance(gateway, CardVault):
                return None, self._indisponivel()
        else:
            gateway = self.registry.select_card_gateway(payload.gateway)
            if gateway is None:
                return None, self._indisponivel()

        payment_data = PaymentData(
            method=metodo.value,
            card_token=payload.card_token,
            card_data=self._card_data(payload),
            saved_card=saved_card,
            security_code=payload.security_code,
            installments=payload.installments,
        )
        return gateway.name, await gateway.create_payment(order, amount, payment_data, usuario)

    @staticmethod
    def _card_data(payload: ProcessarPagamentoRequest) -> Optional[CardDataInput]:
        if payload.card_data is None:
            return None
        return CardDataInput(**payload.card_data.model_dump())

    @staticmethod
    def _indisponivel() -> PaymentResult:
        return PaymentResult.falha("Forma de pagamento indisponível no momento", "METHOD_UNAVAILABLE")

    # ---------------- Webhooks ----------------
    async def handle_webhook(
        self, provider: str, payload: Dict[str, Any], headers: Dict[str, str], raw_body: bytes
    ) -> Dict[str, Any]:
        """
        Notificação do provedor. Sempre respondida com 200: o que não gera ação
        volta como `ignored` com o motivo.
        """
        gateway: Optional[PaymentGateway] = self.registry.get(provider)
        if gateway is None or not gateway.is_configured():
            logger.warning("[Pagamentos][Webhook] Gateway %s não configurado", provider)
            return _ignorado("gateway_not_configured")

        result: WebhookResult = await gateway.process_webhook(payload, headers, raw_body)
        if not result.success:
            return _ignorado(result.error or "invalid")
        if result.status is None:
            return _ignorado("event_not_handled")

        pedido = None
        if result.order_id is not None:
            pedido = self.repo.get_pedido(result.order_id)
        if pedido is None and result.payment_id:
            pedido = self.repo.get_by_pagamento(provider, result.payment_id)
        if pedido is None:
            logger.warning(
                "[Pagamentos][Webhook] %s: pedido não encontrado (order=%s, payment=%s)",
                provider, result.order_id, result.payment_id,
            )
            return _ignorado("order_not_found")

        return self._aplicar_status_webhook(pedido, provider, result)

    def _aplicar_status_webhook(self, pedido: PedidoModel, provider: str, result: WebhookResult) -> Dict[str, Any]:
        atual = StatusPagamento(pedido.status_pagamento)
        novo = result.status

        if atual == novo:
            return _ignorado("already_processed")
        if atual == StatusPagamento.REFUNDED:
            return _ignorado("already_refunded")
        if atual == StatusPagamento.PAID and novo in (StatusPagamento.PENDING, StatusPagamento.FAILED):
            # Notificação atrasada não desfaz pagamento confirmado
            return _ignorado("stale_notification")

        valores = {PedidoModel.status_pagamento: novo, PedidoModel.gateway_pagamento: provider}
        if result.payment_id:
            valores[PedidoModel.pagamento_id] = result.payment_id
        try:
            self.repo.atualizar_pagamento(pedido.id, valores)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info("[Pagamentos][Webhook] %s: pedido %s %s -> %s", provider, pedido.id, atual.value, novo.value)
        if novo == StatusPagamento.PAID:
            if pedido.status == StatusPedido.PENDING:
                self._avancar_para_pago(pedido.id)
            else:
                self.pedido_service.liquidar_se_entregue(pedido.id)

        return {"status": "processed", "orderId": pedido.id, "paymentStatus": novo.value}

    # ---------------- Estorno ----------------
    async def refund(self, pedido_id: int, valor: Optional[Decimal] = None, motivo: Optional[str] = None) -> dict:
        pedido = self._get_pedido(pedido_id)
        if pedido.status_pagamento != StatusPagamento.PAID:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, "Somente pagamentos confirmados podem ser estornados")
        if not pedido.gateway_pagamento or pedido.gateway_pagamento in GATEWAYS_LOCAIS or not pedido.pagamento_id:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, "Pagamento não foi feito por um gateway")

        total = Decimal(pedido.valor_total)
        if valor is not None and valor > total:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, "Valor do estorno maior que o valor do pedido")

        gateway = self.registry.get(pedido.gateway_pagamento)
        if gateway is None or not gateway.is_configured():
            raise HTTPException(status.HTTP_400_BAD_REQUEST, f"Gateway {pedido.gateway_pagamento} não configurado")

        result = await gateway.refund(RefundRequest(payment_id=pedido.pagamento_id, amount=valor, reason=motivo))
        if not result.success:
            logger.error("[Pagamentos] Estorno do pedido %s falhou: %s", pedido.id, result.error)
            raise HTTPException(status.HTTP_400_BAD_REQUEST, result.error or "Falha ao estornar pagamento")

        integral = valor is None or valor >= total
        if integral:
            self.repo.atualizar_pagamento(pedido.id, {PedidoModel.status_pagamento: StatusPagamento.REFUNDED})
            self.repo.commit()

        logger.info("[Pagamentos] Estorno %s do pedido %s (%s)", result.refund_id, pedido.id, "integral" if integral else "parcial")
        return {
            "success": True,
            "orderId": pedido.id,
            "refundId": result.refund_id,
            "amount": str(result.amount if result.amount is not None else (valor or total)),
            "status": result.status,
            "paymentStatus": StatusPagamento.REFUNDED.value if integral else StatusPagamento.PAID.value,
        }

    # ---------------- Simulação (desenvolvimento) ----------------
    def simulate_payment_confirmation(self, pedido_id: int) -> dict:
        if not settings.ALLOW_PAYMENT_SIMULATION:
            raise HTTPException(status.HTTP_403_FORBIDDEN, "Simulação de pagamento desabilitada")

        pedido = self._get_pedido(pedido_id)
        if pedido.status_pagamento == StatusPagamento.PAID:
            raise HTTPException(status.HTTP_409_CONFLICT, "Pedido já pago")

        self.repo.atualizar_pagamento(
            pedido.id,
            {
                PedidoModel.status_pagamento: StatusPagamento.PAID,
                PedidoModel.gateway_pagamento: pedido.gateway_pagamento or "simulado",
            },
        )
        self.repo.commit()
        logger.warning("[Pagamentos] Pagamento do pedido %s confirmado por simulação", pedido.id)

        if pedido.status == StatusPedido.PENDING:
            self._avancar_para_pago(pedido.id)
        self.pedido_service.liquidar_se_entregue(pedido.id)
        return {"success": True, "orderId": pedido.id, "paymentStatus": StatusPagamento.PAID.value}
