from __future__ import annotations

import random
import string
from datetime import timedelta
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.api.cadastros.contracts.cliente_contract import IClienteContract, ClienteDTO
from app.api.cadastros.contracts.entregador_contract import IEntregadorContract
from app.api.cadastros.contracts.restaurante_contract import IRestauranteContract, RestauranteDTO
from app.api.configuracoes.contracts.configuracoes_contract import IConfiguracoesContract
from app.api.financeiro.contracts.liquidacao_contract import ILiquidacaoContract
from app.api.notifications.services.pedido_event_publisher import PedidoEventPublisher
from app.api.pedidos.models.model_pedido import (
    PedidoModel,
    StatusPedido,
    MetodoPagamento,
    StatusPagamento,
)
from app.api.pedidos.models.model_pedido_item import PedidoItemModel
from app.api.pedidos.repositories.repo_pedidos import PedidoRepository
from app.api.pedidos.schemas.schema_pedido import (
    CriarPedidoRequest,
    PedidoOut,
    PedidoListResponse,
)
from app.api.pedidos.services.maquina_status import CAMPO_MARCO, validar_transicao
from app.utils.database_utils import now_trimmed, paginacao
from app.utils.formatacao import formatar_brl, quantizar
from app.utils.logger import logger

# Cliente só cancela antes do restaurante assumir o preparo
STATUS_CANCELAVEIS_PELO_CLIENTE = {StatusPedido.PENDING, StatusPedido.PAID, StatusPedido.CONFIRMED}


class PedidoService:
    def __init__(
        self,
        db: Session,
        cliente_contract: IClienteContract,
        restaurante_contract: IRestauranteContract,
        configuracoes: IConfiguracoesContract,
        eventos: PedidoEventPublisher,
        liquidacao: Optional[ILiquidacaoContract] = None,
        entregador_contract: Optional[IEntregadorContract] = None,
    ):
        self.db = db
        self.repo = PedidoRepository(db)
        self.cliente_contract = cliente_contract
        self.restaurante_contract = restaurante_contract
        self.configuracoes = configuracoes
        self.eventos = eventos
        self.liquidacao = liquidacao
        self.entregador_contract = entregador_contract

    # ---------------- Helpers ----------------
    @staticmethod
    def pedido_to_out(pedido: PedidoModel) -> PedidoOut:
        return PedidoOut.model_validate(pedido)

    @classmethod
    def snapshot(cls, pedido: PedidoModel) -> dict:
        """Representação serializável usada nos eventos de tempo real."""
        return cls.pedido_to_out(pedido).model_dump(mode="json")

    def _gerar_numero_pedido(self) -> str:
        prefixo = now_trimmed().strftime("%y%m%d")
        for _ in range(10):
            sufixo = "".join(random.choices(string.digits, k=6))
            numero = f"{prefixo}{sufixo}"
            if not self.repo.numero_existe(numero):
                return numero
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Não foi possível gerar o número do pedido")

    def _get_pedido(self, pedido_id: int) -> PedidoModel:
        pedido = self.repo.get_pedido(pedido_id)
        if not pedido:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Pedido não encontrado")
        return pedido

    def _get_cliente(self, user_id: int) -> ClienteDTO:
        cliente = self.cliente_contract.obter_cliente_por_usuario(user_id)
        if not cliente:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Cliente não encontrado")
        return cliente

    def _get_restaurante_do_usuario(self, user_id: int) -> RestauranteDTO:
        restaurante = self.restaurante_contract.obter_restaurante_por_usuario(user_id)
        if not restaurante:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Restaurante não encontrado para este usuário")
        return restaurante

    def _pedido_minimo(self, restaurante: RestauranteDTO) -> Decimal:
        if restaurante.pedido_minimo is not None:
            return Decimal(restaurante.pedido_minimo)
        return Decimal(self.configuracoes.get_or_default("order_min_value", Decimal("0")))

    def _resolver_endereco(self, cliente_id: int, payload: CriarPedidoRequest) -> dict:
        if payload.endereco_id is not None and payload.endereco_entrega is not None:
            raise HTTPException(
                status.HTTP_400_BAD_REQUEST,
                "Informe apenas um endereço: endereco_id ou endereco_entrega",
            )
        if payload.endereco_id is not None:
            snapshot = self.cliente_contract.obter_snapshot_endereco(cliente_id, payload.endereco_id)
            if not snapshot:
                raise HTTPException(status.HTTP_404_NOT_FOUND, "Endereço não encontrado")
            return snapshot
        if payload.endereco_entrega is not None:
            return payload.endereco_entrega.model_dump()
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Endereço de entrega é obrigatório")

    # ---------------- Criação ----------------
    def criar_pedido(self, user_id: int, payload: CriarPedidoRequest) -> PedidoOut:
        cliente = self._get_cliente(user_id)

        restaurante = self.restaurante_contract.obter_restaurante(payload.restaurante_id)
        if not restaurante:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Restaurante não encontrado")
        if not restaurante.aberto:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, "Restaurante fechado no momento")

        endereco = self._resolver_endereco(cliente.id, payload)

        ids = list({i.item_cardapio_id for i in payload.itens})
        cardapio = {i.id: i for i in self.restaurante_contract.listar_itens(restaurante.id, ids)}

        itens: list[PedidoItemModel] = []
        subtotal = Decimal("0")
        for item in payload.itens:
            produto = cardapio.get(item.item_cardapio_id)
            if produto is None:
                raise HTTPException(
                    status.HTTP_400_BAD_REQUEST,
                    "Itens do cardápio inválidos",
                )
            if not produto.disponivel:
                raise HTTPException(status.HTTP_400_BAD_REQUEST, f"Itens do cardápio inválidos: {produto.nome} indisponível")

            preco_unitario = quantizar(produto.preco)
            preco_total = quantizar(preco_unitario * item.quantidade)
            subtotal += preco_total
            itens.append(
                PedidoItemModel(
                    item_cardapio_id=produto.id,
                    nome=produto.nome,
                    quantidade=item.quantidade,
                    preco_unitario=preco_unitario,
                    preco_total=preco_total,
                    observacao=item.observacao,
                )
            )

        minimo = self._pedido_minimo(restaurante)
        if subtotal < minimo:
            raise HTTPException(
                status.HTTP_400_BAD_REQUEST,
                f"Pedido mínimo de {formatar_brl(minimo)}. Seu pedido: {formatar_brl(subtotal)}",
            )

        # Cupons ainda não são aplicados; o código fica registrado nas observações
        desconto = Decimal("0")
        taxa_entrega = quantizar(restaurante.taxa_entrega or 0)
        valor_total = quantizar(subtotal + taxa_entrega - desconto)

        observacoes = payload.observacoes
        if payload.cupom:
            observacoes = f"{observacoes or ''} [cupom: {payload.cupom}]".strip()

        agora = now_trimmed()
        minutos = restaurante.tempo_estimado_min or int(
            self.configuracoes.get_or_default("estimated_delivery_minutes", 45)
        )

        pedido = PedidoModel(
            numero_pedido=self._gerar_numero_pedido(),
            cliente_id=cliente.id,
            restaurante_id=restaurante.id,
            status=StatusPedido.PENDING,
            subtotal=subtotal,
            taxa_entrega=taxa_entrega,
            desconto=desconto,
            valor_total=valor_total,
            metodo_pagamento=payload.metodo_pagamento,
            status_pagamento=StatusPagamento.PENDING,
            endereco_snapshot=endereco,
            observacoes=observacoes,
            previsao_entrega=agora + timedelta(minutes=minutos),
            created_at=agora,
            updated_at=agora,
        )
        pedido.itens = itens

        try:
            self.repo.add(pedido)
            self.repo.add_historico(pedido, StatusPedido.PENDING, usuario_id=user_id, created_at=agora)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        pedido = self._get_pedido(pedido.id)
        logger.info(
            "[Pedidos] Pedido %s criado (id=%s restaurante=%s total=%s)",
            pedido.numero_pedido, pedido.id, pedido.restaurante_id, pedido.valor_total,
        )
        self.eventos.pedido_criado(self.snapshot(pedido))
        return self.pedido_to_out(pedido)

    # ---------------- Status ----------------
    def atualizar_status(
        self,
        pedido_id: int,
        novo_status: StatusPedido,
        usuario_id: int | None = None,
        motivo: str | None = None,
    ) -> PedidoOut:
        """
        Aplica uma transição da máquina de estados.

        A escrita é condicional ao status lido: se outra operação mudou o pedido
        no meio do caminho, nada é gravado e retorna 409.
        """
        pedido = self._get_pedido(pedido_id)
        anterior = StatusPedido(pedido.status)
        novo_status = StatusPedido(novo_status)
        validar_transicao(anterior, novo_status)

        agora = now_trimmed()
        valores = {PedidoModel.status: novo_status, PedidoModel.updated_at: agora}
        campo = CAMPO_MARCO.get(novo_status)
        if campo:
            valores[getattr(PedidoModel, campo)] = agora
        if novo_status == StatusPedido.PAID:
            valores[PedidoModel.status_pagamento] = StatusPagamento.PAID
        if (
            novo_status == StatusPedido.DELIVERED
            and pedido.metodo_pagamento == MetodoPagamento.CASH
            and pedido.status_pagamento == StatusPagamento.PENDING
        ):
            # Dinheiro é recebido na entrega
            valores[PedidoModel.status_pagamento] = StatusPagamento.PAID

        try:
            if not self.repo.atualizar_status_se_atual(pedido.id, anterior, valores):
                self.repo.rollback()
                raise HTTPException(
                    status.HTTP_409_CONFLICT,
                    "Pedido foi alterado por outra operação. Atualize e tente novamente.",
                )
            self.repo.add_historico(
                pedido, novo_status, status_anterior=anterior, usuario_id=usuario_id, motivo=motivo, created_at=agora
            )
            self.repo.commit()
        except HTTPException:
            raise
        except Exception:
            self.repo.rollback()
            raise

        pedido = self._get_pedido(pedido_id)
        logger.info("[Pedidos] Pedido %s: %s -> %s", pedido.id, anterior.value, novo_status.value)
        self.eventos.status_atualizado(self.snapshot(pedido))

        if novo_status == StatusPedido.DELIVERED and self.liquidacao is not None:
            self._liquidar(pedido.id)
            pedido = self._get_pedido(pedido_id)

        return self.pedido_to_out(pedido)

    def liquidar_se_entregue(self, pedido_id: int) -> None:
        """Pagamento confirmado depois da entrega: gera os ganhos que ficaram pendentes."""
        if self.liquidacao is None:
            return
        pedido = self._get_pedido(pedido_id)
        if pedido.status == StatusPedido.DELIVERED:
            self._liquidar(pedido_id)

    def _liquidar(self, pedido_id: int) -> None:
        # A entrega já está gravada; falha aqui é reprocessada pelo backfill
        try:
            self.liquidacao.processar_pedido_entregue(pedido_id)
        except Exception as e:
            logger.error("[Pedidos] Falha ao liquidar pedido %s: %s", pedido_id, e, exc_info=True)

    def atualizar_status_restaurante(
        self, user_id: int, pedido_id: int, novo_status: StatusPedido, motivo: str | None = None
    ) -> PedidoOut:
        restaurante = self._get_restaurante_do_usuario(user_id)
        pedido = self._get_pedido(pedido_id)
        if pedido.restaurante_id != restaurante.id:
            raise HTTPException(status.HTTP_403_FORBIDDEN, "Pedido não pertence ao seu restaurante")
        return self.atualizar_status(pedido_id, novo_status, usuario_id=user_id, motivo=motivo)

    def cancelar_pedido_cliente(self, user_id: int, pedido_id: int, motivo: str | None = None) -> PedidoOut:
        cliente = self._get_cliente(user_id)
        pedido = self._get_pedido(pedido_id)
        if pedido.cliente_id != cliente.id:
            raise HTTPException(status.HTTP_403_FORBIDDEN, "Pedido não pertence ao cliente")
        if pedido.status not in STATUS_CANCELAVEIS_PELO_CLIENTE:
            raise HTTPException(
                status.HTTP_400_BAD_REQUEST,
                "Pedido não pode mais ser cancelado. Entre em contato com o restaurante.",
            )
        return self.atualizar_status(
            pedido_id, StatusPedido.CANCELLED, usuario_id=user_id, motivo=motivo or "Cancelado pelo cliente"
        )

    # ---------------- Consultas ----------------
    def get_pedido(self, pedido_id: int) -> PedidoOut:
        return self.pedido_to_out(self._get_pedido(pedido_id))

    def get_pedido_cliente(self, user_id: int, pedido_id: int) -> PedidoOut:
        cliente = self._get_cliente(user_id)
        pedido = self._get_pedido(pedido_id)
        if pedido.cliente_id != cliente.id:
            raise HTTPException(status.HTTP_403_FORBIDDEN, "Pedido não pertence ao cliente")
        return self.pedido_to_out(pedido)

    def get_pedido_restaurante(self, user_id: int, pedido_id: int) -> PedidoOut:
        restaurante = self._get_restaurante_do_usuario(user_id)
        pedido = self._get_pedido(pedido_id)
        if pedido.restaurante_id != restaurante.id:
            raise HTTPException(status.HTTP_403_FORBIDDEN, "Pedido não pertence ao seu restaurante")
        return self.pedido_to_out(pedido)

    def listar_pedidos_cliente(self, user_id: int, page: int = 1, limit: int = 20) -> PedidoListResponse:
        cliente = self._get_cliente(user_id)
        pedidos, total = self.repo.list_by_cliente(cliente.id, (page - 1) * limit, limit)
        return PedidoListResponse(
            data=[self.pedido_to_out(p) for p in pedidos],
            meta=paginacao(total, page, limit),
        )

    def listar_pedidos_restaurante(
        self,
        user_id: int,
        status_filtro: StatusPedido | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> PedidoListResponse:
        restaurante = self._get_restaurante_do_usuario(user_id)
        pedidos, total = self.repo.list_by_restaurante(restaurante.id, status_filtro, (page - 1) * limit, limit)
        return PedidoListResponse(
            data=[self.pedido_to_out(p) for p in pedidos],
            meta=paginacao(total, page, limit),
        )

    def get_rastreamento(self, pedido_id: int) -> dict:
        """Dados de acompanhamento: status, entregador com última posição e restaurante."""
        pedido = self._get_pedido(pedido_id)

        entregador = None
        if pedido.entregador_id and self.entregador_contract is not None:
            dto = self.entregador_contract.obter_entregador(pedido.entregador_id)
            if dto:
                entregador = {
                    "id": dto.id,
                    "name": dto.nome,
                    "phone": dto.telefone,
                    "vehicleType": dto.tipo_veiculo,
                    "vehiclePlate": dto.placa,
                    "location": {
                        "latitude": dto.latitude,
                        "longitude": dto.longitude,
                        "lastUpdate": dto.ultima_localizacao_em.isoformat() if dto.ultima_localizacao_em else None,
                    },
                }

        restaurante = None
        dto_restaurante = self.restaurante_contract.obter_restaurante(pedido.restaurante_id)
        if dto_restaurante:
            restaurante = {
                "id": dto_restaurante.id,
                "name": dto_restaurante.nome,
                "address": dto_restaurante.endereco,
                "latitude": dto_restaurante.latitude,
                "longitude": dto_restaurante.longitude,
            }

        return {
            "orderId": pedido.id,
            "orderNumber": pedido.numero_pedido,
            "status": pedido.status.value,
            "statusDescription": pedido.status_descricao,
            "driver": entregador,
            "restaurant": restaurante,
            "deliveryAddress": pedido.endereco_snapshot,
            "estimatedDelivery": pedido.previsao_entrega.isoformat() if pedido.previsao_entrega else None,
        }
