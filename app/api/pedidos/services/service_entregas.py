from __future__ import annotations

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.api.cadastros.contracts.entregador_contract import EntregadorDTO
from app.api.cadastros.services.service_entregadores import EntregadoresService
from app.api.notifications.services.pedido_event_publisher import PedidoEventPublisher
from app.api.pedidos.models.model_pedido import PedidoModel, StatusPedido
from app.api.pedidos.repositories.repo_pedidos import PedidoRepository
from app.api.pedidos.schemas.schema_pedido import LocalizacaoRequest, PedidoOut, PedidoListResponse
from app.api.pedidos.services.maquina_status import ESTADOS_EM_ROTA
from app.api.pedidos.services.service_pedido import PedidoService
from app.utils.database_utils import now_trimmed, paginacao
from app.utils.logger import logger

# Status que o próprio entregador pode informar depois de retirar o pedido
STATUS_DO_ENTREGADOR = {StatusPedido.IN_TRANSIT, StatusPedido.OUT_FOR_DELIVERY, StatusPedido.DELIVERED}


class EntregaService:
    """Operações do app do entregador: disponibilidade, aceite, rota e posição."""

    def __init__(
        self,
        db: Session,
        pedido_service: PedidoService,
        entregadores: EntregadoresService,
        eventos: PedidoEventPublisher,
    ):
        self.db = db
        self.repo = PedidoRepository(db)
        self.pedido_service = pedido_service
        self.entregadores = entregadores
        self.eventos = eventos

    def _get_entregador(self, user_id: int) -> EntregadorDTO:
        return self.entregadores.get_por_usuario(user_id)

    def _get_pedido_do_entregador(self, entregador_id: int, pedido_id: int) -> PedidoModel:
        pedido = self.repo.get_pedido(pedido_id)
        if not pedido:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Pedido não encontrado")
        if pedido.entregador_id != entregador_id:
            raise HTTPException(status.HTTP_403_FORBIDDEN, "Pedido não está vinculado a este entregador")
        return pedido

    # ---------------- Disponibilidade ----------------
    def definir_online(self, user_id: int, online: bool) -> EntregadorDTO:
        return self.entregadores.atualizar_status_online(user_id, online)

    def listar_disponiveis(self, user_id: int) -> list[PedidoOut]:
        self._get_entregador(user_id)
        return [PedidoService.pedido_to_out(p) for p in self.repo.list_disponiveis_para_entrega()]

    # ---------------- Aceite ----------------
    def aceitar_entrega(self, user_id: int, pedido_id: int) -> PedidoOut:
        """
        Vincula o entregador ao pedido.

        A decisão é do UPDATE condicional (READY e sem entregador): entre dois
        entregadores aceitando ao mesmo tempo, só um altera a linha.
        """
        entregador = self._get_entregador(user_id)
        if not entregador.online:
            raise HTTPException(status.HTTP_409_CONFLICT, "Entregador precisa estar online para aceitar entregas")

        pedido = self.repo.get_pedido(pedido_id)
        if not pedido:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Pedido não encontrado")

        agora = now_trimmed()
        try:
            vinculado = self.repo.vincular_entregador_se_disponivel(pedido_id, entregador.id, agora)
            if not vinculado:
                self.repo.rollback()
                self.db.expire_all()
                atual = self.repo.get_pedido(pedido_id)
                if atual.status != StatusPedido.READY:
                    raise HTTPException(status.HTTP_409_CONFLICT, "Pedido não está pronto para retirada")
                raise HTTPException(status.HTTP_409_CONFLICT, "Pedido já possui entregador")

            self.repo.add_historico(
                pedido,
                StatusPedido.PICKED_UP,
                status_anterior=StatusPedido.READY,
                usuario_id=user_id,
                motivo="Entrega aceita pelo entregador",
                created_at=agora,
            )
            self.repo.commit()
        except HTTPException:
            raise
        except Exception:
            self.repo.rollback()
            raise

        self.db.expire_all()
        pedido = self.repo.get_pedido(pedido_id)
        logger.info("[Entregas] Pedido %s aceito pelo entregador %s", pedido_id, entregador.id)
        self.eventos.entrega_aceita(PedidoService.snapshot(pedido))
        return PedidoService.pedido_to_out(pedido)

    # ---------------- Rota ----------------
    def entrega_atual(self, user_id: int) -> PedidoOut | None:
        entregador = self._get_entregador(user_id)
        pedido = self.repo.get_entrega_atual(entregador.id)
        return PedidoService.pedido_to_out(pedido) if pedido else None

    def historico_entregas(self, user_id: int, page: int = 1, limit: int = 20) -> PedidoListResponse:
        entregador = self._get_entregador(user_id)
        pedidos, total = self.repo.list_entregas_concluidas(entregador.id, (page - 1) * limit, limit)
        return PedidoListResponse(
            data=[PedidoService.pedido_to_out(p) for p in pedidos],
            meta=paginacao(total, page, limit),
        )

    def atualizar_status(self, user_id: int, pedido_id: int, novo_status: StatusPedido, motivo: str | None = None) -> PedidoOut:
        entregador = self._get_entregador(user_id)
        self._get_pedido_do_entregador(entregador.id, pedido_id)
        if novo_status not in STATUS_DO_ENTREGADOR:
            raise HTTPException(
                status.HTTP_400_BAD_REQUEST,
                f"Entregador não pode definir o status {StatusPedido(novo_status).value}",
            )
        return self.pedido_service.atualizar_status(pedido_id, novo_status, usuario_id=user_id, motivo=motivo)

    def atualizar_localizacao(self, user_id: int, payload: LocalizacaoRequest) -> dict:
        entregador = self._get_entregador(user_id)

        if payload.pedido_id is not None:
            pedido = self._get_pedido_do_entregador(entregador.id, payload.pedido_id)
            if pedido.status not in ESTADOS_EM_ROTA:
                raise HTTPException(status.HTTP_400_BAD_REQUEST, "Pedido não está em rota de entrega")

        localizacao = self.entregadores.atualizar_localizacao(
            entregador.id,
            payload.latitude,
            payload.longitude,
            precisao=payload.precisao,
            velocidade=payload.velocidade,
            direcao=payload.direcao,
        )

        if payload.pedido_id is not None:
            self.eventos.localizacao_entregador(payload.pedido_id, localizacao)
        return localizacao
