from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.api.cadastros.adapters.entregador_adapter import entregador_to_dto
from app.api.cadastros.contracts.entregador_contract import EntregadorDTO
from app.api.cadastros.models.model_entregador import EntregadorModel, EntregadorLocalizacaoModel
from app.api.cadastros.repositories.repo_entregadores import EntregadorRepository
from app.utils.database_utils import now_trimmed
from app.utils.logger import logger


class EntregadoresService:
    """Estado operacional do entregador: disponibilidade e posição."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = EntregadorRepository(db)

    def _get_model(self, *, entregador_id: int | None = None, user_id: int | None = None) -> EntregadorModel:
        entregador = self.repo.get(entregador_id) if entregador_id is not None else self.repo.get_by_user(user_id)
        if not entregador:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Entregador não encontrado")
        return entregador

    def get_por_usuario(self, user_id: int) -> EntregadorDTO:
        return entregador_to_dto(self._get_model(user_id=user_id))

    def atualizar_status_online(self, user_id: int, online: bool) -> EntregadorDTO:
        entregador = self._get_model(user_id=user_id)
        entregador.online = online
        self.repo.commit()
        self.db.refresh(entregador)
        logger.info("[Entregadores] entregador_id=%s online=%s", entregador.id, online)
        return entregador_to_dto(entregador)

    def atualizar_localizacao(
        self,
        entregador_id: int,
        latitude: float,
        longitude: float,
        precisao: Optional[float] = None,
        velocidade: Optional[float] = None,
        direcao: Optional[float] = None,
    ) -> dict:
        """Grava a posição atual e o histórico. O repasse ao mapa do pedido fica com o chamador."""
        entregador = self._get_model(entregador_id=entregador_id)
        agora = now_trimmed()

        entregador.latitude_atual = latitude
        entregador.longitude_atual = longitude
        entregador.ultima_localizacao_em = agora

        self.repo.add_localizacao(
            EntregadorLocalizacaoModel(
                entregador_id=entregador.id,
                latitude=latitude,
                longitude=longitude,
                precisao=precisao,
                velocidade=velocidade,
                direcao=direcao,
                created_at=agora,
            )
        )
        self.repo.commit()

        return {
            "entregador_id": entregador.id,
            "latitude": latitude,
            "longitude": longitude,
            "atualizado_em": agora.isoformat(),
        }
