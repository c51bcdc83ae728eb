from typing import Optional

from sqlalchemy.orm import Session

from app.api.cadastros.contracts.entregador_contract import IEntregadorContract, EntregadorDTO
from app.api.cadastros.models.model_entregador import EntregadorModel


def entregador_to_dto(e: EntregadorModel) -> EntregadorDTO:
    return EntregadorDTO(
        id=e.id,
        user_id=e.user_id,
        nome=e.nome,
        telefone=e.telefone,
        online=bool(e.online),
        latitude=float(e.latitude_atual) if e.latitude_atual is not None else None,
        longitude=float(e.longitude_atual) if e.longitude_atual is not None else None,
        ultima_localizacao_em=e.ultima_localizacao_em,
        tipo_veiculo=e.tipo_veiculo,
        placa=e.placa,
    )


class EntregadorAdapter(IEntregadorContract):
    def __init__(self, db: Session):
        self.db = db

    def obter_entregador(self, entregador_id: int) -> Optional[EntregadorDTO]:
        e = self.db.get(EntregadorModel, entregador_id)
        return entregador_to_dto(e) if e else None

    def obter_por_usuario(self, user_id: int) -> Optional[EntregadorDTO]:
        e = self.db.query(EntregadorModel).filter(EntregadorModel.user_id == user_id).first()
        return entregador_to_dto(e) if e else None
