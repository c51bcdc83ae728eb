from typing import Optional

from sqlalchemy.orm import Session

from app.api.cadastros.models.model_entregador import EntregadorModel, EntregadorLocalizacaoModel


class EntregadorRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, id_: int) -> Optional[EntregadorModel]:
        return self.db.get(EntregadorModel, id_)

    def get_by_user(self, user_id: int) -> Optional[EntregadorModel]:
        return self.db.query(EntregadorModel).filter(EntregadorModel.user_id == user_id).first()

    def add_localizacao(self, localizacao: EntregadorLocalizacaoModel) -> EntregadorLocalizacaoModel:
        self.db.add(localizacao)
        return localizacao

    def commit(self):
        self.db.commit()
