from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from app.api.configuracoes.models.model_configuracao import ConfiguracaoModel


class ConfiguracaoRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, chave: str) -> Optional[ConfiguracaoModel]:
        return self.db.get(ConfiguracaoModel, chave)

    def list(self, categoria: str | None = None, somente_publicas: bool = False) -> list[ConfiguracaoModel]:
        query = self.db.query(ConfiguracaoModel)
        if categoria:
            query = query.filter(ConfiguracaoModel.categoria == categoria)
        if somente_publicas:
            query = query.filter(ConfiguracaoModel.publica.is_(True))
        return query.order_by(ConfiguracaoModel.categoria, ConfiguracaoModel.chave).all()

    def add(self, configuracao: ConfiguracaoModel) -> ConfiguracaoModel:
        self.db.add(configuracao)
        self.db.flush()
        return configuracao

    def commit(self):
        self.db.commit()
