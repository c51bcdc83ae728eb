from __future__ import annotations

import json
from decimal import Decimal, InvalidOperation
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.api.configuracoes.contracts.configuracoes_contract import IConfiguracoesContract
from app.api.configuracoes.models.model_configuracao import ConfiguracaoModel, TipoConfiguracao
from app.api.configuracoes.repositories.repo_configuracoes import ConfiguracaoRepository
from app.api.configuracoes.services.configuracoes_padrao import CONFIGURACOES_PADRAO
from app.utils.logger import logger


class ConfiguracaoService(IConfiguracoesContract):
    def __init__(self, db: Session):
        self.db = db
        self.repo = ConfiguracaoRepository(db)

    # ---------------- Conversão ----------------
    @staticmethod
    def parse_valor(valor: str, tipo: TipoConfiguracao) -> Any:
        if tipo == TipoConfiguracao.NUMBER:
            if valor in (None, ""):
                return None
            try:
                return Decimal(valor)
            except InvalidOperation:
                logger.warning("[Configuracoes] Valor numérico inválido: %r", valor)
                return None
        if tipo == TipoConfiguracao.BOOLEAN:
            return str(valor).lower() == "true"
        if tipo == TipoConfiguracao.JSON:
            try:
                return json.loads(valor)
            except (TypeError, ValueError):
                return valor
        return valor

    @staticmethod
    def stringify_valor(valor: Any) -> str:
        if isinstance(valor, bool):
            return "true" if valor else "false"
        if isinstance(valor, (dict, list)):
            return json.dumps(valor)
        return str(valor)

    # ---------------- Queries ----------------
    def get(self, chave: str) -> Any | None:
        configuracao = self.repo.get(chave)
        if configuracao is None:
            return None
        return self.parse_valor(configuracao.valor, configuracao.tipo)

    def listar(self, categoria: str | None = None) -> list[ConfiguracaoModel]:
        return self.repo.list(categoria=categoria)

    def listar_publicas(self) -> dict[str, Any]:
        return {
            c.chave: self.parse_valor(c.valor, c.tipo)
            for c in self.repo.list(somente_publicas=True)
        }

    # ---------------- Commands ----------------
    def atualizar(self, chave: str, valor: Any) -> ConfiguracaoModel:
        configuracao = self.repo.get(chave)
        if configuracao is None:
            raise HTTPException(status.HTTP_404_NOT_FOUND, f"Configuração {chave} não encontrada")

        novo_valor = self.stringify_valor(valor)
        if configuracao.tipo == TipoConfiguracao.NUMBER and novo_valor != "":
            try:
                Decimal(novo_valor)
            except InvalidOperation:
                raise HTTPException(status.HTTP_400_BAD_REQUEST, f"Valor numérico inválido para {chave}")

        if configuracao.valor != novo_valor:
            configuracao.valor = novo_valor
            configuracao.versao = (configuracao.versao or 0) + 1
            self.repo.commit()
            self.db.refresh(configuracao)
            logger.info("[Configuracoes] %s atualizada (versão %s)", chave, configuracao.versao)
        return configuracao

    def seed_padrao(self) -> int:
        """Grava as configurações padrão que ainda não existem. Retorna quantas foram criadas."""
        criadas = 0
        for item in CONFIGURACOES_PADRAO:
            if self.repo.get(item["chave"]) is not None:
                continue
            self.repo.add(
                ConfiguracaoModel(
                    chave=item["chave"],
                    valor=item["valor"],
                    tipo=TipoConfiguracao(item["tipo"]),
                    categoria=item["categoria"],
                    descricao=item.get("descricao"),
                    publica=item.get("publica", False),
                    versao=1,
                )
            )
            criadas += 1
        if criadas:
            self.repo.commit()
            logger.info("[Configuracoes] %s configurações padrão criadas", criadas)
        return criadas
