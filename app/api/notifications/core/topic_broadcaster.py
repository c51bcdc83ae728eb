from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Protocol, Set

logger = logging.getLogger(__name__)


class Conexao(Protocol):
    async def send_text(self, data: str) -> None: ...


class TopicBroadcaster:
    """
    Tabela de inscrições tópico -> conexões, compartilhada entre as tasks de request.

    Entrega at-most-once: uma conexão que falha no envio é removida de todos os
    tópicos e o evento não é reenviado. Clientes reconectados devem consultar o
    rastreamento do pedido para se ressincronizar.
    """

    def __init__(self):
        self._topicos: Dict[str, Set[Conexao]] = {}
        self._conexoes: Dict[Conexao, Set[str]] = {}
        self._lock = asyncio.Lock()

    # ---------------- Inscrição ----------------
    async def join(self, conexao: Conexao, topico: str) -> None:
        async with self._lock:
            self._topicos.setdefault(topico, set()).add(conexao)
            self._conexoes.setdefault(conexao, set()).add(topico)
        logger.info("[WS] conexão %s entrou em %s", id(conexao), topico)

    async def leave(self, conexao: Conexao, topico: str) -> None:
        async with self._lock:
            self._remover(conexao, topico)
        logger.info("[WS] conexão %s saiu de %s", id(conexao), topico)

    async def leave_all(self, conexao: Conexao) -> Set[str]:
        async with self._lock:
            topicos = set(self._conexoes.get(conexao, ()))
            for topico in topicos:
                self._remover(conexao, topico)
            self._conexoes.pop(conexao, None)
        return topicos

    def _remover(self, conexao: Conexao, topico: str) -> None:
        membros = self._topicos.get(topico)
        if membros is not None:
            membros.discard(conexao)
            if not membros:
                del self._topicos[topico]
        inscricoes = self._conexoes.get(conexao)
        if inscricoes is not None:
            inscricoes.discard(topico)
            if not inscricoes:
                del self._conexoes[conexao]

    # ---------------- Envio ----------------
    async def emit(self, topico: str, evento: str, dados: Dict[str, Any]) -> int:
        """Envia o evento a todos os inscritos no tópico. Retorna quantas conexões receberam."""
        async with self._lock:
            destinatarios = list(self._topicos.get(topico, ()))

        if not destinatarios:
            return 0

        mensagem = json.dumps(
            {
                "type": evento,
                "topic": topico,
                "data": dados,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
            default=str,
        )

        enviados = 0
        falhas = []
        for conexao in destinatarios:
            try:
                await conexao.send_text(mensagem)
                enviados += 1
            except Exception as e:
                logger.warning("[WS] falha ao enviar %s para conexão %s: %s", evento, id(conexao), e)
                falhas.append(conexao)

        for conexao in falhas:
            await self.leave_all(conexao)

        logger.info("[WS] %s enviado para %s/%s conexões de %s", evento, enviados, len(destinatarios), topico)
        return enviados

    # ---------------- Estatísticas ----------------
    async def subscribers(self, topico: str) -> int:
        async with self._lock:
            return len(self._topicos.get(topico, ()))

    async def topicos_da_conexao(self, conexao: Conexao) -> Set[str]:
        async with self._lock:
            return set(self._conexoes.get(conexao, ()))

    async def stats(self) -> Dict[str, Any]:
        async with self._lock:
            return {
                "total_connections": len(self._conexoes),
                "total_topics": len(self._topicos),
                "topics": {t: len(m) for t, m in self._topicos.items()},
            }


# Instância global do broadcaster
topic_broadcaster = TopicBroadcaster()
