"""Tarefa periódica que libera ganhos cuja carência terminou."""
import asyncio

from fastapi.concurrency import run_in_threadpool

from app.api.configuracoes.services.service_configuracoes import ConfiguracaoService
from app.api.financeiro.services.service_financeiro_restaurante import FinanceiroRestauranteService
from app.config.settings import EARNINGS_SWEEP_INTERVAL_SECONDS
from app.database.db_connection import SessionLocal
from app.utils.logger import logger


def liberar_ganhos_pendentes_job() -> int:
    db = SessionLocal()
    try:
        return FinanceiroRestauranteService(db, ConfiguracaoService(db)).liberar_ganhos_pendentes()
    finally:
        db.close()


async def loop_liberacao_ganhos(intervalo: int = EARNINGS_SWEEP_INTERVAL_SECONDS) -> None:
    logger.info("[Financeiro] Liberação periódica de ganhos a cada %ss", intervalo)
    while True:
        try:
            await run_in_threadpool(liberar_ganhos_pendentes_job)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("[Financeiro] Erro na liberação periódica de ganhos: %s", e, exc_info=True)
        await asyncio.sleep(intervalo)
