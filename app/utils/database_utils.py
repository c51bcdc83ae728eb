from datetime import date, datetime, time
from zoneinfo import ZoneInfo

TZ_SP = ZoneInfo('America/Sao_Paulo')


def now_trimmed():
    """Retorna datetime atual em timezone de São Paulo, sem microsegundos"""
    return datetime.now(TZ_SP).replace(microsecond=0)


def inicio_do_dia(dia: date) -> datetime:
    return datetime.combine(dia, time.min, tzinfo=TZ_SP)


def fim_do_dia(dia: date) -> datetime:
    return datetime.combine(dia, time.max, tzinfo=TZ_SP)


def paginacao(total: int, page: int, limit: int) -> dict:
    """Bloco de paginação usado nas listagens."""
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": (total + limit - 1) // limit if limit else 0,
    }
