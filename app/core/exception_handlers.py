"""
Exception handlers globais para capturar e logar erros da API.
"""
import json
import traceback

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.utils.logger import logger

# Campos cujo valor nunca vai para o log nem para a resposta
CAMPOS_SENSIVEIS = {"card_data", "card_number", "security_code", "card_token"}


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler para erros de validação (422) do FastAPI/Pydantic.
    Registra os erros detalhados nos logs.
    """
    error_details = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error.get("loc", []))
        error_details.append({
            "field": field,
            "type": error.get("type", "unknown"),
            "message": error.get("msg", "Erro de validação"),
            "input": "***" if CAMPOS_SENSIVEIS.intersection(map(str, error.get("loc", []))) else error.get("input"),
        })
    error_details = jsonable_encoder(error_details)

    logger.error(
        "[VALIDATION ERROR 422] %s %s - Erros de validação detectados:\n%s",
        request.method,
        request.url.path,
        json.dumps(error_details, indent=2, ensure_ascii=False, default=str),
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": error_details,
            "message": "Erro de validação nos dados fornecidos",
            "errors": error_details,
        },
    )


async def http_exception_handler(request: Request, exc):
    """
    Handler para HTTPExceptions.
    Erros 4xx são esperados (validação, transição, conflito) e saem como WARNING.
    """
    status_code = exc.status_code
    log_message = f"[HTTP ERROR {status_code}] {request.method} {request.url.path} - Detalhes: {exc.detail}"

    if status_code >= 500:
        logger.error(log_message)
    else:
        logger.warning(log_message)

    return JSONResponse(
        status_code=status_code,
        content={
            "detail": exc.detail,
            "status_code": status_code,
        },
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception):
    """
    Handler para exceções não tratadas.
    Registra erros críticos nos logs.
    """
    logger.error(
        "[UNHANDLED EXCEPTION] %s %s - %s: %s",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc,
    )
    logger.error("[UNHANDLED EXCEPTION] Traceback completo:\n%s", "".join(traceback.format_exception(exc)))

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Erro interno do servidor",
            "error_type": type(exc).__name__,
        },
    )
