import asyncio
import os

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.openapi.utils import get_openapi

from app.core.exception_handlers import (
    validation_exception_handler,
    http_exception_handler,
    general_exception_handler
)
from app.utils.logger import logger
from app.config.settings import CORS_ORIGINS, CORS_ALLOW_ALL, BASE_URL as SETTINGS_BASE_URL, ENABLE_DOCS

# ───────────────────────────
# Importar modelos antes das rotas
# Garante que todos os modelos estejam registrados no SQLAlchemy
# antes de qualquer query ser executada
# ───────────────────────────
from app.api.configuracoes.router.router import api_configuracoes
from app.api.financeiro.router.router import api_financeiro
from app.api.notifications.router.websocket_pedidos_router import router as websocket_pedidos_router
from app.api.pagamentos.router.router import api_pagamentos
from app.api.pedidos.router.router import api_pedidos

BASE_URL = SETTINGS_BASE_URL or os.getenv("BASE_URL", "http://localhost:8000")

# ──────────────────────────
# Instância FastAPI
# ──────────────────────────
app = FastAPI(
    title="API de Delivery",
    version="1.0.0",
    description="Pedidos, pagamentos, repasses financeiros e acompanhamento em tempo real",
    docs_url=("/swagger" if ENABLE_DOCS else None),
    redoc_url=("/redoc" if ENABLE_DOCS else None),
    openapi_url=("/openapi.json" if ENABLE_DOCS else None),
    servers=[{"url": BASE_URL, "description": "Base URL do ambiente"}],
    redirect_slashes=False  # Evita redirecionamento 307 quando URL não termina com /
)

# ───────────────────────────
# Exception Handlers Globais
# ───────────────────────────
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# ───────────────────────────
# Middlewares
# ───────────────────────────
# Regra:
# - Se CORS_ALLOW_ALL=true => allow_origins=["*"], allow_credentials=False
# - Caso contrário => allow_origins=CORS_ORIGINS (se vazio cai para ["*"]), allow_credentials=True somente quando houver origens explícitas
if CORS_ALLOW_ALL:
    allowed_origins = ["*"]
    allow_credentials = False
else:
    allowed_origins = CORS_ORIGINS or ["*"]
    allow_credentials = bool(CORS_ORIGINS)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ───────────────────────────
# Startup
# ───────────────────────────
@app.on_event("startup")
async def startup():
    from app.database.init_db import inicializar_banco
    from app.database.db_connection import SessionLocal
    from app.api.configuracoes.services.service_configuracoes import ConfiguracaoService
    from app.api.financeiro.services.tarefas_financeiro import loop_liberacao_ganhos
    from app.api.pagamentos.gateways.registry import gateway_registry

    logger.info("Iniciando API e banco de dados...")
    inicializar_banco()

    db = SessionLocal()
    try:
        await gateway_registry.reinitialize(ConfiguracaoService(db))
    finally:
        db.close()

    app.state.tarefa_ganhos = asyncio.create_task(loop_liberacao_ganhos())
    logger.info("API iniciada com sucesso.")

# ───────────────────────────
# Shutdown
# ───────────────────────────
@app.on_event("shutdown")
async def shutdown():
    from app.api.pagamentos.gateways.registry import gateway_registry

    logger.info("Encerrando API...")

    tarefa = getattr(app.state, "tarefa_ganhos", None)
    if tarefa is not None:
        tarefa.cancel()
        try:
            await tarefa
        except asyncio.CancelledError:
            pass

    await gateway_registry.close()
    logger.info("API encerrada.")

# ───────────────────────────
# Rotas
# ───────────────────────────

@app.get("/")
async def root():
    return {"status": "ok", "message": "API is running"}

@app.get("/health")
async def health():
    return {"status": "healthy"}

# ───────────────────────────
# Routers
# ───────────────────────────
app.include_router(api_pedidos)
app.include_router(api_pagamentos)
app.include_router(api_financeiro)
app.include_router(api_configuracoes)
app.include_router(websocket_pedidos_router)

# ───────────────────────────
# OpenAPI: Segurança Bearer/JWT no Swagger
# ───────────────────────────
PUBLIC_PATHS = {"/", "/health", "/api/configuracoes/public"}


def _aplicar_seguranca(openapi_schema: dict) -> dict:
    components = openapi_schema.get("components", {})
    security_schemes = components.get("securitySchemes", {})
    security_schemes.update({
        "bearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    })
    components["securitySchemes"] = security_schemes
    openapi_schema["components"] = components

    # Define segurança global
    openapi_schema["security"] = [{"bearerAuth": []}]

    # Remover exigência de token de endpoints públicos
    for path, methods in openapi_schema.get("paths", {}).items():
        if path in PUBLIC_PATHS or "/public" in path:
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    method_obj["security"] = []
    return openapi_schema


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
        servers=app.servers,
    )
    app.openapi_schema = _aplicar_seguranca(openapi_schema)
    return app.openapi_schema

app.openapi = custom_openapi

# ───────────────────────────
# Swagger UI Separado para cada API
# ───────────────────────────

def get_filtered_openapi(tag_filter: str, path_prefix: str, title: str):
    """Gera OpenAPI schema filtrado por tag ou prefixo de path"""
    if not ENABLE_DOCS:
        return {}

    full_openapi = get_openapi(
        title=title,
        version=app.version,
        description=f"Documentação da API {title}",
        routes=app.routes,
        servers=app.servers,
    )

    filtered_paths = {}
    all_tags = set()
    for path, methods in full_openapi.get("paths", {}).items():
        filtered_methods = {}
        for method, details in methods.items():
            if not isinstance(details, dict):
                continue
            tags = details.get("tags", [])
            if tag_filter in tags or path.startswith(path_prefix):
                filtered_methods[method] = details
                all_tags.update(tags)
        if filtered_methods:
            filtered_paths[path] = filtered_methods

    full_openapi["paths"] = filtered_paths
    full_openapi["tags"] = [{"name": tag_name} for tag_name in sorted(all_tags)]
    if not filtered_paths:
        full_openapi["components"] = {}

    return _aplicar_seguranca(full_openapi)


APIS_DOCUMENTADAS = {
    "pedidos": ("API - Pedidos", "/api/pedidos", "API de Pedidos"),
    "pagamentos": ("API - Pagamentos", "/api/pagamentos", "API de Pagamentos"),
    "financeiro": ("API - Financeiro", "/api/financeiro", "API Financeira"),
    "configuracoes": ("API - Configurações", "/api/configuracoes", "API de Configurações"),
}


@app.get("/swagger/{api}", include_in_schema=False)
async def swagger_api(api: str):
    """Swagger UI de uma API específica"""
    if not ENABLE_DOCS or api not in APIS_DOCUMENTADAS:
        return {"message": "Documentação desabilitada"}
    return get_swagger_ui_html(
        openapi_url=f"/openapi/{api}.json",
        title=f"{APIS_DOCUMENTADAS[api][2]} - Swagger UI",
        swagger_ui_parameters={
            "defaultModelsExpandDepth": 2,
            "filter": True,
            "tagsSorter": "alpha",
            "operationsSorter": "alpha"
        }
    )


@app.get("/openapi/{api}.json", include_in_schema=False)
async def openapi_api(api: str):
    """OpenAPI schema de uma API específica"""
    if api not in APIS_DOCUMENTADAS:
        return {}
    return get_filtered_openapi(*APIS_DOCUMENTADAS[api])
