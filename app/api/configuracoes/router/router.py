"""
Router principal do bounded context de Configurações.
"""
from fastapi import APIRouter

from app.api.configuracoes.router.admin.router_configuracoes_admin import router as router_configuracoes_admin
from app.api.configuracoes.router.public.router_configuracoes_public import router as router_configuracoes_public

api_configuracoes = APIRouter(tags=["API - Configurações"])

api_configuracoes.include_router(router_configuracoes_public)
api_configuracoes.include_router(router_configuracoes_admin)
