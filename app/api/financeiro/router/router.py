"""
Router principal do bounded context Financeiro.
"""
from fastapi import APIRouter

from app.api.financeiro.router.restaurante.router_financeiro_restaurante import router as router_restaurante
from app.api.financeiro.router.entregador.router_financeiro_entregador import router as router_entregador
from app.api.financeiro.router.admin.router_financeiro_admin import router as router_admin

api_financeiro = APIRouter(tags=["API - Financeiro"])

api_financeiro.include_router(router_restaurante)
api_financeiro.include_router(router_entregador)
api_financeiro.include_router(router_admin)
