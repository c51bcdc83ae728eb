"""
Router principal do bounded context de Pedidos.
"""
from fastapi import APIRouter

from app.api.pedidos.router.admin.router_pedidos_admin import router as router_pedidos_admin
from app.api.pedidos.router.client.router_pedidos_client import router as router_pedidos_client
from app.api.pedidos.router.entregador.router_pedidos_entregador import router as router_pedidos_entregador
from app.api.pedidos.router.public.router_pedidos_public import router as router_pedidos_public
from app.api.pedidos.router.restaurante.router_pedidos_restaurante import router as router_pedidos_restaurante

api_pedidos = APIRouter(tags=["API - Pedidos"])

api_pedidos.include_router(router_pedidos_client)
api_pedidos.include_router(router_pedidos_restaurante)
api_pedidos.include_router(router_pedidos_entregador)
api_pedidos.include_router(router_pedidos_admin)
api_pedidos.include_router(router_pedidos_public)
