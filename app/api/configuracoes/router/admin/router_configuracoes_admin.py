from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, status
from sqlalchemy.orm import Session

from app.api.configuracoes.models.model_configuracao import ConfiguracaoModel
from app.api.configuracoes.schemas.schema_configuracao import AtualizarConfiguracaoRequest, ConfiguracaoOut
from app.api.configuracoes.services.configuracoes_padrao import CHAVES_GATEWAY
from app.api.configuracoes.services.service_configuracoes import ConfiguracaoService
from app.api.pagamentos.gateways.registry import GatewayRegistry, get_gateway_registry
from app.core.admin_dependencies import UsuarioAutenticado, get_current_admin
from app.database.db_connection import get_db
from app.utils.logger import logger

router = APIRouter(
    prefix="/api/configuracoes/admin",
    tags=["Admin - Configurações"],
    dependencies=[Depends(get_current_admin)],
)


SUFIXOS_SENSIVEIS = ("_secret_key", "_access_token", "_token", "_webhook_secret")


def _mascarar(chave: str, valor):
    if chave.endswith(SUFIXOS_SENSIVEIS) and valor:
        return "****" + str(valor)[-4:]
    return valor


def _to_out(configuracao: ConfiguracaoModel) -> ConfiguracaoOut:
    valor = ConfiguracaoService.parse_valor(configuracao.valor, configuracao.tipo)
    return ConfiguracaoOut(
        chave=configuracao.chave,
        valor=_mascarar(configuracao.chave, valor),
        tipo=configuracao.tipo.value,
        categoria=configuracao.categoria,
        descricao=configuracao.descricao,
        publica=configuracao.publica,
        versao=configuracao.versao,
        updated_at=configuracao.updated_at,
    )


@router.get("", response_model=List[ConfiguracaoOut], status_code=status.HTTP_200_OK)
def listar_configuracoes(
    categoria: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return [_to_out(c) for c in ConfiguracaoService(db).listar(categoria)]


@router.put("/{chave}", response_model=ConfiguracaoOut, status_code=status.HTTP_200_OK)
async def atualizar_configuracao(
    chave: str = Path(..., min_length=1, max_length=100),
    payload: AtualizarConfiguracaoRequest = Body(...),
    usuario: UsuarioAutenticado = Depends(get_current_admin),
    db: Session = Depends(get_db),
    registry: GatewayRegistry = Depends(get_gateway_registry),
):
    """
    Atualiza uma configuração. Chaves de gateway de pagamento reconstroem os
    gateways na hora, sem reiniciar a API.
    """
    svc = ConfiguracaoService(db)
    configuracao = svc.atualizar(chave, payload.valor)
    logger.info(f"[Configuracoes] {chave} alterada - user_id={usuario.id}")
    if chave in CHAVES_GATEWAY:
        await registry.reinitialize(svc)
    return _to_out(configuracao)
