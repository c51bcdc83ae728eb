from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.configuracoes.services.service_configuracoes import ConfiguracaoService
from app.database.db_connection import get_db

router = APIRouter(prefix="/api/configuracoes", tags=["Public - Configurações"])


@router.get("/public", status_code=status.HTTP_200_OK)
def configuracoes_publicas(db: Session = Depends(get_db)):
    """Configurações marcadas como públicas (taxas de entrega, formas de pagamento, nome do app)."""
    return ConfiguracaoService(db).listar_publicas()
