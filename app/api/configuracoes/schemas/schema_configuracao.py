from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ConfiguracaoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    chave: str
    valor: Any
    tipo: str
    categoria: str
    descricao: Optional[str] = None
    publica: bool
    versao: int
    updated_at: Optional[datetime] = None


class AtualizarConfiguracaoRequest(BaseModel):
    valor: Any
