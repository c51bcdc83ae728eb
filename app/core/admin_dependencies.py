# app/core/admin_dependencies.py

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status, Request
from jose import JWTError, jwt

from app.config.settings import SECRET_KEY, ALGORITHM
from app.utils.logger import logger

TIPOS_USUARIO = ("customer", "restaurant", "driver", "admin")

credentials_exception = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Não autenticado",
    headers={"WWW-Authenticate": "Bearer"},
)

forbidden_exception = HTTPException(
    status_code=status.HTTP_403_FORBIDDEN,
    detail="Você não tem permissão para acessar este recurso",
)


@dataclass(frozen=True)
class UsuarioAutenticado:
    """Identidade extraída do token. A emissão do token é feita pelo serviço de autenticação."""

    id: int
    type_user: str
    email: str | None = None
    nome: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.type_user == "admin"


def get_current_user(request: Request) -> UsuarioAutenticado:
    """
    Recupera o usuário autenticado a partir do header Authorization (Bearer <token>).
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        logger.warning("[AUTH] Cabeçalho Authorization ausente ou malformado.")
        raise credentials_exception

    access_token = auth_header.replace("Bearer ", "")

    if not SECRET_KEY:
        logger.error("[AUTH] SECRET_KEY não configurada, impossível validar tokens.")
        raise credentials_exception

    try:
        payload = jwt.decode(
            access_token,
            SECRET_KEY,
            algorithms=[ALGORITHM],
            options={"verify_sub": False},
        )
        raw_sub = payload.get("sub")
        if raw_sub is None:
            raise credentials_exception
        user_id = int(raw_sub)
    except (JWTError, ValueError) as e:
        logger.error(f"[AUTH] Erro ao decodificar JWT: {e}")
        raise credentials_exception

    type_user = payload.get("type_user", "customer")
    if type_user not in TIPOS_USUARIO:
        logger.warning("[AUTH] type_user desconhecido no token: %s", type_user)
        raise credentials_exception

    return UsuarioAutenticado(
        id=user_id,
        type_user=type_user,
        email=payload.get("email"),
        nome=payload.get("name"),
    )


def require_type_user(allowed_types: list[str]):
    """
    Dependency factory para restringir acesso por tipo de usuário.
    Exemplo de uso em rota:

        @router.get(..., dependencies=[Depends(require_type_user(['admin']))])
        def rota_somente_admin(...):
            ...
    """

    def dependency(current_user: UsuarioAutenticado = Depends(get_current_user)) -> UsuarioAutenticado:
        if current_user.type_user not in allowed_types and not current_user.is_admin:
            logger.warning(
                "[AUTH] Acesso negado. type_user=%s, permitido=%s",
                current_user.type_user,
                allowed_types,
            )
            raise forbidden_exception
        return current_user

    return dependency


get_current_customer = require_type_user(["customer"])
get_current_restaurant_user = require_type_user(["restaurant"])
get_current_driver = require_type_user(["driver"])
get_current_admin = require_type_user(["admin"])
