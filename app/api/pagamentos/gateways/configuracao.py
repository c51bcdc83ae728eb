from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from app.api.configuracoes.contracts.configuracoes_contract import IConfiguracoesContract
from app.api.pagamentos.contracts.gateway_contract import GatewayConfig
from app.config import settings


def _texto(configuracoes: IConfiguracoesContract, chave: str, fallback: str | None) -> str | None:
    valor = configuracoes.get(chave)
    if valor in (None, ""):
        return fallback or None
    return str(valor)


def _flag(configuracoes: IConfiguracoesContract, chave: str, default: bool) -> bool:
    valor = configuracoes.get(chave)
    return default if valor is None else bool(valor)


@dataclass(slots=True)
class ConfiguracaoGateways:
    """
    Retrato da configuração de pagamentos usado pelo registro de gateways.

    É montado uma vez por (re)inicialização; alterar uma configuração de
    gateway no banco só tem efeito depois de `GatewayRegistry.reinitialize`.
    """

    card_gateway: str = "both"
    pix_enabled: bool = True
    card_enabled: bool = True
    cash_enabled: bool = True
    pix_key: str = settings.PIX_KEY
    pix_expiracao_minutos: int = settings.PIX_EXPIRATION_MINUTES
    timeout: int = settings.PAYMENT_TIMEOUT_SECONDS
    gateways: Dict[str, GatewayConfig] = field(default_factory=dict)

    def gateway(self, nome: str) -> GatewayConfig:
        return self.gateways.get(nome) or GatewayConfig(enabled=False)

    @classmethod
    def carregar(cls, configuracoes: IConfiguracoesContract) -> "ConfiguracaoGateways":
        """Credenciais: configuração no banco, depois variável de ambiente."""
        gateways = {
            "mercadopago": GatewayConfig(
                access_token=_texto(configuracoes, "mercadopago_access_token", settings.MERCADOPAGO_ACCESS_TOKEN),
                public_key=_texto(configuracoes, "mercadopago_public_key", settings.MERCADOPAGO_PUBLIC_KEY),
                webhook_secret=_texto(configuracoes, "mercadopago_webhook_secret", settings.MERCADOPAGO_WEBHOOK_SECRET),
                enabled=_flag(configuracoes, "mercadopago_enabled", True),
            ),
            "stripe": GatewayConfig(
                secret_key=_texto(configuracoes, "stripe_secret_key", settings.STRIPE_SECRET_KEY),
                public_key=_texto(configuracoes, "stripe_public_key", settings.STRIPE_PUBLIC_KEY),
                webhook_secret=_texto(configuracoes, "stripe_webhook_secret", settings.STRIPE_WEBHOOK_SECRET),
                enabled=_flag(configuracoes, "stripe_enabled", True),
            ),
            "pagseguro": GatewayConfig(
                access_token=_texto(configuracoes, "pagseguro_token", settings.PAGSEGURO_TOKEN),
                sandbox=_flag(configuracoes, "pagseguro_sandbox", settings.PAGSEGURO_SANDBOX),
                enabled=_flag(configuracoes, "pagseguro_enabled", False),
            ),
        }
        return cls(
            card_gateway=str(configuracoes.get_or_default("card_gateway", "both")),
            pix_enabled=_flag(configuracoes, "pix_enabled", True),
            card_enabled=_flag(configuracoes, "card_enabled", True),
            cash_enabled=_flag(configuracoes, "cash_enabled", True),
            gateways=gateways,
        )
