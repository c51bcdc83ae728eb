"""
Registro dos gateways de pagamento.

Mapa nome -> adapter. Os adapters são reconstruídos a partir de uma
`ConfiguracaoGateways` nova em cada `reinitialize` (startup e alteração de
configuração de gateway pelo admin).

Os adapters substituídos são fechados só depois de um intervalo, para não
cortar cobranças que ainda estejam em andamento com eles.
"""
from __future__ import annotations

import asyncio
from typing import Callable, Dict, List, Optional, Set

from app.api.configuracoes.contracts.configuracoes_contract import IConfiguracoesContract
from app.api.pagamentos.contracts.gateway_contract import PaymentFeature, PaymentGateway
from app.api.pagamentos.gateways.configuracao import ConfiguracaoGateways
from app.api.pagamentos.gateways.mercadopago_gateway import MercadoPagoGateway
from app.api.pagamentos.gateways.pagseguro_gateway import PagSeguroGateway
from app.api.pagamentos.gateways.stripe_gateway import StripeGateway
from app.utils.logger import logger

FabricaGateway = Callable[[ConfiguracaoGateways], PaymentGateway]

FABRICAS_PADRAO: Dict[str, FabricaGateway] = {
    "stripe": lambda cfg: StripeGateway(),
    "mercadopago": lambda cfg: MercadoPagoGateway(timeout=cfg.timeout, pix_key=cfg.pix_key),
    "pagseguro": lambda cfg: PagSeguroGateway(timeout=cfg.timeout),
}

METODOS_PAGAMENTO = [
    ("PIX", "Pix", "pix"),
    ("CREDIT_CARD", "Cartão de crédito", "card"),
    ("DEBIT_CARD", "Cartão de débito", "card"),
    ("CASH", "Dinheiro", "cash"),
]


class GatewayRegistry:
    def __init__(
        self,
        configuracao: ConfiguracaoGateways | None = None,
        fabricas: Dict[str, FabricaGateway] | None = None,
        espera_fechamento: float | None = None,
    ) -> None:
        self._fabricas = fabricas if fabricas is not None else FABRICAS_PADRAO
        self._gateways: Dict[str, PaymentGateway] = {}
        self.configuracao = configuracao or ConfiguracaoGateways()
        self.espera_fechamento = espera_fechamento
        self._aposentados: List[PaymentGateway] = []
        self._fechamentos: Set[asyncio.Task] = set()

    # ---------------- Construção ----------------
    def carregar(self, configuracao: ConfiguracaoGateways) -> Dict[str, bool]:
        """Instancia e inicializa um adapter por fábrica. Não fecha os anteriores."""
        self.configuracao = configuracao
        self._gateways = {}
        for nome, fabrica in self._fabricas.items():
            gateway = fabrica(configuracao)
            gateway.initialize(configuracao.gateway(nome))
            self.register(gateway)

        configurados = [g.name for g in self.get_configured()]
        logger.info("[Pagamentos] Gateways inicializados. Configurados: %s", ", ".join(configurados) or "nenhum")
        return {g.name: g.is_configured() for g in self.get_all()}

    async def reinitialize(self, configuracoes: IConfiguracoesContract) -> Dict[str, bool]:
        logger.info("[Pagamentos] Reinicializando gateways")
        anteriores = self.get_all()
        resultado = self.carregar(ConfiguracaoGateways.carregar(configuracoes))
        if anteriores:
            self._aposentados.extend(anteriores)
            tarefa = asyncio.create_task(self._fechar_depois(anteriores))
            self._fechamentos.add(tarefa)
            tarefa.add_done_callback(self._fechamentos.discard)
        return resultado

    async def _fechar_depois(self, gateways: List[PaymentGateway]) -> None:
        # Uma cobrança iniciada antes da troca dura no máximo o timeout do provedor
        espera = self.espera_fechamento
        if espera is None:
            espera = self.configuracao.timeout * 2
        await asyncio.sleep(espera)
        for gateway in gateways:
            if gateway in self._aposentados:
                self._aposentados.remove(gateway)
                await self._fechar(gateway)

    @staticmethod
    async def _fechar(gateway: PaymentGateway) -> None:
        try:
            await gateway.close()
        except Exception as e:
            logger.warning("[Pagamentos] Erro ao fechar gateway %s: %s", gateway.name, e)

    async def close(self) -> None:
        pendentes = list(self._fechamentos)
        for tarefa in pendentes:
            tarefa.cancel()
        await asyncio.gather(*pendentes, return_exceptions=True)
        aposentados, self._aposentados = self._aposentados, []
        for gateway in aposentados + self.get_all():
            await self._fechar(gateway)

    # ---------------- Mapa ----------------
    def register(self, gateway: PaymentGateway) -> None:
        self._gateways[gateway.name] = gateway
        logger.debug("[Pagamentos] Gateway registrado: %s", gateway.name)

    def unregister(self, nome: str) -> None:
        self._gateways.pop(nome, None)

    def get(self, nome: str) -> Optional[PaymentGateway]:
        return self._gateways.get(nome)

    def get_all(self) -> List[PaymentGateway]:
        return list(self._gateways.values())

    def get_configured(self) -> List[PaymentGateway]:
        return [g for g in self.get_all() if g.is_configured()]

    def get_enabled(self) -> List[PaymentGateway]:
        return [g for g in self.get_configured() if g.is_enabled()]

    def get_status(self) -> Dict[str, dict]:
        return {
            g.name: {"configured": g.is_configured(), "enabled": g.is_enabled(), "displayName": g.display_name}
            for g in self.get_all()
        }

    # ---------------- Seleção ----------------
    def select_gateway(
        self, preference: str | None = None, feature: PaymentFeature | None = None
    ) -> Optional[PaymentGateway]:
        """
        Preferência habilitada -> gateway padrão (`card_gateway`, exceto 'both')
        -> primeiro habilitado -> None.
        """
        habilitados = self.get_enabled()
        if feature is not None:
            habilitados = [g for g in habilitados if g.supports_feature(feature)]
        if not habilitados:
            logger.warning("[Pagamentos] Nenhum gateway habilitado disponível")
            return None

        if preference:
            for gateway in habilitados:
                if gateway.name == preference:
                    return gateway
            logger.warning("[Pagamentos] Gateway preferido %s indisponível, usando alternativa", preference)

        padrao = self.configuracao.card_gateway
        if padrao and padrao != "both":
            for gateway in habilitados:
                if gateway.name == padrao:
                    return gateway

        return habilitados[0]

    def select_card_gateway(self, preference: str | None = None) -> Optional[PaymentGateway]:
        return self.select_gateway(preference, feature=PaymentFeature.CREDIT_CARD)

    def has_card_payment(self) -> bool:
        if not self.configuracao.card_enabled:
            return False
        return any(g.supports_feature(PaymentFeature.CREDIT_CARD) for g in self.get_enabled())

    def has_pix_payment(self) -> bool:
        # Sem gateway PIX o pagamento cai no gerador local
        return self.configuracao.pix_enabled

    def get_pix_gateway(self) -> Optional[PaymentGateway]:
        for gateway in self.get_enabled():
            if gateway.supports_feature(PaymentFeature.PIX):
                return gateway
        return None

    def get_available_payment_methods(self) -> dict:
        habilitados = {g.name for g in self.get_enabled()}
        disponivel = {
            "pix": self.has_pix_payment(),
            "card": self.has_card_payment(),
            "cash": self.configuracao.cash_enabled,
        }
        return {
            "methods": [
                {"value": valor, "label": rotulo, "available": disponivel[tipo]}
                for valor, rotulo, tipo in METODOS_PAGAMENTO
            ],
            "hasCardPayment": disponivel["card"],
            "enabledGateways": {g.name: g.name in habilitados for g in self.get_all()},
        }


gateway_registry = GatewayRegistry()


def get_gateway_registry() -> GatewayRegistry:
    return gateway_registry
