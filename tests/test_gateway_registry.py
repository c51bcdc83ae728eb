import asyncio

from conftest import GatewayFalso, novo_gateway

from app.api.pagamentos.contracts.gateway_contract import GatewayConfig, PaymentFeature
from app.api.pagamentos.gateways.configuracao import ConfiguracaoGateways
from app.api.pagamentos.gateways.registry import GatewayRegistry


def _registry(habilitados, card_gateway="both", **kwargs):
    fabricas = {nome: (lambda cfg, nome=nome: GatewayFalso(name=nome)) for nome in ("stripe", "mercadopago")}
    registry = GatewayRegistry(fabricas=fabricas)
    registry.carregar(
        ConfiguracaoGateways(
            card_gateway=card_gateway,
            gateways={nome: GatewayConfig(enabled=nome in habilitados) for nome in fabricas},
            **kwargs,
        )
    )
    return registry


def test_preferencia_desabilitada_cai_para_habilitado():
    registry = _registry({"mercadopago"})
    assert registry.select_gateway("stripe").name == "mercadopago"


def test_preferencia_habilitada_vence():
    registry = _registry({"stripe", "mercadopago"}, card_gateway="mercadopago")
    assert registry.select_gateway("stripe").name == "stripe"


def test_sem_preferencia_usa_gateway_padrao():
    registry = _registry({"stripe", "mercadopago"}, card_gateway="mercadopago")
    assert registry.select_gateway().name == "mercadopago"


def test_padrao_both_usa_primeiro_habilitado():
    registry = _registry({"stripe", "mercadopago"})
    assert registry.select_gateway().name == "stripe"


def test_nenhum_habilitado():
    registry = _registry(set())
    assert registry.select_gateway("stripe") is None
    assert registry.select_card_gateway() is None
    assert not registry.has_card_payment()


def test_filtra_por_funcionalidade():
    registry = GatewayRegistry(fabricas={})
    registry.register(novo_gateway("stripe", features={PaymentFeature.CREDIT_CARD}))
    registry.register(novo_gateway("mercadopago", features={PaymentFeature.PIX, PaymentFeature.CREDIT_CARD}))

    assert registry.select_gateway(feature=PaymentFeature.PIX).name == "mercadopago"
    assert registry.get_pix_gateway().name == "mercadopago"
    assert registry.select_gateway("stripe", feature=PaymentFeature.BOLETO) is None


def test_metodos_disponiveis():
    registry = _registry({"mercadopago"}, cash_enabled=False)
    metodos = registry.get_available_payment_methods()

    disponiveis = {m["value"]: m["available"] for m in metodos["methods"]}
    assert disponiveis == {"PIX": True, "CREDIT_CARD": True, "DEBIT_CARD": True, "CASH": False}
    assert metodos["hasCardPayment"] is True
    assert metodos["enabledGateways"] == {"stripe": False, "mercadopago": True}


def test_cartao_desligado_na_configuracao():
    registry = _registry({"stripe"}, card_enabled=False)
    assert not registry.has_card_payment()


def test_pix_sem_gateway_continua_disponivel():
    registry = _registry(set())
    assert registry.has_pix_payment()
    assert registry.get_pix_gateway() is None


class _Configuracoes:
    def __init__(self, valores):
        self.valores = valores

    def get(self, chave):
        return self.valores.get(chave)

    def get_or_default(self, chave, default):
        valor = self.get(chave)
        return default if valor in (None, "") else valor


def test_reinitialize_reconstroi_e_fecha_anteriores():
    fechados = []

    class GatewayQueFecha(GatewayFalso):
        async def close(self):
            fechados.append(self)

    registry = GatewayRegistry(
        fabricas={"stripe": lambda cfg: GatewayQueFecha(name="stripe")}, espera_fechamento=0,
    )
    registry.carregar(ConfiguracaoGateways(gateways={"stripe": GatewayConfig(enabled=True)}))
    anterior = registry.get("stripe")

    async def _run():
        resultado = await registry.reinitialize(_Configuracoes({"stripe_enabled": False, "card_gateway": "stripe"}))
        # Fechamento agendado, não imediato
        assert fechados == []
        await asyncio.gather(*registry._fechamentos)
        return resultado

    resultado = asyncio.run(_run())

    assert resultado == {"stripe": True}
    assert registry.get("stripe") is not anterior
    assert not registry.get("stripe").is_enabled()
    assert registry.configuracao.card_gateway == "stripe"
    assert fechados == [anterior]


def test_gateway_substituido_continua_aberto_durante_cobranca():
    fechados = []

    class GatewayQueFecha(GatewayFalso):
        async def close(self):
            fechados.append(self)

    registry = GatewayRegistry(
        fabricas={"stripe": lambda cfg: GatewayQueFecha(name="stripe")}, espera_fechamento=3600,
    )
    registry.carregar(ConfiguracaoGateways(gateways={"stripe": GatewayConfig(enabled=True)}))
    anterior = registry.get("stripe")

    async def _run():
        await registry.reinitialize(_Configuracoes({"stripe_enabled": True}))
        await asyncio.sleep(0)
        # Cobrança iniciada antes da troca ainda usa o adapter antigo
        result = await anterior.create_payment(None, 10, None, None)
        assert fechados == []
        assert result.success

        await registry.close()
        return registry.get("stripe")

    atual = asyncio.run(_run())

    assert fechados == [anterior, atual]
