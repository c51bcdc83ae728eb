import os

# Precisa vir antes de qualquer import do app: settings e engine são lidos no import
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "chave-secreta-de-teste"
os.environ["RUNNING_IN_DOCKER"] = "1"

from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.database import init_db  # noqa: F401
from app.database.db_connection import Base, get_db
from app.api.cadastros.adapters.cliente_adapter import ClienteAdapter
from app.api.cadastros.adapters.entregador_adapter import EntregadorAdapter
from app.api.cadastros.adapters.restaurante_adapter import RestauranteAdapter
from app.api.cadastros.models.model_cliente import ClienteModel
from app.api.cadastros.models.model_entregador import EntregadorModel
from app.api.cadastros.models.model_restaurante import ItemCardapioModel, RestauranteModel
from app.api.cadastros.services.service_entregadores import EntregadoresService
from app.api.configuracoes.services.service_configuracoes import ConfiguracaoService
from app.api.financeiro.services.service_liquidacao import LiquidacaoService
from app.api.notifications.core.topic_broadcaster import TopicBroadcaster
from app.api.notifications.services.pedido_event_publisher import PedidoEventPublisher
from app.api.pagamentos.contracts.gateway_contract import (
    CardVault,
    GatewayConfig,
    PaymentFeature,
    PaymentGateway,
    PaymentResult,
    RefundResult,
    SavedCard,
    WebhookResult,
)
from app.api.pagamentos.gateways.configuracao import ConfiguracaoGateways
from app.api.pagamentos.gateways.registry import GatewayRegistry, get_gateway_registry
from app.api.pedidos.models.model_pedido import MetodoPagamento, StatusPagamento
from app.api.pedidos.schemas.schema_pedido import CriarPedidoRequest
from app.api.pedidos.services.service_entregas import EntregaService
from app.api.pedidos.services.service_pedido import PedidoService
from app.config.settings import ALGORITHM, SECRET_KEY

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

USUARIO_CLIENTE = 10
USUARIO_RESTAURANTE = 20
USUARIO_ENTREGADOR = 30
USUARIO_ADMIN = 99

ENDERECO = {
    "logradouro": "Rua das Flores",
    "numero": "120",
    "bairro": "Centro",
    "cidade": "Campinas",
    "estado": "SP",
    "cep": "13010-000",
}


def token_para(user_id: int, type_user: str) -> dict:
    token = jwt.encode(
        {"sub": str(user_id), "type_user": type_user, "email": f"user{user_id}@teste.com"},
        SECRET_KEY,
        algorithm=ALGORITHM,
    )
    return {"Authorization": f"Bearer {token}"}


class GatewayFalso(PaymentGateway, CardVault):
    """Gateway em memória: registra as chamadas e devolve resultados configuráveis."""

    def __init__(self, name="falso", features=None, resultado=None, requires_cvv=False):
        super().__init__()
        self.name = name
        self.display_name = name.title()
        self.features = frozenset(features or {
            PaymentFeature.PIX,
            PaymentFeature.CREDIT_CARD,
            PaymentFeature.DEBIT_CARD,
            PaymentFeature.SAVED_CARDS,
            PaymentFeature.REFUND,
        })
        self.resultado = resultado or PaymentResult(
            success=True, status=StatusPagamento.PAID, payment_id=f"{name}_pay_1", gateway_status="approved"
        )
        self.webhook = WebhookResult(success=False, error="sem evento")
        self.requires_cvv = requires_cvv
        self.cobrancas = []
        self.reembolsos = []
        self.removidos = []

    def is_configured(self) -> bool:
        return True

    async def create_payment(self, order, amount, payment_data, user):
        self.cobrancas.append((order, amount, payment_data))
        return self.resultado

    async def process_webhook(self, payload, headers, raw_body):
        return self.webhook

    def map_status(self, provider_status):
        return StatusPagamento.PENDING

    def translate_error(self, code):
        return code or "Pagamento recusado"

    async def refund(self, request):
        self.reembolsos.append(request)
        return RefundResult(success=True, refund_id="re_1", amount=request.amount, status="succeeded")

    async def create_customer(self, user):
        return f"cus_{user.id}"

    async def attach_card(self, customer_id, card_token):
        return SavedCard(
            id=None,
            provider=self.name,
            gateway_card_id=f"card_{card_token}",
            gateway_customer_id=customer_id,
            last_four_digits="4242",
            expiration_month=12,
            expiration_year=2030,
            cardholder_name="MARIA SOUZA",
            brand="visa",
        )

    async def detach_card(self, customer_id, gateway_card_id):
        self.removidos.append(gateway_card_id)

    async def charge_with_saved_card(self, saved_card, amount, order, user, security_code=None):
        return self.resultado

    def requires_cvv_for_saved_card(self) -> bool:
        return self.requires_cvv


def novo_gateway(name="falso", enabled=True, **kwargs) -> GatewayFalso:
    gateway = GatewayFalso(name=name, **kwargs)
    gateway.initialize(GatewayConfig(enabled=enabled, public_key=f"pk_{name}"))
    return gateway


# ───────────────────────────
# Banco e cliente HTTP
# ───────────────────────────
@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    ConfiguracaoService(session).seed_padrao()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def registry():
    return GatewayRegistry(configuracao=ConfiguracaoGateways(), fabricas={})


@pytest.fixture
def client(db, registry):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway_registry] = lambda: registry
    yield TestClient(app)
    app.dependency_overrides.clear()


# ───────────────────────────
# Cadastros
# ───────────────────────────
@pytest.fixture
def cenario(db):
    cliente = ClienteModel(
        user_id=USUARIO_CLIENTE, nome="Maria Souza", email="maria@teste.com", cpf="12345678909"
    )
    restaurante = RestauranteModel(
        owner_user_id=USUARIO_RESTAURANTE,
        nome="Cantina da Praça",
        cidade="Campinas",
        aberto=True,
        pedido_minimo=Decimal("10.00"),
        taxa_entrega=Decimal("5.99"),
        tempo_estimado_min=40,
    )
    entregador = EntregadorModel(user_id=USUARIO_ENTREGADOR, nome="João Lima", online=True, tipo_veiculo="moto")
    db.add_all([cliente, restaurante, entregador])
    db.flush()

    lasanha = ItemCardapioModel(restaurante_id=restaurante.id, nome="Lasanha", preco=Decimal("23.35"))
    suco = ItemCardapioModel(restaurante_id=restaurante.id, nome="Suco", preco=Decimal("8.00"), disponivel=False)
    db.add_all([lasanha, suco])
    db.commit()

    return SimpleNamespace(
        cliente=cliente,
        restaurante=restaurante,
        entregador=entregador,
        lasanha=lasanha,
        suco=suco,
    )


# ───────────────────────────
# Services
# ───────────────────────────
@pytest.fixture
def eventos():
    return PedidoEventPublisher(TopicBroadcaster())


@pytest.fixture
def pedido_service(db, eventos):
    configuracoes = ConfiguracaoService(db)
    return PedidoService(
        db,
        cliente_contract=ClienteAdapter(db),
        restaurante_contract=RestauranteAdapter(db),
        configuracoes=configuracoes,
        eventos=eventos,
        liquidacao=LiquidacaoService(db, configuracoes),
        entregador_contract=EntregadorAdapter(db),
    )


@pytest.fixture
def entrega_service(db, pedido_service, eventos):
    return EntregaService(
        db,
        pedido_service=pedido_service,
        entregadores=EntregadoresService(db),
        eventos=eventos,
    )


@pytest.fixture
def criar_pedido(cenario, pedido_service):
    """Pedido de 2 lasanhas (subtotal 46,70 + entrega 5,99)."""

    def _criar(metodo=MetodoPagamento.PIX, quantidade=2):
        payload = CriarPedidoRequest(
            restaurante_id=cenario.restaurante.id,
            itens=[{"item_cardapio_id": cenario.lasanha.id, "quantidade": quantidade}],
            endereco_entrega=ENDERECO,
            metodo_pagamento=metodo,
        )
        return pedido_service.criar_pedido(USUARIO_CLIENTE, payload)

    return _criar
