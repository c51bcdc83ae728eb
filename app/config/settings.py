import os
from dotenv import load_dotenv
from pathlib import Path

# Carrega o .env manualmente se estiver fora do Docker
if not os.getenv("RUNNING_IN_DOCKER"):
    dotenv_path = Path(__file__).resolve().parents[2] / ".env"
    load_dotenv(dotenv_path=dotenv_path)


def _bool_env(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# Configuração de conexão
DB_CONFIG = {
    'database': os.getenv('DB_NAME'),
    'user': os.getenv('DB_USER'),
    'password': os.getenv('DB_PASSWORD'),
    'host': os.getenv('DB_HOST'),
    'port': int(os.getenv('DB_PORT', 5432)),
}

# URL completa (tem precedência sobre DB_CONFIG, ex.: sqlite:///./delivery.db)
DATABASE_URL = os.getenv("DATABASE_URL")

# SSL do banco (opcional)
DB_SSL_MODE = os.getenv('DB_SSL_MODE')  # ex.: require, verify-ca, verify-full

# JWT / Segurança
SECRET_KEY = os.getenv("SECRET_KEY", "")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# CORS
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]
CORS_ALLOW_ALL = _bool_env("CORS_ALLOW_ALL")

# FastAPI / App
BASE_URL = os.getenv("BASE_URL", "")
ENABLE_DOCS = _bool_env("ENABLE_DOCS", "true")

# Gateways de pagamento (fallback quando a configuração não está no banco)
PAYMENT_TIMEOUT_SECONDS = int(os.getenv("PAYMENT_TIMEOUT_SECONDS", 20))

MERCADOPAGO_ACCESS_TOKEN = os.getenv("MERCADOPAGO_ACCESS_TOKEN")
MERCADOPAGO_PUBLIC_KEY = os.getenv("MERCADOPAGO_PUBLIC_KEY")
MERCADOPAGO_WEBHOOK_SECRET = os.getenv("MERCADOPAGO_WEBHOOK_SECRET")
MERCADOPAGO_BASE_URL = os.getenv("MERCADOPAGO_BASE_URL", "https://api.mercadopago.com")

STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_PUBLIC_KEY = os.getenv("STRIPE_PUBLIC_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")

PAGSEGURO_TOKEN = os.getenv("PAGSEGURO_TOKEN")
PAGSEGURO_SANDBOX = _bool_env("PAGSEGURO_SANDBOX", "true")

# PIX (gerador local usado quando nenhum gateway PIX responde)
PIX_KEY = os.getenv("PIX_KEY", "pagamentos@delivery.com.br")
PIX_EXPIRATION_MINUTES = int(os.getenv("PIX_EXPIRATION_MINUTES", 30))

# Simulação de pagamento (apenas desenvolvimento)
ALLOW_PAYMENT_SIMULATION = _bool_env("ALLOW_PAYMENT_SIMULATION")

# Rotina que libera ganhos pendentes dos restaurantes
EARNINGS_SWEEP_INTERVAL_SECONDS = int(os.getenv("EARNINGS_SWEEP_INTERVAL_SECONDS", 900))
