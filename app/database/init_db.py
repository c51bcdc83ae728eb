import logging

from .db_connection import engine, Base, SessionLocal

# Importar todos os models para garantir registro no metadata antes do create_all
from app.api.cadastros import models as _cadastros_models  # noqa: F401
from app.api.configuracoes import models as _configuracoes_models  # noqa: F401
from app.api.financeiro import models as _financeiro_models  # noqa: F401
from app.api.pagamentos import models as _pagamentos_models  # noqa: F401
from app.api.pedidos import models as _pedidos_models  # noqa: F401
from app.api.configuracoes.services.service_configuracoes import ConfiguracaoService

logger = logging.getLogger(__name__)


def criar_tabelas():
    """Cria as tabelas que ainda não existem. Não altera tabelas existentes."""
    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.info("✅ Tabelas verificadas/criadas")


def popular_configuracoes():
    db = SessionLocal()
    try:
        criadas = ConfiguracaoService(db).seed_padrao()
        logger.info("✅ Configurações padrão verificadas (%s novas)", criadas)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def inicializar_banco():
    """Criação das tabelas + seed de configurações. Executado no startup da API."""
    logger.info("🗄️ Inicializando banco de dados...")
    criar_tabelas()
    popular_configuracoes()
    logger.info("✅ Banco de dados pronto")
