from .model_configuracao import ConfiguracaoModel, TipoConfiguracao
