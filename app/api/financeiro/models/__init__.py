"""
Models do Financeiro: ganhos de restaurantes e entregadores, repasses e contas bancárias.
"""

from app.api.financeiro.models.model_ganho_restaurante import GanhoRestauranteModel, StatusGanho
from app.api.financeiro.models.model_repasse_restaurante import (
    RepasseRestauranteModel,
    StatusRepasse,
    MetodoRepasse,
)
from app.api.financeiro.models.model_conta_bancaria import ContaBancariaModel, TipoConta, TipoChavePix
from app.api.financeiro.models.model_ganho_entregador import GanhoEntregadorModel, TipoGanhoEntregador
