"""
Models de Cadastros.

Entidades consultadas pelo núcleo de pedidos/financeiro (cliente, restaurante,
cardápio, endereço e entregador). A manutenção desses cadastros é feita fora deste serviço.
"""

# Importar todos os models para garantir registro no SQLAlchemy
from app.api.cadastros.models.model_cliente import ClienteModel
from app.api.cadastros.models.model_endereco import EnderecoModel
from app.api.cadastros.models.model_restaurante import RestauranteModel, ItemCardapioModel
from app.api.cadastros.models.model_entregador import EntregadorModel, EntregadorLocalizacaoModel
