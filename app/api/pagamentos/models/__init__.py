from app.api.pagamentos.models.model_cartao_salvo import CartaoSalvoModel
from app.api.pagamentos.models.model_cliente_gateway import ClienteGatewayModel
