class WSEvents:
    """
    Contrato central de eventos WebSocket (evita strings soltas e typos).
    Os nomes são os mesmos consumidos pelos apps de cliente, restaurante e entregador.
    """

    PEDIDO_CRIADO = "newOrder"
    PEDIDO_STATUS_ATUALIZADO = "orderStatusUpdate"

    ENTREGA_DISPONIVEL = "newAvailableDelivery"
    ENTREGA_ACEITA = "deliveryTaken"

    ENTREGADOR_LOCALIZACAO = "driverLocation"


class Topicos:
    """Nomes de tópicos. Um tópico é um grupo de conexões que recebe os mesmos eventos."""

    ENTREGADORES_DISPONIVEIS = "drivers:available"

    @staticmethod
    def pedido(pedido_id) -> str:
        return f"order:{pedido_id}"

    @staticmethod
    def restaurante(restaurante_id) -> str:
        return f"restaurant:{restaurante_id}"

    @staticmethod
    def entregador(entregador_id) -> str:
        return f"driver:{entregador_id}"
