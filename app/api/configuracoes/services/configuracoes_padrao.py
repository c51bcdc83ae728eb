# Valores iniciais gravados no primeiro start (seed). Alterações posteriores ficam no banco.

CONFIGURACOES_PADRAO = [
    # ---------------- Entrega ----------------
    {"chave": "delivery_base_fee", "valor": "5.00", "tipo": "NUMBER", "categoria": "delivery",
     "descricao": "Taxa base de entrega (R$)", "publica": True},
    {"chave": "delivery_fee_per_km", "valor": "1.50", "tipo": "NUMBER", "categoria": "delivery",
     "descricao": "Valor por km adicional (R$)", "publica": True},
    {"chave": "delivery_min_fee", "valor": "5.00", "tipo": "NUMBER", "categoria": "delivery",
     "descricao": "Taxa mínima de entrega (R$)", "publica": True},
    {"chave": "delivery_max_fee", "valor": "25.00", "tipo": "NUMBER", "categoria": "delivery",
     "descricao": "Taxa máxima de entrega (R$)", "publica": True},

    # ---------------- Taxas ----------------
    {"chave": "platform_fee_percentage", "valor": "15", "tipo": "NUMBER", "categoria": "fees",
     "descricao": "Comissão da plataforma sobre o subtotal (%)"},
    {"chave": "payment_fee_percentage", "valor": "3.5", "tipo": "NUMBER", "categoria": "fees",
     "descricao": "Custo de processamento de pagamento sobre o subtotal (%)"},
    {"chave": "driver_commission_percentage", "valor": "80", "tipo": "NUMBER", "categoria": "fees",
     "descricao": "Parte da taxa de entrega repassada ao entregador (%)"},
    {"chave": "earning_delay_days", "valor": "3", "tipo": "NUMBER", "categoria": "fees",
     "descricao": "Dias até o ganho do restaurante ficar disponível"},
    {"chave": "min_payout_amount", "valor": "50", "tipo": "NUMBER", "categoria": "fees",
     "descricao": "Valor mínimo para saque (R$)"},

    # ---------------- Pagamentos ----------------
    {"chave": "card_gateway", "valor": "both", "tipo": "STRING", "categoria": "payment",
     "descricao": "Gateway padrão para cartão (stripe, mercadopago, pagseguro ou both)"},
    {"chave": "stripe_enabled", "valor": "true", "tipo": "BOOLEAN", "categoria": "payment"},
    {"chave": "mercadopago_enabled", "valor": "true", "tipo": "BOOLEAN", "categoria": "payment"},
    {"chave": "pagseguro_enabled", "valor": "false", "tipo": "BOOLEAN", "categoria": "payment"},
    {"chave": "stripe_public_key", "valor": "", "tipo": "STRING", "categoria": "payment", "publica": True},
    {"chave": "stripe_secret_key", "valor": "", "tipo": "STRING", "categoria": "payment"},
    {"chave": "stripe_webhook_secret", "valor": "", "tipo": "STRING", "categoria": "payment"},
    {"chave": "mercadopago_public_key", "valor": "", "tipo": "STRING", "categoria": "payment", "publica": True},
    {"chave": "mercadopago_access_token", "valor": "", "tipo": "STRING", "categoria": "payment"},
    {"chave": "mercadopago_webhook_secret", "valor": "", "tipo": "STRING", "categoria": "payment"},
    {"chave": "pagseguro_token", "valor": "", "tipo": "STRING", "categoria": "payment"},
    {"chave": "pagseguro_sandbox", "valor": "true", "tipo": "BOOLEAN", "categoria": "payment"},
    {"chave": "pix_enabled", "valor": "true", "tipo": "BOOLEAN", "categoria": "payment", "publica": True},
    {"chave": "cash_enabled", "valor": "true", "tipo": "BOOLEAN", "categoria": "payment", "publica": True},
    {"chave": "card_enabled", "valor": "true", "tipo": "BOOLEAN", "categoria": "payment", "publica": True},

    # ---------------- Pedidos ----------------
    {"chave": "order_min_value", "valor": "15.00", "tipo": "NUMBER", "categoria": "orders",
     "descricao": "Pedido mínimo quando o restaurante não define um (R$)", "publica": True},
    {"chave": "estimated_delivery_minutes", "valor": "45", "tipo": "NUMBER", "categoria": "orders",
     "descricao": "Tempo estimado de entrega (min)", "publica": True},

    # ---------------- Geral ----------------
    {"chave": "app_name", "valor": "Delivery", "tipo": "STRING", "categoria": "general", "publica": True},
    {"chave": "support_email", "valor": "suporte@delivery.com.br", "tipo": "STRING", "categoria": "general",
     "publica": True},
    {"chave": "maintenance_mode", "valor": "false", "tipo": "BOOLEAN", "categoria": "general", "publica": True},
]

# Chaves que exigem reconstrução dos gateways quando alteradas
CHAVES_GATEWAY = {
    "card_gateway",
    "stripe_enabled",
    "mercadopago_enabled",
    "pagseguro_enabled",
    "stripe_public_key",
    "stripe_secret_key",
    "stripe_webhook_secret",
    "mercadopago_public_key",
    "mercadopago_access_token",
    "mercadopago_webhook_secret",
    "pagseguro_token",
    "pagseguro_sandbox",
    "pix_enabled",
    "card_enabled",
    "cash_enabled",
}
