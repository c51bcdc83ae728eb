import re

_ELO = re.compile(r"^(504175|506699|509\d{3}|627780|636297|636368|6500\d{2}|6550\d{2})")
_HIPERCARD = re.compile(r"^(606282|3841|6370)")
_AMEX = re.compile(r"^3[47]")
_VISA = re.compile(r"^4")
_MASTER = re.compile(r"^(5[1-5]|2[2-7])")

# BIN de teste do Mercado Pago
_MASTER_TESTE = "503143"


def somente_digitos(numero: str) -> str:
    return re.sub(r"\D", "", numero or "")


def detect_card_brand(numero: str) -> str:
    """Bandeira pelo prefixo (BIN). Sem correspondência retorna 'visa'."""
    limpo = somente_digitos(numero)
    if _ELO.match(limpo):
        return "elo"
    if limpo[:6] == _MASTER_TESTE:
        return "master"
    if _HIPERCARD.match(limpo):
        return "hipercard"
    if _AMEX.match(limpo):
        return "amex"
    if _VISA.match(limpo):
        return "visa"
    if _MASTER.match(limpo):
        return "master"
    return "visa"


def mask_card_number(numero: str) -> str:
    """Única forma de número de cartão que pode ir para log: 6 primeiros + ******."""
    return somente_digitos(numero)[:6] + "******"
