from decimal import Decimal, ROUND_HALF_UP

CENTAVOS = Decimal("0.01")


def quantizar(valor) -> Decimal:
    """Arredonda para centavos (meio para cima)."""
    return Decimal(str(valor)).quantize(CENTAVOS, rounding=ROUND_HALF_UP)


def formatar_brl(valor) -> str:
    """Decimal(1234.5) -> 'R$ 1.234,50'"""
    texto = f"{quantizar(valor):,.2f}"
    return "R$ " + texto.replace(",", "_").replace(".", ",").replace("_", ".")


def em_centavos(valor) -> int:
    return int(quantizar(valor) * 100)
