import pytest

from app.api.pagamentos.utils.card_brand import detect_card_brand, mask_card_number


@pytest.mark.parametrize(
    "numero,bandeira",
    [
        ("4111 1111 1111 1111", "visa"),
        ("5555555555554444", "master"),
        ("2223000048400011", "master"),
        ("5031433215406351", "master"),
        ("378282246310005", "amex"),
        ("6062825624254001", "hipercard"),
        ("5067 0000 0000 0000", "visa"),
        ("6362970000457013", "elo"),
        ("9999999999999999", "visa"),
    ],
)
def test_detect_card_brand(numero, bandeira):
    assert detect_card_brand(numero) == bandeira


def test_mascara_so_mostra_bin():
    assert mask_card_number("4111-1111-1111-1111") == "411111******"
