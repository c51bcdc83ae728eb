"""
Geração e leitura do payload PIX "copia e cola" (BR Code, padrão EMV).

Campos no formato ID(2) + TAMANHO(2) + VALOR, terminando com o CRC16
CCITT-FALSE (polinômio 0x1021, valor inicial 0xFFFF) em 4 dígitos hexadecimais.
"""
from __future__ import annotations

import unicodedata
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict

PIX_GUI = "br.gov.bcb.pix"
MAX_NOME_RECEBEDOR = 25
MAX_CIDADE = 15
MAX_TXID = 25

# Campos compostos: o valor é outra sequência ID+TAMANHO+VALOR
CAMPOS_ANINHADOS = {"26", "62"}


def _campo(id_campo: str, valor: str) -> str:
    if len(valor) > 99:
        raise ValueError(f"Campo {id_campo} excede 99 caracteres")
    return f"{id_campo}{len(valor):02d}{valor}"


def crc16_ccitt(payload: str) -> str:
    crc = 0xFFFF
    for byte in payload.encode("utf-8"):
        crc ^= byte << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = ((crc << 1) ^ 0x1021) & 0xFFFF
            else:
                crc = (crc << 1) & 0xFFFF
    return f"{crc:04X}"


def somente_ascii(texto: str) -> str:
    """Remove acentos: tamanhos e CRC do BR Code são contados em bytes ASCII."""
    normalizado = unicodedata.normalize("NFKD", texto)
    return normalizado.encode("ascii", "ignore").decode("ascii")


def formatar_valor(valor) -> str:
    return str(Decimal(str(valor)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def gerar_txid(pedido_id) -> str:
    return str(pedido_id).replace("-", "")[:MAX_TXID]


def build_pix_payload(pix_key: str, merchant_name: str, city: str, amount, txid: str) -> str:
    """Monta o payload PIX estático com valor. Nome e cidade vão sem acento e truncados aos limites do padrão."""
    conta = _campo("00", PIX_GUI) + _campo("01", pix_key)
    payload = (
        _campo("00", "01")
        + _campo("26", conta)
        + _campo("52", "0000")
        + _campo("53", "986")
        + _campo("54", formatar_valor(amount))
        + _campo("58", "BR")
        + _campo("59", somente_ascii(merchant_name)[:MAX_NOME_RECEBEDOR])
        + _campo("60", somente_ascii(city)[:MAX_CIDADE])
        + _campo("62", _campo("05", txid[:MAX_TXID]))
        + "6304"
    )
    return payload + crc16_ccitt(payload)


def _ler_campos(texto: str) -> Dict[str, str]:
    campos: Dict[str, str] = {}
    pos = 0
    while pos < len(texto):
        if pos + 4 > len(texto):
            raise ValueError("Payload PIX truncado")
        id_campo = texto[pos:pos + 2]
        tamanho_txt = texto[pos + 2:pos + 4]
        if not tamanho_txt.isdigit():
            raise ValueError(f"Tamanho inválido no campo {id_campo}")
        tamanho = int(tamanho_txt)
        inicio = pos + 4
        fim = inicio + tamanho
        if fim > len(texto):
            raise ValueError(f"Campo {id_campo} ultrapassa o fim do payload")
        campos[id_campo] = texto[inicio:fim]
        pos = fim
    return campos


def parse_pix_payload(payload: str) -> Dict[str, object]:
    """
    Decodifica o payload em um dicionário de campos.
    Campos compostos (26 e 62) viram dicionários aninhados.
    """
    campos: Dict[str, object] = {}
    for id_campo, valor in _ler_campos(payload).items():
        campos[id_campo] = _ler_campos(valor) if id_campo in CAMPOS_ANINHADOS else valor
    return campos


def validate_pix_payload(payload: str) -> bool:
    if len(payload) < 8 or payload[-8:-4] != "6304":
        return False
    return crc16_ccitt(payload[:-4]) == payload[-4:].upper()


def resumo_pix(payload: str) -> Dict[str, str]:
    campos = parse_pix_payload(payload)
    conta = campos.get("26") or {}
    adicionais = campos.get("62") or {}
    return {
        "pix_key": conta.get("01"),
        "amount": campos.get("54"),
        "merchant_name": campos.get("59"),
        "city": campos.get("60"),
        "txid": adicionais.get("05"),
        "crc": campos.get("63"),
    }
