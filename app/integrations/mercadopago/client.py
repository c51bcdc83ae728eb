from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx


class MercadoPagoError(Exception):
    """Resposta de erro (4xx/5xx) da API do Mercado Pago."""

    def __init__(self, status_code: int, data: Dict[str, Any] | None):
        self.status_code = status_code
        self.data = data or {}
        super().__init__(self.mensagem)

    @property
    def mensagem(self) -> str:
        causas = self.data.get("cause") or []
        if causas and isinstance(causas, list) and causas[0].get("description"):
            return causas[0]["description"]
        return self.data.get("message") or f"Erro HTTP {self.status_code} no Mercado Pago"

    @property
    def codigo_causa(self) -> str | None:
        causas = self.data.get("cause") or []
        if causas and isinstance(causas, list):
            codigo = causas[0].get("code")
            return str(codigo) if codigo is not None else None
        return None


@dataclass(slots=True)
class MercadoPagoPayment:
    """Representa uma resposta simplificada de pagamento do Mercado Pago."""

    id: str
    status: str
    status_detail: str | None
    qr_code: str | None
    qr_code_base64: str | None
    external_reference: str | None
    metadata: Dict[str, Any]
    raw: Dict[str, Any]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MercadoPagoPayment":
        point_of_interaction = data.get("point_of_interaction", {}) or {}
        transaction_data = point_of_interaction.get("transaction_data", {}) or {}

        qr_code = transaction_data.get("qr_code")
        qr_code_base64 = transaction_data.get("qr_code_base64")

        # Algumas respostas trazem o QR como imagem binária base64.
        if isinstance(qr_code_base64, dict) and "data" in qr_code_base64:
            qr_code_base64 = qr_code_base64.get("data")

        return cls(
            id=str(data.get("id")),
            status=data.get("status", "pending"),
            status_detail=data.get("status_detail"),
            qr_code=qr_code,
            qr_code_base64=qr_code_base64,
            external_reference=data.get("external_reference"),
            metadata=data.get("metadata") or {},
            raw=data,
        )


class MercadoPagoClient:
    """Cliente HTTP simples para acessar a API do Mercado Pago."""

    def __init__(
        self,
        *,
        access_token: str,
        base_url: str = "https://api.mercadopago.com",
        timeout: int = 20,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not access_token:
            raise ValueError("access_token é obrigatório para o Mercado Pago")

        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _json(resp: httpx.Response) -> Dict[str, Any]:
        try:
            data = resp.json()
        except ValueError:
            data = {}
        if resp.status_code >= 400:
            raise MercadoPagoError(resp.status_code, data if isinstance(data, dict) else {})
        return data

    # ---------------- Pagamentos ----------------
    async def create_payment(self, payload: Dict[str, Any], *, idempotency_key: str | None = None) -> MercadoPagoPayment:
        headers = {"X-Idempotency-Key": idempotency_key} if idempotency_key else None
        resp = await self._client.post("/v1/payments", json=payload, headers=headers)
        return MercadoPagoPayment.from_dict(self._json(resp))

    async def create_or_get_pix_payment(
        self,
        *,
        external_reference: str,
        amount: Decimal,
        metadata: Dict[str, Any] | None = None,
        descricao: str | None = None,
        customer: Dict[str, Any] | None = None,
        existing_payment_id: str | None = None,
        idempotency_key: str | None = None,
    ) -> MercadoPagoPayment:
        """
        Cria (ou reusa) um pagamento PIX Online.

        - `external_reference` deve ser único para o pedido (ex.: ID do pedido).
        - Se `existing_payment_id` for informado, o pagamento é consultado.
        - Caso contrário, é criado um novo via endpoint `/v1/payments`.
        """

        if existing_payment_id:
            return await self.get_payment(existing_payment_id)

        payload: Dict[str, Any] = {
            "transaction_amount": float(amount),
            "description": descricao or f"Pedido {external_reference}",
            "payment_method_id": "pix",
            "external_reference": external_reference,
            "metadata": metadata or {},
        }

        if customer:
            payload["payer"] = customer

        return await self.create_payment(payload, idempotency_key=idempotency_key or f"pix_{external_reference}")

    async def get_payment(self, payment_id: str) -> MercadoPagoPayment:
        resp = await self._client.get(f"/v1/payments/{payment_id}")
        return MercadoPagoPayment.from_dict(self._json(resp))

    async def refund_payment(self, payment_id: str, amount: Decimal | None = None) -> Dict[str, Any]:
        """
        Solicita reembolso total (sem `amount`) ou parcial do pagamento.
        Retorna o objeto do refund criado.
        """
        body = {"amount": float(amount)} if amount is not None else None
        resp = await self._client.post(f"/v1/payments/{payment_id}/refunds", json=body)
        return self._json(resp)

    # ---------------- Cartões ----------------
    async def create_card_token(self, payload: Dict[str, Any]) -> str:
        resp = await self._client.post("/v1/card_tokens", json=payload)
        data = self._json(resp)
        if not data.get("id"):
            raise MercadoPagoError(resp.status_code, data)
        return str(data["id"])

    async def search_payment_method_by_bin(self, bin_cartao: str) -> Optional[str]:
        resp = await self._client.get("/v1/payment_methods/search", params={"bins": bin_cartao})
        resultados = self._json(resp).get("results") or []
        return resultados[0].get("id") if resultados else None

    # ---------------- Clientes ----------------
    async def create_customer(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        resp = await self._client.post("/v1/customers", json=payload)
        return self._json(resp)

    async def search_customers(self, email: str) -> List[Dict[str, Any]]:
        resp = await self._client.get("/v1/customers/search", params={"email": email})
        return self._json(resp).get("results") or []

    async def add_customer_card(self, customer_id: str, card_token: str) -> Dict[str, Any]:
        resp = await self._client.post(f"/v1/customers/{customer_id}/cards", json={"token": card_token})
        return self._json(resp)

    async def delete_customer_card(self, customer_id: str, card_id: str) -> None:
        resp = await self._client.delete(f"/v1/customers/{customer_id}/cards/{card_id}")
        self._json(resp)
