from __future__ import annotations

from typing import Any, Dict

import httpx

PAGSEGURO_URL = "https://api.pagseguro.com"
PAGSEGURO_SANDBOX_URL = "https://sandbox.api.pagseguro.com"


class PagSeguroError(Exception):
    def __init__(self, status_code: int, data: Dict[str, Any] | None):
        self.status_code = status_code
        self.data = data or {}
        mensagens = self.data.get("error_messages") or []
        self.code = str(mensagens[0].get("code")) if mensagens and mensagens[0].get("code") else None
        super().__init__(mensagens[0].get("description") if mensagens else f"Erro HTTP {status_code} no PagSeguro")


class PagSeguroClient:
    """Cliente HTTP da API de cobranças (charges) do PagSeguro."""

    def __init__(
        self,
        *,
        token: str,
        sandbox: bool = False,
        timeout: int = 20,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not token:
            raise ValueError("token é obrigatório para o PagSeguro")

        self.base_url = PAGSEGURO_SANDBOX_URL if sandbox else PAGSEGURO_URL
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {token}",
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
            raise PagSeguroError(resp.status_code, data if isinstance(data, dict) else {})
        return data

    async def create_charge(self, payload: Dict[str, Any], *, idempotency_key: str) -> Dict[str, Any]:
        resp = await self._client.post("/charges", json=payload, headers={"x-idempotency-key": idempotency_key})
        return self._json(resp)

    async def get_charge(self, charge_id: str) -> Dict[str, Any]:
        resp = await self._client.get(f"/charges/{charge_id}")
        return self._json(resp)

    async def cancel_charge(self, charge_id: str, amount_cents: int | None = None) -> Dict[str, Any]:
        body = {"amount": {"value": amount_cents}} if amount_cents is not None else None
        resp = await self._client.post(f"/charges/{charge_id}/cancel", json=body)
        return self._json(resp)
