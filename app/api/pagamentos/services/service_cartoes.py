from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.api.cadastros.contracts.cliente_contract import ClienteDTO, IClienteContract
from app.api.pagamentos.contracts.gateway_contract import (
    CardVault,
    GatewayError,
    PaymentFeature,
    PaymentGateway,
    SavedCard,
    UserData,
)
from app.api.pagamentos.gateways.registry import GatewayRegistry
from app.api.pagamentos.models.model_cartao_salvo import CartaoSalvoModel
from app.api.pagamentos.repositories.repo_cartoes import CartaoRepository
from app.api.pagamentos.schemas.schema_pagamento import CartaoSalvoOut
from app.utils.logger import logger


def user_data_do_cliente(cliente: ClienteDTO, email: str | None = None) -> UserData:
    return UserData(
        id=cliente.user_id,
        email=cliente.email or email,
        name=cliente.nome,
        phone=cliente.telefone,
        document=cliente.cpf,
        document_type="CPF" if cliente.cpf else None,
    )


class CartoesService:
    """Cartões salvos do cliente: referência no provedor + cópia local para exibição."""

    def __init__(self, db: Session, registry: GatewayRegistry, cliente_contract: IClienteContract):
        self.db = db
        self.repo = CartaoRepository(db)
        self.registry = registry
        self.cliente_contract = cliente_contract

    def _get_cliente(self, user_id: int) -> ClienteDTO:
        cliente = self.cliente_contract.obter_cliente_por_usuario(user_id)
        if not cliente:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Cliente não encontrado")
        return cliente

    def _get_cartao(self, cliente_id: int, cartao_id: int) -> CartaoSalvoModel:
        cartao = self.repo.get(cliente_id, cartao_id)
        if not cartao:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Cartão não encontrado")
        return cartao

    def _vault(self, gateway: Optional[str]) -> PaymentGateway:
        if gateway:
            selecionado = self.registry.get(gateway)
            if selecionado is None or not selecionado.is_enabled():
                selecionado = None
        else:
            selecionado = self.registry.select_gateway(feature=PaymentFeature.SAVED_CARDS)
        if selecionado is None or not isinstance(selecionado, CardVault):
            raise HTTPException(status.HTTP_400_BAD_REQUEST, "Nenhum gateway disponível para salvar cartões")
        return selecionado

    def _requires_cvv(self, provider: str) -> bool:
        gateway = self.registry.get(provider)
        if isinstance(gateway, CardVault):
            return gateway.requires_cvv_for_saved_card()
        return True

    def _to_out(self, cartao: CartaoSalvoModel) -> CartaoSalvoOut:
        out = CartaoSalvoOut.model_validate(cartao)
        out.requires_cvv = self._requires_cvv(cartao.provider)
        return out

    @staticmethod
    def to_saved_card(cartao: CartaoSalvoModel) -> SavedCard:
        return SavedCard(
            id=cartao.id,
            provider=cartao.provider,
            gateway_card_id=cartao.gateway_card_id,
            gateway_customer_id=cartao.gateway_customer_id,
            last_four_digits=cartao.ultimos_digitos,
            expiration_month=cartao.mes_validade,
            expiration_year=cartao.ano_validade,
            cardholder_name=cartao.titular,
            brand=cartao.bandeira,
            is_default=cartao.padrao,
        )

    # ---------------- Clientes no provedor ----------------
    def get_customer_id(self, cliente_id: int, provider: str) -> Optional[str]:
        return self.repo.get_customer_id(cliente_id, provider)

    async def get_or_create_customer(self, cliente: ClienteDTO, gateway: PaymentGateway, email: str | None = None) -> str:
        existente = self.repo.get_customer_id(cliente.id, gateway.name)
        if existente:
            return existente

        try:
            customer_id = await gateway.create_customer(user_data_do_cliente(cliente, email))
        except GatewayError as e:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, e.mensagem)

        self.repo.add_customer(cliente.id, gateway.name, customer_id)
        self.repo.commit()
        return customer_id

    # ---------------- Cartões ----------------
    def list_cards(self, user_id: int) -> list[CartaoSalvoOut]:
        cliente = self._get_cliente(user_id)
        return [self._to_out(c) for c in self.repo.list_by_cliente(cliente.id)]

    def get_saved_card(self, cliente_id: int, cartao_id: int) -> SavedCard:
        return self.to_saved_card(self._get_cartao(cliente_id, cartao_id))

    async def save_card(
        self,
        user_id: int,
        card_token: str,
        gateway: Optional[str] = None,
        padrao: Optional[bool] = None,
        email: str | None = None,
    ) -> CartaoSalvoOut:
        cliente = self._get_cliente(user_id)
        vault = self._vault(gateway)
        customer_id = await self.get_or_create_customer(cliente, vault, email)

        try:
            salvo = await vault.attach_card(customer_id, card_token)
        except GatewayError as e:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, e.mensagem)

        definir_padrao = padrao if padrao is not None else self.repo.count_by_cliente(cliente.id) == 0
        try:
            if definir_padrao:
                self.repo.desmarcar_padrao(cliente.id)
            cartao = self.repo.add(
                CartaoSalvoModel(
                    cliente_id=cliente.id,
                    provider=salvo.provider,
                    gateway_card_id=salvo.gateway_card_id,
                    gateway_customer_id=customer_id,
                    ultimos_digitos=salvo.last_four_digits,
                    mes_validade=salvo.expiration_month,
                    ano_validade=salvo.expiration_year,
                    titular=salvo.cardholder_name,
                    bandeira=salvo.brand,
                    padrao=definir_padrao,
                )
            )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info("[Pagamentos] Cartão %s salvo (%s) para o cliente %s", cartao.id, cartao.provider, cliente.id)
        return self._to_out(cartao)

    async def delete_card(self, user_id: int, cartao_id: int) -> None:
        cliente = self._get_cliente(user_id)
        cartao = self._get_cartao(cliente.id, cartao_id)

        gateway = self.registry.get(cartao.provider)
        if isinstance(gateway, CardVault):
            try:
                await gateway.detach_card(cartao.gateway_customer_id, cartao.gateway_card_id)
            except Exception as e:
                # O cartão sai da lista local mesmo quando o provedor não responde
                logger.warning("[Pagamentos] Falha ao remover cartão %s no %s: %s", cartao.id, cartao.provider, e)

        era_padrao = cartao.padrao
        try:
            self.repo.delete(cartao)
            if era_padrao:
                proximo = self.repo.mais_recente(cliente.id)
                if proximo:
                    proximo.padrao = True
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        logger.info("[Pagamentos] Cartão %s removido do cliente %s", cartao_id, cliente.id)

    def set_default_card(self, user_id: int, cartao_id: int) -> CartaoSalvoOut:
        cliente = self._get_cliente(user_id)
        cartao = self._get_cartao(cliente.id, cartao_id)
        self.repo.desmarcar_padrao(cliente.id)
        cartao.padrao = True
        self.repo.commit()
        self.db.refresh(cartao)
        return self._to_out(cartao)
