from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.configuracoes.contracts.configuracoes_contract import IConfiguracoesContract
from app.api.financeiro.models.model_conta_bancaria import ContaBancariaModel
from app.api.financeiro.models.model_ganho_restaurante import GanhoRestauranteModel, StatusGanho
from app.api.financeiro.models.model_repasse_restaurante import (
    RepasseRestauranteModel,
    StatusRepasse,
    MetodoRepasse,
)
from app.api.financeiro.repositories.repo_ganhos_restaurante import GanhoRestauranteRepository
from app.api.financeiro.repositories.repo_repasses import RepasseRepository
from app.api.financeiro.schemas.schema_financeiro import (
    GanhoRestauranteOut,
    RepasseOut,
    ContaBancariaRequest,
    SolicitarRepasseResponse,
)
from app.api.pedidos.models.model_pedido import PedidoModel
from app.utils.database_utils import now_trimmed, paginacao
from app.utils.formatacao import formatar_brl
from app.utils.logger import logger

QUATRO_CASAS = Decimal("0.0001")

PLATFORM_FEE_PADRAO = Decimal("15")
PAYMENT_FEE_PADRAO = Decimal("3.5")
DIAS_CARENCIA_PADRAO = 3
SAQUE_MINIMO_PADRAO = Decimal("50")


def _q4(valor: Decimal) -> Decimal:
    return valor.quantize(QUATRO_CASAS, rounding=ROUND_HALF_UP)


def calcular_ganho(subtotal, percentual_plataforma, percentual_pagamento) -> dict:
    """
    Divide o subtotal do pedido entre plataforma, custo de pagamento e restaurante.
    A taxa de entrega não entra aqui; ela pertence ao entregador e à plataforma.
    """
    bruto = Decimal(str(subtotal))
    taxa_plataforma = _q4(bruto * Decimal(str(percentual_plataforma)) / 100)
    taxa_pagamento = _q4(bruto * Decimal(str(percentual_pagamento)) / 100)
    return {
        "valor_bruto": bruto,
        "taxa_plataforma": taxa_plataforma,
        "taxa_pagamento": taxa_pagamento,
        "valor_liquido": bruto - taxa_plataforma - taxa_pagamento,
    }


class FinanceiroRestauranteService:
    def __init__(self, db: Session, configuracoes: IConfiguracoesContract):
        self.db = db
        self.configuracoes = configuracoes
        self.repo_ganhos = GanhoRestauranteRepository(db)
        self.repo_repasses = RepasseRepository(db)

    # ---------------- Ganhos ----------------
    def criar_ganho(self, pedido_id: int) -> GanhoRestauranteModel:
        """Registra o ganho do restaurante para o pedido. Repetir a chamada devolve o lançamento existente."""
        pedido = self.db.get(PedidoModel, pedido_id)
        if not pedido:
            raise HTTPException(status.HTTP_404_NOT_FOUND, f"Pedido {pedido_id} não encontrado")

        existente = self.repo_ganhos.get_by_pedido(pedido_id)
        if existente:
            logger.debug("[Financeiro] Ganho já existe para o pedido %s", pedido_id)
            return existente

        percentual_plataforma = self.configuracoes.get_or_default("platform_fee_percentage", PLATFORM_FEE_PADRAO)
        percentual_pagamento = self.configuracoes.get_or_default("payment_fee_percentage", PAYMENT_FEE_PADRAO)
        dias_carencia = int(self.configuracoes.get_or_default("earning_delay_days", DIAS_CARENCIA_PADRAO))

        valores = calcular_ganho(pedido.subtotal, percentual_plataforma, percentual_pagamento)
        ganho = GanhoRestauranteModel(
            restaurante_id=pedido.restaurante_id,
            pedido_id=pedido.id,
            percentual_taxa=Decimal(str(percentual_plataforma)),
            disponivel_em=now_trimmed() + timedelta(days=dias_carencia),
            status=StatusGanho.PENDING,
            **valores,
        )

        try:
            self.repo_ganhos.add(ganho)
            self.repo_ganhos.commit()
        except IntegrityError:
            # Outra requisição gravou o mesmo pedido primeiro
            self.repo_ganhos.rollback()
            logger.info("[Financeiro] Ganho do pedido %s criado em paralelo, mantendo o existente", pedido_id)
            return self.repo_ganhos.get_by_pedido(pedido_id)

        logger.info(
            "[Financeiro] Ganho criado pedido=%s bruto=%s liquido=%s",
            pedido_id, valores["valor_bruto"], valores["valor_liquido"],
        )
        return ganho

    def liberar_ganhos_pendentes(self) -> int:
        """PENDING -> AVAILABLE para ganhos cuja carência terminou."""
        quantidade = self.repo_ganhos.liberar_pendentes(now_trimmed())
        self.repo_ganhos.commit()
        if quantidade:
            logger.info("[Financeiro] %s ganhos liberados para saque", quantidade)
        return quantidade

    def backfill(self) -> dict:
        """Cria o ganho de pedidos entregues cujo pagamento foi confirmado depois da entrega."""
        pedidos = self.repo_ganhos.pedidos_entregues_sem_ganho()

        criados = 0
        for pedido in pedidos:
            self.criar_ganho(pedido.id)
            criados += 1

        logger.info("[Financeiro] Backfill de restaurantes concluído: criados=%s", criados)
        return {"processed": len(pedidos), "created": criados}

    def resumo(self, restaurante_id: int) -> dict:
        ganhos = self.repo_ganhos.list_by_restaurante(restaurante_id)

        total_bruto = total_plataforma = total_pagamento = total_liquido = Decimal("0")
        por_status = {s: Decimal("0") for s in StatusGanho}
        for g in ganhos:
            total_bruto += g.valor_bruto
            total_plataforma += g.taxa_plataforma
            total_pagamento += g.taxa_pagamento
            total_liquido += g.valor_liquido
            por_status[StatusGanho(g.status)] += g.valor_liquido

        return {
            "totalGross": float(total_bruto),
            "totalPlatformFee": float(total_plataforma),
            "totalPaymentFee": float(total_pagamento),
            "totalNet": float(total_liquido),
            "pendingAmount": float(por_status[StatusGanho.PENDING]),
            "availableAmount": float(por_status[StatusGanho.AVAILABLE]),
            "paidOutAmount": float(por_status[StatusGanho.PAID_OUT]),
            "earningsCount": len(ganhos),
        }

    def listar_ganhos(
        self,
        restaurante_id: int,
        status_filtro: StatusGanho | None = None,
        inicio: datetime | None = None,
        fim: datetime | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        ganhos, total = self.repo_ganhos.list_paginado(
            restaurante_id, status_filtro, inicio, fim, (page - 1) * limit, limit
        )
        return {
            "data": [GanhoRestauranteOut.model_validate(g) for g in ganhos],
            "pagination": paginacao(total, page, limit),
        }

    def saldo_disponivel(self, restaurante_id: int) -> Decimal:
        self.liberar_ganhos_pendentes()
        return self.repo_ganhos.soma_disponivel(restaurante_id)

    # ---------------- Repasses ----------------
    def solicitar_repasse(self, restaurante_id: int, valor: Optional[float] = None) -> SolicitarRepasseResponse:
        """
        Agrupa ganhos AVAILABLE, do mais antigo ao mais novo, sem ultrapassar o valor pedido.

        O repasse e a baixa dos ganhos são gravados na mesma transação.
        """
        saldo = self.saldo_disponivel(restaurante_id)
        minimo = Decimal(str(self.configuracoes.get_or_default("min_payout_amount", SAQUE_MINIMO_PADRAO)))

        if saldo < minimo:
            raise HTTPException(
                status.HTTP_400_BAD_REQUEST,
                f"Saldo mínimo para saque é {formatar_brl(minimo)}. Saldo disponível: {formatar_brl(saldo)}",
            )

        solicitado = Decimal(str(valor)) if valor is not None else saldo
        if solicitado > saldo:
            raise HTTPException(
                status.HTTP_400_BAD_REQUEST,
                f"Valor solicitado ({formatar_brl(solicitado)}) é maior que o saldo disponível ({formatar_brl(saldo)})",
            )
        if solicitado < minimo:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, f"Valor mínimo para saque é {formatar_brl(minimo)}")

        conta = self.repo_repasses.get_conta_bancaria(restaurante_id)
        if not conta:
            raise HTTPException(
                status.HTTP_400_BAD_REQUEST,
                "Conta bancária não cadastrada. Configure seus dados bancários primeiro.",
            )

        try:
            disponiveis = self.repo_ganhos.list_disponiveis_para_repasse(restaurante_id)

            acumulado = Decimal("0")
            incluidos: list[GanhoRestauranteModel] = []
            for ganho in disponiveis:
                if acumulado + ganho.valor_liquido <= solicitado:
                    acumulado += ganho.valor_liquido
                    incluidos.append(ganho)

            if not incluidos:
                raise HTTPException(status.HTTP_400_BAD_REQUEST, "Nenhum ganho disponível para saque")

            repasse = self.repo_repasses.add(
                RepasseRestauranteModel(
                    restaurante_id=restaurante_id,
                    valor=acumulado,
                    status=StatusRepasse.PENDING,
                    metodo=MetodoRepasse.PIX if conta.chave_pix else MetodoRepasse.TED,
                    periodo_inicio=min(g.created_at for g in incluidos),
                    periodo_fim=max(g.created_at for g in incluidos),
                    quantidade_ganhos=len(incluidos),
                    solicitado_em=now_trimmed(),
                )
            )
            baixados = self.repo_ganhos.marcar_pagos([g.id for g in incluidos], repasse.id)
            if baixados != len(incluidos):
                raise HTTPException(
                    status.HTTP_409_CONFLICT,
                    "Saldo alterado durante a solicitação. Tente novamente.",
                )
            self.repo_repasses.commit()
        except Exception:
            self.repo_repasses.rollback()
            raise

        logger.info(
            "[Financeiro] Repasse %s criado restaurante=%s valor=%s ganhos=%s",
            repasse.id, restaurante_id, acumulado, len(incluidos),
        )
        return SolicitarRepasseResponse(success=True, repasse_id=repasse.id, valor=float(acumulado))

    def listar_repasses(
        self, restaurante_id: int, status_filtro: StatusRepasse | None = None, page: int = 1, limit: int = 20
    ) -> dict:
        repasses, total = self.repo_repasses.list_paginado(restaurante_id, status_filtro, (page - 1) * limit, limit)
        return {
            "data": [RepasseOut.model_validate(r) for r in repasses],
            "pagination": paginacao(total, page, limit),
        }

    def _get_repasse(self, repasse_id: int) -> RepasseRestauranteModel:
        repasse = self.repo_repasses.get(repasse_id)
        if not repasse:
            raise HTTPException(status.HTTP_404_NOT_FOUND, f"Repasse {repasse_id} não encontrado")
        return repasse

    def processar_repasse(
        self,
        repasse_id: int,
        admin_id: int,
        referencia: str | None = None,
        comprovante_url: str | None = None,
        observacoes: str | None = None,
    ) -> RepasseOut:
        repasse = self._get_repasse(repasse_id)
        if repasse.status != StatusRepasse.PENDING:
            raise HTTPException(
                status.HTTP_400_BAD_REQUEST,
                f"Repasse já processado (status: {StatusRepasse(repasse.status).value})",
            )

        repasse.status = StatusRepasse.COMPLETED
        repasse.processado_em = now_trimmed()
        repasse.processado_por = admin_id
        repasse.referencia = referencia
        repasse.comprovante_url = comprovante_url
        repasse.observacoes = observacoes
        self.repo_repasses.commit()
        self.db.refresh(repasse)

        logger.info("[Financeiro] Repasse %s concluído pelo admin %s", repasse_id, admin_id)
        return RepasseOut.model_validate(repasse)

    def cancelar_repasse(self, repasse_id: int, motivo: str) -> RepasseOut:
        """Devolve ao saldo exatamente os ganhos que compunham este repasse."""
        repasse = self._get_repasse(repasse_id)
        if repasse.status != StatusRepasse.PENDING:
            raise HTTPException(
                status.HTTP_400_BAD_REQUEST,
                f"Não é possível cancelar repasse com status: {StatusRepasse(repasse.status).value}",
            )

        try:
            revertidos = self.repo_ganhos.reverter_do_repasse(repasse.id)
            repasse.status = StatusRepasse.FAILED
            repasse.observacoes = motivo
            self.repo_repasses.commit()
        except Exception:
            self.repo_repasses.rollback()
            raise

        self.db.refresh(repasse)
        logger.info("[Financeiro] Repasse %s cancelado (%s ganhos devolvidos): %s", repasse_id, revertidos, motivo)
        return RepasseOut.model_validate(repasse)

    # ---------------- Conta bancária ----------------
    def get_conta_bancaria(self, restaurante_id: int) -> Optional[ContaBancariaModel]:
        return self.repo_repasses.get_conta_bancaria(restaurante_id)

    def salvar_conta_bancaria(self, restaurante_id: int, dados: ContaBancariaRequest) -> ContaBancariaModel:
        """Cria ou substitui os dados bancários. Qualquer alteração exige nova verificação."""
        conta = self.repo_repasses.get_conta_bancaria(restaurante_id)
        if conta is None:
            conta = self.repo_repasses.add_conta_bancaria(
                ContaBancariaModel(restaurante_id=restaurante_id, **dados.model_dump())
            )
        else:
            for campo, valor in dados.model_dump().items():
                setattr(conta, campo, valor)
            conta.verificada = False
            conta.verificada_em = None

        self.repo_repasses.commit()
        self.db.refresh(conta)
        return conta

    def verificar_conta_bancaria(self, restaurante_id: int) -> ContaBancariaModel:
        conta = self.repo_repasses.get_conta_bancaria(restaurante_id)
        if not conta:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Conta bancária não cadastrada")
        conta.verificada = True
        conta.verificada_em = now_trimmed()
        self.repo_repasses.commit()
        self.db.refresh(conta)
        return conta

    # ---------------- Admin ----------------
    def listar_repasses_pendentes(self, page: int = 1, limit: int = 20) -> dict:
        repasses, total = self.repo_repasses.list_paginado(
            None, StatusRepasse.PENDING, (page - 1) * limit, limit, mais_antigos_primeiro=True
        )
        data = []
        for r in repasses:
            item = RepasseOut.model_validate(r).model_dump()
            item["restaurante"] = (
                {"id": r.restaurante.id, "nome": r.restaurante.nome, "slug": r.restaurante.slug}
                if r.restaurante else None
            )
            data.append(item)
        return {"data": data, "pagination": paginacao(total, page, limit)}

    def visao_geral(self) -> dict:
        totais = self.repo_ganhos.totais()
        pendentes_qtd, pendentes_valor = self.repo_repasses.agregado_por_status(StatusRepasse.PENDING)
        concluidos_qtd, concluidos_valor = self.repo_repasses.agregado_por_status(StatusRepasse.COMPLETED)
        return {
            "totalGrossRevenue": float(totais["bruto"]),
            "totalPlatformFees": float(totais["plataforma"]),
            "totalPaymentFees": float(totais["pagamento"]),
            "totalNetToRestaurants": float(totais["liquido"]),
            "pendingPayouts": {"count": pendentes_qtd, "amount": float(pendentes_valor)},
            "completedPayouts": {"count": concluidos_qtd, "amount": float(concluidos_valor)},
        }
