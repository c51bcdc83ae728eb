from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.cadastros.models.model_entregador import EntregadorModel
from app.api.configuracoes.contracts.configuracoes_contract import IConfiguracoesContract
from app.api.financeiro.models.model_ganho_entregador import GanhoEntregadorModel, TipoGanhoEntregador
from app.api.financeiro.repositories.repo_ganhos_entregador import GanhoEntregadorRepository
from app.api.financeiro.schemas.schema_financeiro import GanhoEntregadorOut
from app.api.pedidos.models.model_pedido import PedidoModel
from app.utils.database_utils import now_trimmed, inicio_do_dia, fim_do_dia, paginacao
from app.utils.logger import logger

COMISSAO_ENTREGADOR_PADRAO = Decimal("80")


def calcular_comissao(taxa_entrega, percentual) -> Decimal:
    """Parte da taxa de entrega que fica com o entregador."""
    valor = Decimal(str(taxa_entrega)) * Decimal(str(percentual)) / 100
    return valor.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)


class FinanceiroEntregadorService:
    def __init__(self, db: Session, configuracoes: IConfiguracoesContract):
        self.db = db
        self.configuracoes = configuracoes
        self.repo = GanhoEntregadorRepository(db)

    def _percentual_comissao(self) -> Decimal:
        return Decimal(str(self.configuracoes.get_or_default("driver_commission_percentage", COMISSAO_ENTREGADOR_PADRAO)))

    def _get_entregador(self, entregador_id: int) -> EntregadorModel:
        entregador = self.db.get(EntregadorModel, entregador_id)
        if not entregador:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Entregador não encontrado")
        return entregador

    # ---------------- Lançamentos ----------------
    def criar_ganho_entrega(self, pedido_id: int) -> Optional[GanhoEntregadorModel]:
        pedido = self.db.get(PedidoModel, pedido_id)
        if not pedido:
            raise HTTPException(status.HTTP_404_NOT_FOUND, f"Pedido {pedido_id} não encontrado")

        if not pedido.entregador_id:
            logger.debug("[Financeiro] Pedido %s sem entregador, ganho de entrega ignorado", pedido_id)
            return None

        existente = self.repo.get_by_pedido(pedido_id)
        if existente:
            logger.debug("[Financeiro] Ganho de entrega já existe para o pedido %s", pedido_id)
            return existente

        valor = calcular_comissao(pedido.taxa_entrega, self._percentual_comissao())
        ganho = GanhoEntregadorModel(
            entregador_id=pedido.entregador_id,
            pedido_id=pedido.id,
            valor=valor,
            tipo=TipoGanhoEntregador.DELIVERY,
            descricao=f"Entrega do pedido #{pedido.numero_pedido}",
            created_at=now_trimmed(),
        )
        try:
            self.repo.add(ganho)
            self.repo.commit()
        except IntegrityError:
            self.repo.rollback()
            logger.info("[Financeiro] Ganho de entrega do pedido %s criado em paralelo", pedido_id)
            return self.repo.get_by_pedido(pedido_id)

        logger.info(
            "[Financeiro] Ganho de entrega pedido=%s entregador=%s taxa=%s valor=%s",
            pedido_id, pedido.entregador_id, pedido.taxa_entrega, valor,
        )
        return ganho

    def adicionar_bonus(self, entregador_id: int, valor: float, descricao: str) -> GanhoEntregadorOut:
        self._get_entregador(entregador_id)
        ganho = self.repo.add(
            GanhoEntregadorModel(
                entregador_id=entregador_id,
                valor=Decimal(str(valor)),
                tipo=TipoGanhoEntregador.BONUS,
                descricao=descricao,
                created_at=now_trimmed(),
            )
        )
        self.repo.commit()
        logger.info("[Financeiro] Bônus entregador=%s valor=%s %s", entregador_id, valor, descricao)
        return GanhoEntregadorOut.model_validate(ganho)

    def adicionar_gorjeta(self, entregador_id: int, pedido_id: int, valor: float) -> GanhoEntregadorOut:
        self._get_entregador(entregador_id)
        pedido = self.db.get(PedidoModel, pedido_id)
        ganho = self.repo.add(
            GanhoEntregadorModel(
                entregador_id=entregador_id,
                valor=Decimal(str(valor)),
                tipo=TipoGanhoEntregador.TIP,
                descricao=f"Gorjeta do pedido #{pedido.numero_pedido}" if pedido else "Gorjeta",
                created_at=now_trimmed(),
            )
        )
        self.repo.commit()
        logger.info("[Financeiro] Gorjeta entregador=%s valor=%s", entregador_id, valor)
        return GanhoEntregadorOut.model_validate(ganho)

    # ---------------- Consultas ----------------
    def resumo(self, entregador_id: int) -> dict:
        total = bonus = gorjetas = total_entregas = Decimal("0")
        entregas = 0
        for g in self.repo.list_by_entregador(entregador_id):
            total += g.valor
            tipo = TipoGanhoEntregador(g.tipo)
            if tipo == TipoGanhoEntregador.DELIVERY:
                entregas += 1
                total_entregas += g.valor
            elif tipo == TipoGanhoEntregador.BONUS:
                bonus += g.valor
            elif tipo == TipoGanhoEntregador.TIP:
                gorjetas += g.valor

        # Ainda não existe saque para entregadores: todo o saldo está pendente
        return {
            "totalEarnings": float(total),
            "totalDeliveries": entregas,
            "totalBonuses": float(bonus),
            "totalTips": float(gorjetas),
            "pendingBalance": float(total),
            "paidOutAmount": 0.0,
            "averagePerDelivery": float(total_entregas / entregas) if entregas else 0.0,
        }

    def listar_ganhos(
        self,
        entregador_id: int,
        tipo: TipoGanhoEntregador | None = None,
        inicio: datetime | None = None,
        fim: datetime | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        ganhos, total = self.repo.list_paginado(entregador_id, tipo, inicio, fim, (page - 1) * limit, limit)
        return {
            "data": [GanhoEntregadorOut.model_validate(g) for g in ganhos],
            "pagination": paginacao(total, page, limit),
        }

    def ganhos_do_dia(self, entregador_id: int, dia: date | None = None) -> dict:
        dia = dia or now_trimmed().date()
        ganhos = self.repo.list_periodo(entregador_id, inicio_do_dia(dia), fim_do_dia(dia))

        total = sum((g.valor for g in ganhos), Decimal("0"))
        entregas = sum(1 for g in ganhos if TipoGanhoEntregador(g.tipo) == TipoGanhoEntregador.DELIVERY)
        return {
            "date": dia.isoformat(),
            "earnings": [GanhoEntregadorOut.model_validate(g) for g in ganhos],
            "summary": {
                "total": float(total),
                "deliveryCount": entregas,
                "averagePerDelivery": float(total / entregas) if entregas else 0.0,
            },
        }

    # ---------------- Admin ----------------
    def visao_geral(self) -> dict:
        por_tipo = self.repo.totais_por_tipo()
        return {
            "totalEarnings": float(sum((valor for _, _, valor in por_tipo), Decimal("0"))),
            "totalTransactions": sum(qtd for _, qtd, _ in por_tipo),
            "byType": {
                TipoGanhoEntregador(tipo).value: {"count": qtd, "amount": float(valor)}
                for tipo, qtd, valor in por_tipo
            },
        }

    def ranking(self, limit: int = 10) -> list[dict]:
        return [
            {
                "driver": {"id": entregador.id, "nome": entregador.nome},
                "totalEarnings": float(total),
                "deliveryCount": quantidade,
            }
            for entregador, total, quantidade in self.repo.ranking(limit)
        ]

    def backfill(self) -> dict:
        """Cria o ganho de entrega de pedidos entregues que ficaram sem lançamento."""
        percentual = self._percentual_comissao()
        pedidos = self.repo.pedidos_entregues_sem_ganho()

        criados = ignorados = 0
        for pedido in pedidos:
            try:
                self.repo.add(
                    GanhoEntregadorModel(
                        entregador_id=pedido.entregador_id,
                        pedido_id=pedido.id,
                        valor=calcular_comissao(pedido.taxa_entrega, percentual),
                        tipo=TipoGanhoEntregador.DELIVERY,
                        descricao=f"Entrega do pedido #{pedido.numero_pedido}",
                        created_at=now_trimmed(),
                    )
                )
                self.repo.commit()
                criados += 1
            except IntegrityError:
                self.repo.rollback()
                ignorados += 1

        logger.info(
            "[Financeiro] Backfill concluído: processados=%s criados=%s ignorados=%s",
            len(pedidos), criados, ignorados,
        )
        return {"processed": len(pedidos), "created": criados, "skipped": ignorados}
