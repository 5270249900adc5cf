"""
Ranking de vendas do período
Negócios fechados e comissões provisionadas por vendedor.
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional

from config import CATEGORIA_COMISSAO
from motor_analitico.dinheiro import arredondar, janela_mes, limites_timestamp
from motor_analitico.entidades import Deal, MembroEquipePublico, Transacao
from supabase_manager import Filtro


@dataclass
class PerformanceVendedor:
    salesperson_id: str
    salesperson_name: str
    deals_closed: int = 0
    revenue_centavos: int = 0
    commission_earned_centavos: int = 0

    @property
    def average_ticket_centavos(self) -> int:
        if self.deals_closed <= 0:
            return 0
        return arredondar(self.revenue_centavos / self.deals_closed)

    def to_dict(self) -> Dict:
        return {
            "salesperson_id": self.salesperson_id,
            "salesperson_name": self.salesperson_name,
            "deals_closed": self.deals_closed,
            "revenue_centavos": self.revenue_centavos,
            "average_ticket_centavos": self.average_ticket_centavos,
            "commission_earned_centavos": self.commission_earned_centavos,
        }


def ranquear_vendas(membros: Iterable[MembroEquipePublico], deals: Iterable[Deal],
                    comissoes: Iterable[Transacao]) -> List[PerformanceVendedor]:
    """
    Soma negócios ganhos e comissões por vendedor.

    Todo membro parte zerado; quem termina sem negócio e sem receita sai do
    resultado. Ordenação estável por receita decrescente.
    """
    performance: Dict[str, PerformanceVendedor] = {}
    for membro in membros:
        performance[membro.id] = PerformanceVendedor(salesperson_id=membro.id, salesperson_name=membro.name)

    for deal in deals:
        if deal.stage != "closed_won":
            continue
        perf = performance.get(deal.salesperson_id)
        if perf is not None:
            perf.deals_closed += 1
            perf.revenue_centavos += deal.value_centavos

    for comissao in comissoes:
        if comissao.category != CATEGORIA_COMISSAO:
            continue
        perf = performance.get(comissao.salesperson_id)
        if perf is not None:
            perf.commission_earned_centavos += comissao.value_centavos

    ranking = [p for p in performance.values() if p.deals_closed > 0 or p.revenue_centavos > 0]
    ranking.sort(key=lambda p: p.revenue_centavos, reverse=True)
    return ranking


def carregar_ranking_vendas(manager, mes: Optional[str] = None, hoje: date = None) -> List[PerformanceVendedor]:
    """Ranking do mês ('YYYY-MM', padrão mês corrente)"""
    inicio, fim = janela_mes(mes, hoje)
    inicio_ts, fim_ts = limites_timestamp(inicio, fim)

    membros = manager.listar_membros()
    deals = manager.listar_deals([
        Filtro.eq("stage", "closed_won"),
        Filtro.gte("updated_at", inicio_ts),
        Filtro.lte("updated_at", fim_ts),
    ], ordem=None)
    comissoes = manager.listar_transacoes([
        Filtro.eq("category", CATEGORIA_COMISSAO),
        Filtro.gte("date", inicio.isoformat()),
        Filtro.lte("date", fim.isoformat()),
    ], ordem=None)
    return ranquear_vendas(membros, deals, comissoes)
