"""
Pipeline comercial e movimentação do kanban.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from config import ESTAGIOS_DEAL, ESTAGIOS_TERMINAIS
from motor_analitico.comissoes import MotorComissoes
from motor_analitico.dinheiro import arredondar
from motor_analitico.entidades import Deal, Transacao

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KPIsPipeline:
    valor_ponderado: int = 0
    total_aberto: int = 0
    valor_fechado: int = 0
    por_estagio: Dict[str, Tuple[Deal, ...]] = field(default_factory=dict)

    @property
    def quantidade_aberta(self) -> int:
        return sum(len(deals) for estagio, deals in self.por_estagio.items() if estagio not in ESTAGIOS_TERMINAIS)


def agrupar_por_estagio(deals: Iterable[Deal]) -> Dict[str, Tuple[Deal, ...]]:
    """Colunas do kanban na ordem dos estágios; estágio desconhecido cai em prospecção"""
    colunas: Dict[str, List[Deal]] = {estagio: [] for estagio in ESTAGIOS_DEAL}
    for deal in deals:
        estagio = deal.stage if deal.stage in colunas else "prospecting"
        colunas[estagio].append(deal)
    return {estagio: tuple(lista) for estagio, lista in colunas.items()}


def calcular_pipeline(deals: Iterable[Deal]) -> KPIsPipeline:
    """Valor ponderado = round(Σ valor × probabilidade / 100) dos negócios em aberto"""
    deals = list(deals)
    abertos = [d for d in deals if d.stage not in ESTAGIOS_TERMINAIS]
    return KPIsPipeline(
        valor_ponderado=arredondar(sum(d.valor_ponderado for d in abertos)),
        total_aberto=sum(d.value_centavos for d in abertos),
        valor_fechado=sum(d.value_centavos for d in deals if d.stage == "closed_won"),
        por_estagio=agrupar_por_estagio(deals),
    )


def carregar_pipeline(manager) -> KPIsPipeline:
    return calcular_pipeline(manager.listar_deals())


def mover_deal(manager, deal_id: str, estagio: str, motivo_perda: Optional[str] = None,
               motor: MotorComissoes = None) -> Tuple[Deal, Optional[Transacao]]:
    """
    Move o negócio no kanban.

    Provisiona comissão só na transição para closed_won (estágio anterior
    diferente). Perder um negócio não estorna comissão já provisionada.

    Returns:
        (deal atualizado, comissão provisionada ou None)
    """
    anterior = manager.obter_deal(deal_id)
    atualizado = manager.atualizar_estagio_deal(deal_id, estagio, motivo_perda)

    comissao = None
    if estagio == "closed_won" and anterior.stage != "closed_won":
        motor = motor or MotorComissoes(manager)
        comissao = motor.provisionar(atualizado)
    elif estagio == "closed_lost":
        logger.info("[CRM] Negócio %s perdido: %s", deal_id, motivo_perda or "sem motivo informado")

    return atualizado, comissao
