"""
Radar de churn
Clientes cujo contrato termina dentro do horizonte, classificados por dias restantes.
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List

from config import CHURN_HORIZONTE_PADRAO_DIAS, CHURN_LIMITE_ALTO_DIAS, CHURN_LIMITE_CRITICO_DIAS
from motor_analitico.dinheiro import dias_ate, somar_dias
from motor_analitico.entidades import Cliente
from supabase_manager import Filtro, Ordem

NIVEIS_RISCO = ("critical", "high", "medium")


@dataclass(frozen=True)
class RiscoChurn:
    client_id: str
    client_name: str
    contract_end: date
    days_until_end: int
    fee_mensal_centavos: int
    risk_level: str  # critical, high, medium


def classificar_risco(dias_restantes: int) -> str:
    if dias_restantes < CHURN_LIMITE_CRITICO_DIAS:
        return "critical"
    if dias_restantes < CHURN_LIMITE_ALTO_DIAS:
        return "high"
    return "medium"


def calcular_radar(clientes: Iterable[Cliente], hoje: date = None,
                   horizonte_dias: int = CHURN_HORIZONTE_PADRAO_DIAS) -> List[RiscoChurn]:
    """
    Riscos em ordem crescente de fim de contrato.
    Contratos já encerrados (dias < 0) e sem data de fim ficam de fora.
    """
    hoje = hoje or date.today()
    limite = somar_dias(hoje, horizonte_dias)

    riscos = []
    for cliente in sorted((c for c in clientes if c.contrato_fim), key=lambda c: c.contrato_fim):
        if cliente.contrato_fim > limite:
            continue
        dias = dias_ate(cliente.contrato_fim, hoje)
        if dias < 0:
            continue
        riscos.append(RiscoChurn(
            client_id=cliente.id,
            client_name=cliente.name,
            contract_end=cliente.contrato_fim,
            days_until_end=dias,
            fee_mensal_centavos=cliente.fee_mensal_centavos,
            risk_level=classificar_risco(dias),
        ))
    return riscos


def receita_em_risco(riscos: Iterable[RiscoChurn]) -> Dict[str, int]:
    """Fee mensal somado por nível de risco, mais o total"""
    totais = {nivel: 0 for nivel in NIVEIS_RISCO}
    for risco in riscos:
        totais[risco.risk_level] += risco.fee_mensal_centavos
    totais["total"] = sum(totais[nivel] for nivel in NIVEIS_RISCO)
    return totais


def carregar_radar_churn(manager, horizonte_dias: int = CHURN_HORIZONTE_PADRAO_DIAS,
                         hoje: date = None) -> List[RiscoChurn]:
    hoje = hoje or date.today()
    limite = somar_dias(hoje, horizonte_dias)
    clientes = manager.listar_clientes(
        [Filtro.nao_nulo("contrato_fim"), Filtro.lte("contrato_fim", limite.isoformat())],
        ordem=Ordem("contrato_fim"),
    )
    return calcular_radar(clientes, hoje, horizonte_dias)
