"""
Metas mensais (faturamento, leads, quantidade de vendas).
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from config import META_LIMITE_ATINGIDA, META_LIMITE_PROXIMA
from motor_analitico.entidades import MetaMensal

TIPOS_META = ("faturamento", "leads", "vendas_qtd")


@dataclass(frozen=True)
class ProgressoMeta:
    type: str
    target: int
    achieved: int

    @property
    def percentual(self) -> float:
        if self.target <= 0:
            return 0.0
        return min(self.achieved / self.target * 100, 100.0)

    @property
    def superada(self) -> bool:
        return self.target > 0 and self.achieved > self.target

    @property
    def status(self) -> str:
        if self.percentual >= META_LIMITE_ATINGIDA:
            return "reached"
        if self.percentual >= META_LIMITE_PROXIMA:
            return "close"
        return "behind"


def progresso_metas(metas: Iterable[MetaMensal], mes: str) -> Dict[str, Optional[ProgressoMeta]]:
    """Progresso de cada tipo de meta no mês; None quando o tipo não tem meta"""
    progresso: Dict[str, Optional[ProgressoMeta]] = {tipo: None for tipo in TIPOS_META}
    for meta in metas:
        if meta.month != mes or meta.type not in progresso or progresso[meta.type] is not None:
            continue
        progresso[meta.type] = ProgressoMeta(
            type=meta.type,
            target=meta.target_value_centavos,
            achieved=meta.achieved_value_centavos,
        )
    return progresso


def carregar_metas(manager, mes: str) -> Dict[str, Optional[ProgressoMeta]]:
    return progresso_metas(manager.listar_metas(mes), mes)
