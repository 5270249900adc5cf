"""
Painel Analítico
Ponto único de leitura dos agregados, cada um passando pelo cache.

Os agregados são leituras independentes; carregar_tudo() dispara todos em
paralelo e aborta se qualquer um falhar (nunca devolve painel parcial).
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date
from typing import Any, Callable, Dict, Optional

from config import CHURN_HORIZONTE_PADRAO_DIAS
from motor_analitico.cache import CacheAgregados
from motor_analitico.capacidade import carregar_capacidade
from motor_analitico.churn_radar import carregar_radar_churn
from motor_analitico.dinheiro import mes_corrente, validar_mes
from motor_analitico.dre import carregar_dre
from motor_analitico.metas import carregar_metas
from motor_analitico.performance_vendas import carregar_ranking_vendas
from motor_analitico.pipeline import carregar_pipeline
from motor_analitico.projetos import carregar_projetos
from motor_analitico.rentabilidade import carregar_rentabilidade

logger = logging.getLogger(__name__)

MAX_WORKERS = 6


class PainelAnalitico:
    """Agregados da organização do manager, com cache por (organização, agregado, parâmetros)"""

    def __init__(self, manager, cache: CacheAgregados = None, hoje: date = None):
        self.manager = manager
        if cache is None:
            cache = manager.cache if manager.cache is not None else CacheAgregados()
        # mutações feitas pelo mesmo manager invalidam este cache
        if manager.cache is None:
            manager.cache = cache
        self.cache = cache
        self.hoje = hoje

    def _hoje(self) -> date:
        return self.hoje or date.today()

    def _mes(self, mes: Optional[str]) -> str:
        return validar_mes(mes) if mes else mes_corrente(self._hoje())

    def _obter(self, nome: str, params, calcular: Callable[[], Any]):
        return self.cache.obter_ou_calcular(self.manager.organization_id, nome, params, calcular)

    # ============================================
    # AGREGADOS
    # ============================================

    def dre(self, mes: Optional[str] = None):
        mes = self._mes(mes)
        return self._obter("dre", mes, lambda: carregar_dre(self.manager, mes))

    def rentabilidade(self):
        return self._obter("rentabilidade", None, lambda: carregar_rentabilidade(self.manager))

    def ranking_vendas(self, mes: Optional[str] = None):
        mes = self._mes(mes)
        return self._obter("performance_vendas", mes, lambda: carregar_ranking_vendas(self.manager, mes))

    def radar_churn(self, horizonte_dias: int = CHURN_HORIZONTE_PADRAO_DIAS):
        hoje = self._hoje()
        return self._obter(
            "radar_churn", (horizonte_dias, hoje.isoformat()),
            lambda: carregar_radar_churn(self.manager, horizonte_dias, hoje),
        )

    def capacidade(self):
        return self._obter("capacidade", None, lambda: carregar_capacidade(self.manager))

    def pipeline(self):
        return self._obter("pipeline", None, lambda: carregar_pipeline(self.manager))

    def projetos(self):
        hoje = self._hoje()
        return self._obter("projetos", hoje.isoformat(), lambda: carregar_projetos(self.manager, hoje))

    def metas(self, mes: Optional[str] = None):
        mes = self._mes(mes)
        return self._obter("metas", mes, lambda: carregar_metas(self.manager, mes))

    # ============================================
    # CARGA COMPLETA
    # ============================================

    def carregar_tudo(self, mes: Optional[str] = None,
                      horizonte_dias: int = CHURN_HORIZONTE_PADRAO_DIAS) -> Dict[str, Any]:
        """Todos os agregados em paralelo; a primeira falha é propagada"""
        mes = self._mes(mes)
        tarefas = {
            "dre": lambda: self.dre(mes),
            "rentabilidade": self.rentabilidade,
            "ranking_vendas": lambda: self.ranking_vendas(mes),
            "radar_churn": lambda: self.radar_churn(horizonte_dias),
            "capacidade": self.capacidade,
            "pipeline": self.pipeline,
            "projetos": self.projetos,
            "metas": lambda: self.metas(mes),
        }

        resultados = {}
        with ThreadPoolExecutor(max_workers=MAX_WORKERS) as executor:
            futures = {executor.submit(funcao): nome for nome, funcao in tarefas.items()}
            try:
                for future in as_completed(futures):
                    nome = futures[future]
                    resultados[nome] = future.result()
            except Exception:
                for pendente in futures:
                    pendente.cancel()
                logger.error("[PAINEL] Falha ao carregar %s", nome)
                raise
        return resultados
