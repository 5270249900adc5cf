"""
Cache de agregados com invalidação explícita por tipo de entidade.

Cada agregado declara de quais entidades deriva; cada mutação invalida,
para a sua organização, todos os agregados que dependem da entidade escrita.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Hashable, Iterable, Tuple

logger = logging.getLogger(__name__)

# Dependências de cada agregado
DEPENDENCIAS = {
    "dre": frozenset({"transactions", "organizations"}),
    "rentabilidade": frozenset({"clients", "projects", "transactions", "tasks", "profiles"}),
    "performance_vendas": frozenset({"profiles", "deals", "transactions"}),
    "radar_churn": frozenset({"clients"}),
    "capacidade": frozenset({"profiles", "tasks", "projects"}),
    "pipeline": frozenset({"deals"}),
    "projetos": frozenset({"tasks", "projects"}),
    "metas": frozenset({"monthly_goals"}),
}

Chave = Tuple[str, str, Hashable]


@dataclass
class _Entrada:
    valor: Any
    dependencias: FrozenSet[str] = field(default_factory=frozenset)


class CacheAgregados:
    """Cache em memória, seguro para threads"""

    def __init__(self):
        self._entradas: Dict[Chave, _Entrada] = {}
        # (organização, entidade) -> número de invalidações já ocorridas
        self._geracoes: Dict[Tuple[str, str], int] = {}
        self._epoca = 0
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._entradas)

    def _snapshot(self, organization_id: str, dependencias: FrozenSet[str]):
        return self._epoca, {e: self._geracoes.get((organization_id, e), 0) for e in dependencias}

    def obter_ou_calcular(self, organization_id: str, nome: str, params: Hashable,
                          calcular: Callable[[], Any], dependencias: Iterable[str] = None):
        """
        Devolve o valor em cache ou calcula, guarda e devolve.

        Se uma dependência for invalidada durante o cálculo, o valor é
        devolvido ao chamador mas não fica em cache.
        """
        chave = (organization_id, nome, params)
        deps = frozenset(dependencias) if dependencias is not None else DEPENDENCIAS.get(nome, frozenset())
        with self._lock:
            entrada = self._entradas.get(chave)
            if entrada is not None:
                return entrada.valor
            antes = self._snapshot(organization_id, deps)

        valor = calcular()
        with self._lock:
            if self._snapshot(organization_id, deps) == antes:
                self._entradas[chave] = _Entrada(valor=valor, dependencias=deps)
            else:
                logger.debug("[CACHE] %s descartado: dependência invalidada durante o cálculo", nome)
        return valor

    def invalidar(self, entidade: str, organization_id: str) -> int:
        """Remove os agregados da organização que dependem da entidade"""
        with self._lock:
            geracao = (organization_id, entidade)
            self._geracoes[geracao] = self._geracoes.get(geracao, 0) + 1
            alvos = [
                chave for chave, entrada in self._entradas.items()
                if chave[0] == organization_id and entidade in entrada.dependencias
            ]
            for chave in alvos:
                del self._entradas[chave]

        if alvos:
            logger.debug("[CACHE] %s invalidou %d agregado(s) da org %s", entidade, len(alvos), organization_id)
        return len(alvos)

    def limpar(self):
        with self._lock:
            self._entradas.clear()
            self._epoca += 1
