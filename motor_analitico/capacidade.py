"""
Capacidade da equipe
Horas estimadas das tarefas ativas de cada membro contra a capacidade semanal.
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from config import CAPACIDADE_SEMANAL_PADRAO_HORAS, UTILIZACAO_LIMITE_ATENCAO, UTILIZACAO_LIMITE_SOBRECARGA
from motor_analitico.dinheiro import arredondar
from motor_analitico.entidades import MembroEquipePublico, Tarefa
from supabase_manager import Filtro

STATUS_ATIVOS = ("todo", "in_progress")


@dataclass(frozen=True)
class TarefaAlocada:
    id: str
    title: str
    estimated_minutes: int
    deadline: Optional[date]
    project_name: Optional[str]


@dataclass(frozen=True)
class CargaMembro:
    id: str
    name: str
    weekly_capacity_hours: int
    allocated_hours: float  # 1 casa decimal
    utilization_percent: int
    status: str  # healthy, attention, overloaded
    tasks: Tuple[TarefaAlocada, ...] = ()


def classificar_utilizacao(percentual: float) -> str:
    if percentual > UTILIZACAO_LIMITE_SOBRECARGA:
        return "overloaded"
    if percentual >= UTILIZACAO_LIMITE_ATENCAO:
        return "attention"
    return "healthy"


def calcular_capacidade(membros: Iterable[MembroEquipePublico], tarefas: Iterable[Tarefa]) -> List[CargaMembro]:
    """Carga de cada membro, da maior utilização para a menor"""
    por_membro: Dict[str, List[Tarefa]] = {}
    for tarefa in tarefas:
        if tarefa.status in STATUS_ATIVOS and tarefa.assignee_id:
            por_membro.setdefault(tarefa.assignee_id, []).append(tarefa)

    cargas = []
    for membro in membros:
        tarefas_membro = por_membro.get(membro.id, [])
        horas = sum(t.estimated_time_minutes for t in tarefas_membro) / 60
        capacidade = membro.weekly_capacity_hours or CAPACIDADE_SEMANAL_PADRAO_HORAS
        utilizacao = horas / capacidade * 100

        cargas.append(CargaMembro(
            id=membro.id,
            name=membro.name,
            weekly_capacity_hours=capacidade,
            allocated_hours=arredondar(horas, 1),
            utilization_percent=arredondar(utilizacao),
            status=classificar_utilizacao(utilizacao),
            tasks=tuple(
                TarefaAlocada(
                    id=t.id,
                    title=t.title,
                    estimated_minutes=t.estimated_time_minutes,
                    deadline=t.deadline,
                    project_name=t.project_name,
                )
                for t in tarefas_membro
            ),
        ))

    cargas.sort(key=lambda c: c.utilization_percent, reverse=True)
    return cargas


def resumo_capacidade(cargas: Iterable[CargaMembro]) -> Dict[str, int]:
    resumo = {"overloaded": 0, "attention": 0, "healthy": 0}
    for carga in cargas:
        resumo[carga.status] += 1
    return resumo


def carregar_capacidade(manager) -> List[CargaMembro]:
    membros = manager.listar_membros()
    tarefas = manager.listar_tarefas([Filtro.em("status", STATUS_ATIVOS)])
    return calcular_capacidade(membros, tarefas)
