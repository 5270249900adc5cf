"""
Projetos: estatísticas de tarefas e consumo de horas contratadas.
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List

from config import PROJETO_LIMITE_ATENCAO, PROJETO_LIMITE_CRITICO, PROJETO_LIMITE_EXCEDIDO
from motor_analitico.dinheiro import razao_percentual
from motor_analitico.entidades import Projeto, Tarefa


@dataclass
class EstatisticasProjeto:
    total_tasks: int = 0
    completed_tasks: int = 0
    late_tasks: int = 0
    total_minutes: int = 0
    estimated_minutes: int = 0


@dataclass(frozen=True)
class ConsumoProjeto:
    """Horas trabalhadas contra horas contratadas"""
    project_id: str
    project_name: str
    horas_contratadas: int
    horas_trabalhadas: float
    horas_estimadas: float

    @property
    def percentual(self) -> float:
        return razao_percentual(self.horas_trabalhadas, self.horas_contratadas, casas=1)

    @property
    def horas_restantes(self) -> float:
        return self.horas_contratadas - self.horas_trabalhadas

    @property
    def status(self) -> str:
        if not self.horas_contratadas:
            return "neutral"
        percentual = self.horas_trabalhadas / self.horas_contratadas * 100
        if percentual > PROJETO_LIMITE_CRITICO:
            return "critical"
        if percentual > PROJETO_LIMITE_EXCEDIDO:
            return "warning"
        if percentual > PROJETO_LIMITE_ATENCAO:
            return "attention"
        return "healthy"


def calcular_estatisticas(tarefas: Iterable[Tarefa], hoje: date = None) -> Dict[str, EstatisticasProjeto]:
    """Estatísticas por project_id; tarefas sem projeto são ignoradas"""
    hoje = hoje or date.today()
    stats: Dict[str, EstatisticasProjeto] = {}
    for tarefa in tarefas:
        if not tarefa.project_id:
            continue
        s = stats.setdefault(tarefa.project_id, EstatisticasProjeto())
        s.total_tasks += 1
        s.total_minutes += tarefa.time_spent_minutes
        s.estimated_minutes += tarefa.estimated_time_minutes
        if tarefa.status == "done":
            s.completed_tasks += 1
        if tarefa.atrasada(hoje):
            s.late_tasks += 1
    return stats


def calcular_consumo(projetos: Iterable[Projeto], tarefas: Iterable[Tarefa]) -> List[ConsumoProjeto]:
    stats = calcular_estatisticas(tarefas)
    consumo = []
    for projeto in projetos:
        s = stats.get(projeto.id, EstatisticasProjeto())
        consumo.append(ConsumoProjeto(
            project_id=projeto.id,
            project_name=projeto.name,
            horas_contratadas=projeto.horas_contratadas,
            horas_trabalhadas=s.total_minutes / 60,
            horas_estimadas=s.estimated_minutes / 60,
        ))
    return consumo


def carregar_projetos(manager, hoje: date = None):
    """(estatísticas por projeto, consumo de horas por projeto)"""
    tarefas = manager.listar_tarefas()
    projetos = manager.listar_projetos()
    return calcular_estatisticas(tarefas, hoje), calcular_consumo(projetos, tarefas)
