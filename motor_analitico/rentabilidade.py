"""
Rentabilidade por cliente
Receita, custos diretos e custo de mão de obra atribuídos a cada cliente
(pela referência direta da transação ou pelo projeto).
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from motor_analitico.dinheiro import arredondar, razao_percentual
from motor_analitico.entidades import Cliente, MembroEquipePublico, Projeto, Tarefa, Transacao


@dataclass(frozen=True)
class RentabilidadeCliente:
    client_id: str
    client_name: str
    revenue: int = 0
    direct_costs: int = 0
    labor_cost: int = 0

    @property
    def total_cost(self) -> int:
        return self.direct_costs + self.labor_cost

    @property
    def profit(self) -> int:
        return self.revenue - self.total_cost

    @property
    def margin(self) -> float:
        """profit / revenue × 100; 0 sem receita"""
        return razao_percentual(self.profit, self.revenue, casas=2)


def _cliente_da_transacao(transacao: Transacao, projeto_cliente: Dict[str, str]) -> Optional[str]:
    if transacao.client_id:
        return transacao.client_id
    if transacao.project_id:
        return projeto_cliente.get(transacao.project_id)
    return None


def calcular_rentabilidade(clientes: Iterable[Cliente], projetos: Iterable[Projeto],
                           transacoes: Iterable[Transacao], tarefas: Iterable[Tarefa] = (),
                           membros: Iterable[MembroEquipePublico] = ()) -> List[RentabilidadeCliente]:
    """
    Rentabilidade de todos os clientes, ordenada por lucro decrescente.

    Mão de obra = Σ minutos trabalhados × custo hora / 60. Na projeção sem
    custo hora (não administrador) a mão de obra fica zerada.
    """
    projeto_cliente = {p.id: p.client_id for p in projetos}
    custo_hora = {m.id: getattr(m, "custo_hora_centavos", 0) for m in membros}

    receita: Dict[str, int] = defaultdict(int)
    custos: Dict[str, int] = defaultdict(int)
    minutos_custo: Dict[str, int] = defaultdict(int)

    for t in transacoes:
        if t.is_repasse:
            continue
        cliente_id = _cliente_da_transacao(t, projeto_cliente)
        if not cliente_id:
            continue
        if t.type == "receita":
            receita[cliente_id] += t.value_centavos
        else:
            custos[cliente_id] += t.value_centavos

    for tarefa in tarefas:
        cliente_id = projeto_cliente.get(tarefa.project_id)
        if not cliente_id or not tarefa.assignee_id:
            continue
        minutos_custo[cliente_id] += tarefa.time_spent_minutes * custo_hora.get(tarefa.assignee_id, 0)

    resultado = [
        RentabilidadeCliente(
            client_id=c.id,
            client_name=c.name,
            revenue=receita[c.id],
            direct_costs=custos[c.id],
            labor_cost=arredondar(minutos_custo[c.id] / 60),
        )
        for c in clientes
    ]
    resultado.sort(key=lambda r: r.profit, reverse=True)
    return resultado


def top_clientes(rentabilidade: List[RentabilidadeCliente], n: int = 5,
                 por: str = "profit", apenas_com_receita: bool = False) -> List[RentabilidadeCliente]:
    """Os N primeiros por lucro ou margem"""
    candidatos = [r for r in rentabilidade if r.revenue > 0] if apenas_com_receita else list(rentabilidade)
    if por == "margin":
        candidatos.sort(key=lambda r: r.margin, reverse=True)
    else:
        candidatos.sort(key=lambda r: r.profit, reverse=True)
    return candidatos[:n]


def carregar_rentabilidade(manager) -> List[RentabilidadeCliente]:
    return calcular_rentabilidade(
        clientes=manager.listar_clientes(),
        projetos=manager.listar_projetos(),
        transacoes=manager.listar_transacoes(),
        tarefas=manager.listar_tarefas(),
        membros=manager.listar_membros(),
    )
