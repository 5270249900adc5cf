"""
Estruturas de dados das entidades lidas do banco.
Valores monetários em centavos (int); datas como date.
"""

import datetime
from dataclasses import dataclass
from datetime import date
from typing import Dict, Optional

from config import CAPACIDADE_SEMANAL_PADRAO_HORAS
from motor_analitico.dinheiro import para_data


def _centavos(valor) -> int:
    return int(valor or 0)


# ============================================
# ORGANIZAÇÃO E CLIENTES
# ============================================

@dataclass(frozen=True)
class Organizacao:
    """Escopo raiz de todas as entidades"""
    id: str
    name: str
    meta_receita_liquida_centavos: int = 0
    teto_custos_fixos_centavos: int = 0

    @classmethod
    def from_row(cls, row: Dict) -> 'Organizacao':
        return cls(
            id=row["id"],
            name=row.get("name", ""),
            meta_receita_liquida_centavos=_centavos(row.get("meta_receita_liquida_centavos")),
            teto_custos_fixos_centavos=_centavos(row.get("teto_custos_fixos_centavos")),
        )


@dataclass(frozen=True)
class Cliente:
    id: str
    organization_id: str
    name: str
    fee_mensal_centavos: int = 0
    contrato_inicio: Optional[date] = None
    contrato_fim: Optional[date] = None

    @classmethod
    def from_row(cls, row: Dict) -> 'Cliente':
        return cls(
            id=row["id"],
            organization_id=row.get("organization_id"),
            name=row.get("name", ""),
            fee_mensal_centavos=_centavos(row.get("fee_mensal_centavos")),
            contrato_inicio=para_data(row.get("contrato_inicio")),
            contrato_fim=para_data(row.get("contrato_fim")),
        )


@dataclass(frozen=True)
class Projeto:
    id: str
    organization_id: str
    client_id: Optional[str]
    name: str
    horas_contratadas: int = 0

    @classmethod
    def from_row(cls, row: Dict) -> 'Projeto':
        return cls(
            id=row["id"],
            organization_id=row.get("organization_id"),
            client_id=row.get("client_id"),
            name=row.get("name", ""),
            horas_contratadas=int(row.get("horas_contratadas") or 0),
        )


# ============================================
# CRM
# ============================================

@dataclass(frozen=True)
class Deal:
    """Negócio do kanban; closed_won/closed_lost são terminais"""
    id: str
    organization_id: str
    company: str
    value_centavos: int = 0
    probability: int = 0
    stage: str = "prospecting"
    salesperson_id: Optional[str] = None
    project_id: Optional[str] = None
    contact: Optional[str] = None
    notes: Optional[str] = None
    origin: str = "organic"
    loss_reason: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def valor_ponderado(self) -> float:
        """value × probability / 100 (sem arredondar; soma-se antes)"""
        return self.value_centavos * self.probability / 100

    @classmethod
    def from_row(cls, row: Dict) -> 'Deal':
        return cls(
            id=row["id"],
            organization_id=row.get("organization_id"),
            company=row.get("company", ""),
            value_centavos=_centavos(row.get("value_centavos")),
            probability=int(row.get("probability") or 0),
            stage=row.get("stage") or "prospecting",
            salesperson_id=row.get("salesperson_id"),
            project_id=row.get("project_id"),
            contact=row.get("contact"),
            notes=row.get("notes"),
            origin=row.get("origin") or "organic",
            loss_reason=row.get("loss_reason"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


# ============================================
# FINANCEIRO
# ============================================

@dataclass(frozen=True)
class Transacao:
    """Unidade atômica de todo agregado financeiro"""
    id: str
    organization_id: str
    description: str
    category: str
    value_centavos: int
    type: str  # receita, despesa
    nature: str = "operacional"
    cost_type: str = "fixo"  # direto (variável), fixo
    is_repasse: bool = False
    date: Optional[datetime.date] = None
    competence_date: Optional[datetime.date] = None
    status: str = "pendente"
    project_id: Optional[str] = None
    client_id: Optional[str] = None
    salesperson_id: Optional[str] = None
    deal_id: Optional[str] = None
    idempotency_key: Optional[str] = None
    notes: Optional[str] = None

    @property
    def data_referencia(self) -> Optional[datetime.date]:
        """Competência quando existe, senão vencimento"""
        return self.competence_date or self.date

    @property
    def operacional(self) -> bool:
        return self.nature == "operacional" and not self.is_repasse

    @classmethod
    def from_row(cls, row: Dict) -> 'Transacao':
        return cls(
            id=row["id"],
            organization_id=row.get("organization_id"),
            description=row.get("description", ""),
            category=row.get("category", ""),
            value_centavos=_centavos(row.get("value_centavos")),
            type=row.get("type", "despesa"),
            nature=row.get("nature") or "operacional",
            cost_type=row.get("cost_type") or "fixo",
            is_repasse=bool(row.get("is_repasse")),
            date=para_data(row.get("date")),
            competence_date=para_data(row.get("competence_date")),
            status=row.get("status") or "pendente",
            project_id=row.get("project_id"),
            client_id=row.get("client_id"),
            salesperson_id=row.get("salesperson_id"),
            deal_id=row.get("deal_id"),
            idempotency_key=row.get("idempotency_key"),
            notes=row.get("notes"),
        )


# ============================================
# EQUIPE E TAREFAS
# ============================================

@dataclass(frozen=True)
class Tarefa:
    id: str
    organization_id: str
    title: str = ""
    status: str = "todo"
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    assignee_id: Optional[str] = None
    estimated_time_minutes: int = 0
    time_spent_minutes: int = 0
    deadline: Optional[date] = None

    def atrasada(self, hoje: date) -> bool:
        """Prazo estritamente antes de hoje e status fora de done/waiting_approval"""
        if not self.deadline or self.status in ("done", "waiting_approval"):
            return False
        return self.deadline < hoje

    @classmethod
    def from_row(cls, row: Dict) -> 'Tarefa':
        projeto = row.get("project") or {}
        return cls(
            id=row["id"],
            organization_id=row.get("organization_id"),
            title=row.get("title") or "",
            status=row.get("status") or "todo",
            project_id=row.get("project_id") or projeto.get("id"),
            project_name=projeto.get("name"),
            assignee_id=row.get("assignee_id"),
            estimated_time_minutes=int(row.get("estimated_time_minutes") or 0),
            time_spent_minutes=int(row.get("time_spent_minutes") or 0),
            deadline=para_data(row.get("deadline")),
        )


@dataclass(frozen=True)
class MembroEquipePublico:
    """Projeção sem custo hora, entregue a quem não é administrador"""
    id: str
    organization_id: str
    name: str
    comissao_percentual: float = 0.0
    tipo_comissao: str = "sobre_faturamento"
    weekly_capacity_hours: int = CAPACIDADE_SEMANAL_PADRAO_HORAS
    member_function: str = "assistente"

    @classmethod
    def _campos(cls, row: Dict) -> Dict:
        return dict(
            id=row["id"],
            organization_id=row.get("organization_id"),
            name=row.get("name", ""),
            comissao_percentual=float(row.get("comissao_percentual") or 0),
            tipo_comissao=row.get("tipo_comissao") or "sobre_faturamento",
            weekly_capacity_hours=int(row.get("weekly_capacity_hours") or CAPACIDADE_SEMANAL_PADRAO_HORAS),
            member_function=row.get("member_function") or "assistente",
        )

    @classmethod
    def from_row(cls, row: Dict) -> 'MembroEquipePublico':
        return cls(**cls._campos(row))


@dataclass(frozen=True)
class MembroEquipe(MembroEquipePublico):
    """Projeção completa (administrador), com custo hora"""
    custo_hora_centavos: int = 0

    @classmethod
    def from_row(cls, row: Dict) -> 'MembroEquipe':
        return cls(custo_hora_centavos=_centavos(row.get("custo_hora_centavos")), **cls._campos(row))


# ============================================
# METAS
# ============================================

@dataclass(frozen=True)
class MetaMensal:
    id: str
    organization_id: str
    month: str  # YYYY-MM
    type: str  # faturamento, leads, vendas_qtd
    target_value_centavos: int = 0
    achieved_value_centavos: int = 0

    @classmethod
    def from_row(cls, row: Dict) -> 'MetaMensal':
        return cls(
            id=row["id"],
            organization_id=row.get("organization_id"),
            month=row.get("month", ""),
            type=row.get("type", "faturamento"),
            target_value_centavos=_centavos(row.get("target_value_centavos")),
            achieved_value_centavos=_centavos(row.get("achieved_value_centavos")),
        )
