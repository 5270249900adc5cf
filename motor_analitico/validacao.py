"""
Validação de entrada das mutações
Schemas pydantic com mensagens em português; a primeira regra violada
vira um ErroValidacao antes de qualquer chamada ao banco.

REGRAS DO REPASSE:
1. Repasse só existe para categorias de mídia/ads
2. Repasse é sempre não operacional (não entra em DRE nem rentabilidade)
"""

import datetime
from typing import Literal, Optional, Type, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from config import CATEGORIAS_REPASSE, ESTAGIOS_DEAL
from motor_analitico.dinheiro import PADRAO_MES
from motor_analitico.erros import ErroValidacao

Schema = TypeVar("Schema", bound=BaseModel)

ESTAGIOS = Literal["prospecting", "proposal", "negotiation", "closed_won", "closed_lost"]

# Mensagens por tipo de erro do pydantic; {rotulo} é o title do campo
MENSAGENS_ERRO = {
    "missing": "{rotulo} é obrigatório",
    "string_too_short": "{rotulo} é obrigatório",
    "string_too_long": "{rotulo} deve ter no máximo {max_length} caracteres",
    "string_type": "{rotulo} deve ser texto",
    "string_pattern_mismatch": "{rotulo} inválido",
    "int_type": "{rotulo} deve ser inteiro",
    "int_parsing": "{rotulo} deve ser inteiro",
    "int_from_float": "{rotulo} deve ser inteiro",
    "float_type": "{rotulo} deve ser numérico",
    "float_parsing": "{rotulo} deve ser numérico",
    "greater_than_equal": "{rotulo} não pode ser menor que {ge}",
    "less_than_equal": "{rotulo} muito alto (máximo {le})",
    "literal_error": "{rotulo} inválido",
    "uuid_type": "{rotulo} inválido",
    "uuid_parsing": "{rotulo} inválido",
    "date_type": "{rotulo}: data inválida",
    "date_parsing": "{rotulo}: data inválida",
    "date_from_datetime_parsing": "{rotulo}: data inválida",
    "date_from_datetime_inexact": "{rotulo}: data inválida",
    "bool_type": "{rotulo} inválido",
    "bool_parsing": "{rotulo} inválido",
}


class _Schema(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


def is_categoria_repasse(category: str) -> bool:
    """Verifica se uma categoria é elegível para ser marcada como repasse"""
    normalized = (category or "").lower().strip()
    if any(cat.lower() in normalized for cat in CATEGORIAS_REPASSE):
        return True
    trechos = ("mídia", "midia", "ads", "google", "facebook", "meta", "tiktok", "linkedin")
    return any(t in normalized for t in trechos)


def _um_ano_depois(hoje: datetime.date) -> datetime.date:
    try:
        return hoje.replace(year=hoje.year + 1)
    except ValueError:
        # 29/02
        return hoje.replace(year=hoje.year + 1, day=28)


# ============================================
# SCHEMAS
# ============================================

class ClienteInput(_Schema):
    name: str = Field(..., title="Nome", min_length=1, max_length=255)
    fee_mensal_centavos: int = Field(0, title="Fee mensal", ge=0, le=1_000_000_000)
    contrato_inicio: Optional[datetime.date] = Field(None, title="Início do contrato")
    contrato_fim: Optional[datetime.date] = Field(None, title="Fim do contrato")

    @model_validator(mode="after")
    def _periodo_contrato(self):
        if self.contrato_inicio and self.contrato_fim and self.contrato_fim < self.contrato_inicio:
            raise ValueError("Fim do contrato não pode ser anterior ao início")
        return self


class ProjetoInput(_Schema):
    client_id: UUID = Field(..., title="ID do cliente")
    name: str = Field(..., title="Nome", min_length=1, max_length=255)
    horas_contratadas: int = Field(0, title="Horas contratadas", ge=0, le=100_000)


class MembroEquipeUpdate(_Schema):
    id: UUID = Field(..., title="ID")
    name: Optional[str] = Field(None, title="Nome", min_length=1, max_length=255)
    custo_hora_centavos: Optional[int] = Field(None, title="Custo hora", ge=0, le=1_000_000_000)
    weekly_capacity_hours: Optional[int] = Field(None, title="Capacidade semanal", ge=1, le=168)


class ComissaoConfigInput(_Schema):
    profile_id: UUID = Field(..., title="ID do membro")
    comissao_percentual: float = Field(..., title="Percentual de comissão", ge=0, le=100)
    tipo_comissao: Literal["sobre_faturamento", "sobre_margem"] = Field(
        "sobre_faturamento", title="Base da comissão"
    )


class TransacaoInput(_Schema):
    description: str = Field(..., title="Descrição", min_length=1, max_length=500)
    category: str = Field(..., title="Categoria", min_length=1, max_length=100)
    value_centavos: int = Field(..., title="Valor", ge=1, le=100_000_000_000)
    type: Literal["receita", "despesa"] = Field(..., title="Tipo")
    nature: Literal["operacional", "nao_operacional"] = Field("operacional", title="Natureza")
    cost_type: Literal["direto", "fixo"] = Field("fixo", title="Tipo de custo")
    is_repasse: bool = Field(False, title="Repasse")
    date: datetime.date = Field(..., title="Data de vencimento")
    competence_date: Optional[datetime.date] = Field(None, title="Data de competência")
    payment_date: Optional[datetime.date] = Field(None, title="Data de pagamento")
    status: Literal["pendente", "pago", "atrasado", "cancelado"] = Field("pendente", title="Status")
    project_id: Optional[UUID] = Field(None, title="ID do projeto")
    client_id: Optional[UUID] = Field(None, title="ID do cliente")
    salesperson_id: Optional[UUID] = Field(None, title="ID do vendedor")
    deal_id: Optional[UUID] = Field(None, title="ID do negócio")
    idempotency_key: Optional[str] = Field(None, title="Chave de idempotência", max_length=255)
    notes: Optional[str] = Field(None, title="Observações", max_length=1000)

    @model_validator(mode="after")
    def _regras_financeiras(self):
        if self.is_repasse:
            if not is_categoria_repasse(self.category):
                raise ValueError(
                    f'Repasse só pode ser marcado para categorias de mídia/ads. '
                    f'Categoria "{self.category}" não é compatível.'
                )
            self.nature = "nao_operacional"

        if self.project_id and self.cost_type == "fixo":
            self.cost_type = "direto"

        if self.competence_date and self.competence_date > _um_ano_depois(datetime.date.today()):
            raise ValueError("Data de competência não pode ser mais de 1 ano no futuro")
        return self


class DealInput(_Schema):
    company: str = Field(..., title="Empresa", min_length=1, max_length=255)
    contact: Optional[str] = Field(None, title="Contato", max_length=255)
    value_centavos: int = Field(0, title="Valor", ge=0, le=100_000_000_000)
    probability: Optional[int] = Field(None, title="Probabilidade", ge=0, le=100)
    stage: ESTAGIOS = Field("prospecting", title="Estágio")
    notes: Optional[str] = Field(None, title="Observações", max_length=1000)
    origin: Literal["ads", "indicacao", "outbound", "organic"] = Field("organic", title="Origem")
    salesperson_id: Optional[UUID] = Field(None, title="ID do vendedor")
    expected_close_date: Optional[datetime.date] = Field(None, title="Previsão de fechamento")

    @model_validator(mode="after")
    def _probabilidade_padrao(self):
        if self.probability is None:
            self.probability = ESTAGIOS_DEAL[self.stage]["probabilidade"]
        return self


class MetaMensalInput(_Schema):
    month: str = Field(..., title="Mês", pattern=PADRAO_MES)
    type: Literal["faturamento", "leads", "vendas_qtd"] = Field(..., title="Tipo de meta")
    target_value_centavos: int = Field(..., title="Meta", ge=0)
    achieved_value_centavos: int = Field(0, title="Realizado", ge=0)


# ============================================
# PARSE
# ============================================

def _mensagem(schema: Type[BaseModel], erro: dict) -> str:
    if erro["type"] == "value_error":
        causa = (erro.get("ctx") or {}).get("error")
        if causa is not None:
            return str(causa)
        return erro["msg"].removeprefix("Value error, ")

    campo = erro["loc"][0] if erro["loc"] else None
    info = schema.model_fields.get(campo) if isinstance(campo, str) else None
    rotulo = (info.title if info and info.title else campo) or "Campo"

    modelo = MENSAGENS_ERRO.get(erro["type"])
    if not modelo:
        return f"{rotulo} inválido"
    return modelo.format(rotulo=rotulo, **(erro.get("ctx") or {}))


def parse_input(schema: Type[Schema], dados: dict) -> Schema:
    """Valida e devolve o schema; levanta ErroValidacao com o primeiro erro"""
    try:
        return schema.model_validate(dados)
    except ValidationError as e:
        primeiro = e.errors()[0]
        campo = primeiro["loc"][0] if primeiro["loc"] else None
        raise ErroValidacao(_mensagem(schema, primeiro), campo=campo) from e


def try_parse_input(schema: Type[Schema], dados: dict) -> Optional[Schema]:
    """Validação opcional: None em caso de falha"""
    try:
        return schema.model_validate(dados)
    except ValidationError:
        return None


def preparar_transacao(entrada: TransacaoInput, hoje: datetime.date = None) -> dict:
    """Aplica os defaults de negócio e devolve o payload para o banco"""
    hoje = hoje or datetime.date.today()
    payload = entrada.model_dump(mode="json")

    if not payload["competence_date"]:
        payload["competence_date"] = payload["date"]

    if payload["status"] == "pago" and not payload["payment_date"]:
        payload["payment_date"] = hoje.isoformat()

    return payload
