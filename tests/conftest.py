import uuid
from copy import deepcopy
from datetime import date, datetime

import pytest
from postgrest.exceptions import APIError

from auth import ContextoUsuario
from motor_analitico.cache import CacheAgregados
from supabase_manager import SupabaseManager

HOJE = date(2026, 1, 15)

ORG_ID = "0b7f6a2e-8c1d-4e5f-9a0b-1c2d3e4f5a6b"
OUTRA_ORG_ID = "9e8d7c6b-5a4f-4e3d-8c2b-1a0f9e8d7c6b"
ADMIN_ID = "11111111-1111-4111-8111-111111111111"
MEMBRO_ID = "22222222-2222-4222-8222-222222222222"

# Colunas que só existem na tabela completa de membros
COLUNAS_RESTRITAS = {"profiles_public": ("profiles", ("custo_hora_centavos",))}
# Chaves únicas por tabela
UNICAS = {"transactions": ("idempotency_key",)}


def novo_id() -> str:
    return str(uuid.uuid4())


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Imita o query builder do postgrest, registrando cada filtro aplicado"""

    def __init__(self, db, tabela):
        self.db = db
        self.tabela = tabela
        self.acao = "select"
        self.colunas = "*"
        self.payload = None
        self.filtros = []
        self.ordem = None
        self._negar = False

    def select(self, colunas="*"):
        self.colunas = colunas
        return self

    def insert(self, payload):
        self.acao = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.acao = "update"
        self.payload = payload
        return self

    def delete(self):
        self.acao = "delete"
        return self

    @property
    def not_(self):
        self._negar = True
        return self

    def _filtro(self, op, coluna, valor):
        if self._negar:
            op = "not_" + op
            self._negar = False
        self.filtros.append((op, coluna, valor))
        return self

    def eq(self, coluna, valor):
        return self._filtro("eq", coluna, valor)

    def neq(self, coluna, valor):
        return self._filtro("neq", coluna, valor)

    def gte(self, coluna, valor):
        return self._filtro("gte", coluna, valor)

    def lte(self, coluna, valor):
        return self._filtro("lte", coluna, valor)

    def gt(self, coluna, valor):
        return self._filtro("gt", coluna, valor)

    def lt(self, coluna, valor):
        return self._filtro("lt", coluna, valor)

    def in_(self, coluna, valores):
        return self._filtro("in", coluna, list(valores))

    def is_(self, coluna, valor):
        return self._filtro("is", coluna, valor)

    def order(self, coluna, desc=False):
        self.ordem = (coluna, desc)
        return self

    def execute(self):
        return self.db.executar(self)


def _casa(row, filtro) -> bool:
    op, coluna, valor = filtro
    atual = row.get(coluna)
    if op == "eq":
        return atual == valor
    if op == "neq":
        return atual != valor
    if op == "in":
        return atual in valor
    if op == "not_in":
        return atual not in valor
    if op == "is":
        return atual is None
    if op == "not_is":
        return atual is not None
    if atual is None:
        return False
    if op == "gte":
        return atual >= valor
    if op == "lte":
        return atual <= valor
    if op == "gt":
        return atual > valor
    if op == "lt":
        return atual < valor
    raise AssertionError(f"filtro não suportado: {op}")


class FakeSupabase:
    """Banco em memória com a interface mínima do cliente Supabase"""

    def __init__(self):
        self.tabelas = {}
        self.consultas = []
        self._falhas = {}

    def table(self, nome):
        return FakeQuery(self, nome)

    # ---- preparação dos testes ----

    def seed(self, tabela, **dados):
        row = {"id": novo_id(), "organization_id": ORG_ID, "created_at": datetime.now().isoformat()}
        row.update(dados)
        self.tabelas.setdefault(tabela, []).append(row)
        return row

    def falhar(self, tabela, erro):
        """A próxima execução na tabela levanta o erro"""
        self._falhas[tabela] = erro

    def rows(self, tabela):
        return self.tabelas.get(tabela, [])

    def consultas_em(self, tabela, acao="select"):
        return [q for q in self.consultas if q.tabela == tabela and q.acao == acao]

    # ---- execução ----

    def _origem(self, tabela):
        if tabela in COLUNAS_RESTRITAS:
            base, ocultas = COLUNAS_RESTRITAS[tabela]
            return [{k: v for k, v in r.items() if k not in ocultas} for r in self.rows(base)]
        return self.tabelas.setdefault(tabela, [])

    def _com_projeto(self, row):
        projeto = next((p for p in self.rows("projects") if p["id"] == row.get("project_id")), None)
        row["project"] = {"id": projeto["id"], "name": projeto["name"]} if projeto else None
        return row

    def executar(self, query):
        self.consultas.append(query)
        erro = self._falhas.pop(query.tabela, None)
        if erro is not None:
            raise erro

        if query.acao == "insert":
            return FakeResponse([self._inserir(query.tabela, query.payload)])

        alvo = [r for r in self._origem(query.tabela) if all(_casa(r, f) for f in query.filtros)]

        if query.acao == "update":
            for row in alvo:
                row.update(query.payload)
            return FakeResponse(deepcopy(alvo))

        if query.acao == "delete":
            self.tabelas[query.tabela] = [r for r in self.rows(query.tabela) if r not in alvo]
            return FakeResponse(deepcopy(alvo))

        resultado = deepcopy(alvo)
        if query.ordem:
            coluna, desc = query.ordem
            presentes = sorted((r for r in resultado if r.get(coluna) is not None),
                               key=lambda r: r[coluna], reverse=desc)
            resultado = presentes + [r for r in resultado if r.get(coluna) is None]
        if "project:projects" in query.colunas:
            resultado = [self._com_projeto(r) for r in resultado]
        return FakeResponse(resultado)

    def _inserir(self, tabela, payload):
        for coluna in UNICAS.get(tabela, ()):
            valor = payload.get(coluna)
            if valor is not None and any(r.get(coluna) == valor for r in self.rows(tabela)):
                raise APIError({
                    "message": f'duplicate key value violates unique constraint "{tabela}_{coluna}_key"',
                    "code": "23505",
                    "details": None,
                    "hint": None,
                })
        row = {"id": novo_id(), "created_at": datetime.now().isoformat(), **deepcopy(payload)}
        self.tabelas.setdefault(tabela, []).append(row)
        return deepcopy(row)


# ============================================
# FIXTURES
# ============================================

@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def ctx_admin():
    return ContextoUsuario(user_id=ADMIN_ID, organization_id=ORG_ID, roles=frozenset({"admin"}),
                           member_function="dono")


@pytest.fixture
def ctx_membro():
    return ContextoUsuario(user_id=MEMBRO_ID, organization_id=ORG_ID, roles=frozenset(),
                           member_function="assistente")


@pytest.fixture
def cache():
    return CacheAgregados()


@pytest.fixture
def manager(db, ctx_admin, cache):
    return SupabaseManager(db, ctx_admin, cache)


@pytest.fixture
def manager_membro(db, ctx_membro, cache):
    return SupabaseManager(db, ctx_membro, cache)


@pytest.fixture
def vendedor(db):
    return db.seed("profiles", id=MEMBRO_ID, name="Ana Vendas", comissao_percentual=10,
                   tipo_comissao="sobre_faturamento", custo_hora_centavos=5000,
                   weekly_capacity_hours=40)
