"""
Supabase Manager - Agency Engine
Acesso ao banco (PostgreSQL via Supabase) sempre escopado pela organização
do contexto. Leituras devolvem coleções homogêneas sem regra de negócio;
escritas passam pelas mutações, que validam antes e invalidam o cache depois.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional, Sequence

from supabase import Client

from auth import ContextoUsuario, get_supabase_client
from config import ESTAGIOS_DEAL
from motor_analitico.cache import CacheAgregados
from motor_analitico.entidades import (
    Cliente,
    Deal,
    MembroEquipe,
    MembroEquipePublico,
    MetaMensal,
    Organizacao,
    Projeto,
    Tarefa,
    Transacao,
)
from motor_analitico.erros import ERROS_BANCO, ErroAcesso, ErroValidacao, tratar_erro_banco
from motor_analitico.validacao import (
    ClienteInput,
    DealInput,
    MembroEquipeUpdate,
    MetaMensalInput,
    ProjetoInput,
    TransacaoInput,
    parse_input,
    preparar_transacao,
)

logger = logging.getLogger(__name__)

# Nome de cada entidade para as mensagens de erro
ROTULOS = {
    "organizations": "organização",
    "clients": "cliente",
    "projects": "projeto",
    "deals": "negócio",
    "transactions": "transação",
    "tasks": "tarefa",
    "profiles": "membro",
    "monthly_goals": "meta",
}

# View sem custo hora para quem não é administrador
VIEW_MEMBROS_PUBLICO = "profiles_public"

COLUNAS_TAREFA = "*, project:projects(id, name)"


# ============================================
# FILTROS
# ============================================

class Filtro(NamedTuple):
    """Filtro de igualdade/intervalo aplicado no banco"""
    op: str
    coluna: str
    valor: object = None

    @classmethod
    def eq(cls, coluna, valor):
        return cls("eq", coluna, valor)

    @classmethod
    def neq(cls, coluna, valor):
        return cls("neq", coluna, valor)

    @classmethod
    def gte(cls, coluna, valor):
        return cls("gte", coluna, valor)

    @classmethod
    def lte(cls, coluna, valor):
        return cls("lte", coluna, valor)

    @classmethod
    def gt(cls, coluna, valor):
        return cls("gt", coluna, valor)

    @classmethod
    def lt(cls, coluna, valor):
        return cls("lt", coluna, valor)

    @classmethod
    def em(cls, coluna, valores: Iterable):
        return cls("in", coluna, list(valores))

    @classmethod
    def fora_de(cls, coluna, valores: Iterable):
        return cls("not_in", coluna, list(valores))

    @classmethod
    def nulo(cls, coluna):
        return cls("is_null", coluna)

    @classmethod
    def nao_nulo(cls, coluna):
        return cls("not_null", coluna)


class Ordem(NamedTuple):
    coluna: str
    desc: bool = False


def _aplicar_filtro(query, filtro: Filtro):
    op, coluna, valor = filtro
    if op == "in":
        return query.in_(coluna, valor)
    if op == "not_in":
        return query.not_.in_(coluna, valor)
    if op == "is_null":
        return query.is_(coluna, "null")
    if op == "not_null":
        return query.not_.is_(coluna, "null")
    if op in ("eq", "neq", "gte", "lte", "gt", "lt"):
        return getattr(query, op)(coluna, valor)
    raise ValueError(f"Operador de filtro desconhecido: {op}")


# ============================================
# CLASSE PRINCIPAL
# ============================================

class SupabaseManager:
    """
    Gerenciador de dados no Supabase.

    Toda consulta e mutação leva o organization_id do contexto; não existe
    caminho de leitura sem organização.
    """

    def __init__(self, supabase: Client, contexto: ContextoUsuario, cache: CacheAgregados = None):
        """
        Args:
            supabase: cliente Supabase (auth.get_supabase_client)
            contexto: usuário resolvido (organização e papéis)
            cache: cache de agregados a invalidar nas mutações
        """
        self.supabase = supabase
        self.contexto = contexto
        self.cache = cache

    @property
    def organization_id(self) -> str:
        return self.contexto.exigir_organizacao()

    def _executar(self, operacao: str, chamada: Callable):
        try:
            return chamada().execute()
        except ERROS_BANCO as e:
            raise tratar_erro_banco(e, operacao) from e

    def _invalidar(self, entidade: str):
        if self.cache is not None:
            self.cache.invalidar(entidade, self.organization_id)

    # ============================================
    # LEITURA GENÉRICA
    # ============================================

    def buscar(self, entidade: str, filtros: Sequence[Filtro] = (), ordem: Optional[Ordem] = None,
               colunas: str = "*", tabela: str = None) -> List[Dict]:
        """
        Consulta escopada pela organização.

        Args:
            entidade: tipo de entidade (nome da tabela)
            filtros: filtros adicionais
            ordem: ordenação pedida pelo chamador
            colunas: seleção do PostgREST (aceita joins embutidos)
            tabela: tabela/view física, quando difere da entidade
        """
        org_id = self.organization_id

        def consulta():
            query = self.supabase.table(tabela or entidade).select(colunas)
            query = query.eq("id" if entidade == "organizations" else "organization_id", org_id)
            for filtro in filtros:
                query = _aplicar_filtro(query, filtro)
            if ordem:
                query = query.order(ordem.coluna, desc=ordem.desc)
            return query

        response = self._executar(f"carregar {ROTULOS.get(entidade, entidade)}", consulta)
        return response.data or []

    # ============================================
    # ACESSORES TIPADOS
    # ============================================

    def obter_organizacao(self) -> Organizacao:
        rows = self.buscar("organizations")
        if not rows:
            raise ErroAcesso("Organização não encontrada", categoria="organizacao")
        return Organizacao.from_row(rows[0])

    def listar_clientes(self, filtros: Sequence[Filtro] = (),
                        ordem: Optional[Ordem] = Ordem("created_at", desc=True)) -> List[Cliente]:
        return [Cliente.from_row(r) for r in self.buscar("clients", filtros, ordem)]

    def listar_projetos(self, filtros: Sequence[Filtro] = (),
                        ordem: Optional[Ordem] = Ordem("created_at", desc=True)) -> List[Projeto]:
        return [Projeto.from_row(r) for r in self.buscar("projects", filtros, ordem)]

    def listar_deals(self, filtros: Sequence[Filtro] = (),
                     ordem: Optional[Ordem] = Ordem("created_at", desc=True)) -> List[Deal]:
        return [Deal.from_row(r) for r in self.buscar("deals", filtros, ordem)]

    def obter_deal(self, deal_id: str) -> Deal:
        rows = self.buscar("deals", [Filtro.eq("id", deal_id)])
        if not rows:
            raise ErroAcesso("Registro não encontrado.", categoria="nao_encontrado", operacao="carregar negócio")
        return Deal.from_row(rows[0])

    def listar_transacoes(self, filtros: Sequence[Filtro] = (),
                          ordem: Optional[Ordem] = Ordem("date", desc=True)) -> List[Transacao]:
        return [Transacao.from_row(r) for r in self.buscar("transactions", filtros, ordem)]

    def listar_tarefas(self, filtros: Sequence[Filtro] = (),
                       ordem: Optional[Ordem] = None) -> List[Tarefa]:
        return [Tarefa.from_row(r) for r in self.buscar("tasks", filtros, ordem, colunas=COLUNAS_TAREFA)]

    def listar_membros(self) -> List[MembroEquipePublico]:
        """
        Membros da equipe na projeção do papel do usuário:
        administrador lê `profiles` (com custo hora); os demais leem a view
        `profiles_public`, que não tem a coluna.
        """
        ordem = Ordem("created_at", desc=True)
        if self.contexto.is_admin:
            return [MembroEquipe.from_row(r) for r in self.buscar("profiles", ordem=ordem)]
        rows = self.buscar("profiles", ordem=ordem, tabela=VIEW_MEMBROS_PUBLICO)
        return [MembroEquipePublico.from_row(r) for r in rows]

    def obter_membro(self, membro_id: str) -> MembroEquipePublico:
        tabela = "profiles" if self.contexto.is_admin else VIEW_MEMBROS_PUBLICO
        rows = self.buscar("profiles", [Filtro.eq("id", membro_id)], tabela=tabela)
        if not rows:
            raise ErroAcesso("Registro não encontrado.", categoria="nao_encontrado", operacao="carregar membro")
        if self.contexto.is_admin:
            return MembroEquipe.from_row(rows[0])
        return MembroEquipePublico.from_row(rows[0])

    def listar_metas(self, mes: str = None) -> List[MetaMensal]:
        filtros = [Filtro.eq("month", mes)] if mes else []
        rows = self.buscar("monthly_goals", filtros, Ordem("month", desc=True))
        return [MetaMensal.from_row(r) for r in rows]

    # ============================================
    # MUTAÇÕES GENÉRICAS
    # ============================================

    def criar(self, entidade: str, dados: Dict) -> Dict:
        """Insere um registro na organização do contexto e devolve a linha gravada"""
        payload = {**dados, "organization_id": self.organization_id}
        operacao = f"criar {ROTULOS.get(entidade, entidade)}"
        response = self._executar(operacao, lambda: self.supabase.table(entidade).insert(payload))
        if not response.data:
            raise ErroAcesso(f"Erro ao {operacao}. Tente novamente.", operacao=operacao)

        self._invalidar(entidade)
        return response.data[0]

    def atualizar(self, entidade: str, registro_id: str, dados: Dict) -> Dict:
        """Atualiza por chave primária dentro da organização"""
        org_id = self.organization_id
        operacao = f"atualizar {ROTULOS.get(entidade, entidade)}"
        response = self._executar(
            operacao,
            lambda: self.supabase.table(entidade).update(dados).eq("id", registro_id).eq("organization_id", org_id),
        )
        if not response.data:
            raise ErroAcesso("Registro não encontrado.", categoria="nao_encontrado", operacao=operacao)

        self._invalidar(entidade)
        return response.data[0]

    def deletar(self, entidade: str, registro_id: str) -> bool:
        org_id = self.organization_id
        operacao = f"remover {ROTULOS.get(entidade, entidade)}"
        self._executar(
            operacao,
            lambda: self.supabase.table(entidade).delete().eq("id", registro_id).eq("organization_id", org_id),
        )
        self._invalidar(entidade)
        return True

    # ============================================
    # MUTAÇÕES POR ENTIDADE (validam antes de gravar)
    # ============================================

    def criar_cliente(self, dados: Dict) -> Cliente:
        entrada = parse_input(ClienteInput, dados)
        return Cliente.from_row(self.criar("clients", entrada.model_dump(mode="json")))

    def atualizar_cliente(self, cliente_id: str, dados: Dict) -> Cliente:
        entrada = parse_input(ClienteInput, dados)
        return Cliente.from_row(self.atualizar("clients", cliente_id, entrada.model_dump(mode="json")))

    def criar_projeto(self, dados: Dict) -> Projeto:
        entrada = parse_input(ProjetoInput, dados)
        return Projeto.from_row(self.criar("projects", entrada.model_dump(mode="json")))

    def criar_transacao(self, dados: Dict) -> Transacao:
        entrada = parse_input(TransacaoInput, dados)
        return Transacao.from_row(self.criar("transactions", preparar_transacao(entrada)))

    def atualizar_transacao(self, transacao_id: str, dados: Dict) -> Transacao:
        entrada = parse_input(TransacaoInput, dados)
        return Transacao.from_row(self.atualizar("transactions", transacao_id, preparar_transacao(entrada)))

    def deletar_transacao(self, transacao_id: str) -> bool:
        return self.deletar("transactions", transacao_id)

    def criar_deal(self, dados: Dict) -> Deal:
        entrada = parse_input(DealInput, dados)
        return Deal.from_row(self.criar("deals", entrada.model_dump(mode="json")))

    def atualizar_estagio_deal(self, deal_id: str, estagio: str, motivo_perda: str = None) -> Deal:
        """Movimento no kanban: grava estágio e updated_at"""
        if estagio not in ESTAGIOS_DEAL:
            raise ErroValidacao("Estágio inválido", campo="stage")

        dados = {"stage": estagio, "updated_at": datetime.now().isoformat()}
        if motivo_perda:
            dados["loss_reason"] = motivo_perda
        return Deal.from_row(self.atualizar("deals", deal_id, dados))

    def atualizar_membro(self, dados: Dict) -> MembroEquipePublico:
        entrada = parse_input(MembroEquipeUpdate, dados)
        alteracoes = entrada.model_dump(mode="json", exclude_unset=True, exclude={"id"})

        if "custo_hora_centavos" in alteracoes and not self.contexto.is_admin:
            raise ErroAcesso("Você não tem permissão para esta ação.", categoria="permissao",
                             operacao="atualizar membro")

        row = self.atualizar("profiles", str(entrada.id), alteracoes)
        if self.contexto.is_admin:
            return MembroEquipe.from_row(row)
        return MembroEquipePublico.from_row(row)

    def _exigir_admin(self, operacao: str):
        if not self.contexto.is_admin:
            raise ErroAcesso("Você não tem permissão para esta ação.", categoria="permissao", operacao=operacao)

    def criar_meta(self, dados: Dict) -> MetaMensal:
        entrada = parse_input(MetaMensalInput, dados)
        self._exigir_admin("criar meta")
        return MetaMensal.from_row(self.criar("monthly_goals", entrada.model_dump(mode="json")))

    def atualizar_meta(self, meta_id: str, dados: Dict) -> MetaMensal:
        entrada = parse_input(MetaMensalInput, dados)
        self._exigir_admin("atualizar meta")
        return MetaMensal.from_row(self.atualizar("monthly_goals", meta_id, entrada.model_dump(mode="json")))

    def deletar_meta(self, meta_id: str) -> bool:
        self._exigir_admin("remover meta")
        return self.deletar("monthly_goals", meta_id)


# ============================================
# FUNÇÕES DE CONVENIÊNCIA
# ============================================

def get_manager(contexto: ContextoUsuario, cache: CacheAgregados = None) -> SupabaseManager:
    """Retorna SupabaseManager com o cliente singleton"""
    supabase = get_supabase_client()
    if supabase is None:
        raise ErroAcesso("Erro de conexão. Verifique sua internet.", categoria="conexao")
    return SupabaseManager(supabase, contexto, cache)
