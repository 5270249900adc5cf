"""
Identidade e conexão - Agency Engine
Cliente Supabase (singleton) e contexto explícito do usuário resolvido.

A autenticação em si é feita fora deste sistema; aqui só chega o usuário
já resolvido, que vira um ContextoUsuario passado adiante em toda consulta.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional

import streamlit as st
from supabase import Client, create_client

from motor_analitico.erros import ERROS_BANCO, ErroAcesso, tratar_erro_banco

logger = logging.getLogger(__name__)

# ============================================
# CONFIGURAÇÃO DO SUPABASE - SINGLETON
# ============================================

_supabase_client = None


def get_supabase_client() -> Optional[Client]:
    """
    Retorna cliente Supabase configurado.
    Credenciais devem estar em .streamlit/secrets.toml
    USA SINGLETON para evitar "Too many open files"
    """
    global _supabase_client

    # Reutiliza conexão existente
    if _supabase_client is not None:
        return _supabase_client

    try:
        url = st.secrets["supabase"]["url"]
        key = st.secrets["supabase"]["key"]
    except (KeyError, FileNotFoundError) as e:
        logger.error("[SUPABASE] Credenciais ausentes em secrets.toml: %s", e)
        return None

    _supabase_client = create_client(url, key)
    logger.info("[SUPABASE] Conectado (singleton)")
    return _supabase_client


# ============================================
# CONTEXTO DO USUÁRIO
# ============================================

FUNCOES_FINANCEIRO = ("gestor", "dono")
FUNCOES_WAR_ROOM = ("closer", "gestor", "dono")


@dataclass(frozen=True)
class ContextoUsuario:
    """Identidade resolvida que acompanha cada chamada ao repositório"""
    user_id: str
    organization_id: Optional[str]
    roles: FrozenSet[str] = field(default_factory=frozenset)
    member_function: str = "assistente"

    @property
    def is_admin(self) -> bool:
        return "admin" in self.roles

    @property
    def pode_acessar_financeiro(self) -> bool:
        return self.is_admin or self.member_function in FUNCOES_FINANCEIRO

    @property
    def pode_acessar_war_room(self) -> bool:
        return self.is_admin or self.member_function in FUNCOES_WAR_ROOM

    def exigir_organizacao(self) -> str:
        """ID da organização ou ErroAcesso se o usuário não tem organização"""
        if not self.organization_id:
            raise ErroAcesso("Organização não encontrada", categoria="organizacao")
        return self.organization_id

    @classmethod
    def from_user(cls, user: Dict[str, Any]) -> "ContextoUsuario":
        roles = user.get("roles") or []
        return cls(
            user_id=user["id"],
            organization_id=user.get("organization_id"),
            roles=frozenset(r["role"] if isinstance(r, dict) else r for r in roles),
            member_function=user.get("member_function") or "assistente",
        )


def carregar_contexto(supabase: Client, user_id: str) -> ContextoUsuario:
    """
    Resolve perfil e papéis do usuário já autenticado.

    Returns:
        ContextoUsuario com organization_id do perfil e roles de user_roles
    """
    try:
        perfil = supabase.table("profiles").select(
            "id, organization_id, member_function"
        ).eq("id", user_id).execute()
        papeis = supabase.table("user_roles").select("role").eq("user_id", user_id).execute()
    except ERROS_BANCO as e:
        raise tratar_erro_banco(e, "carregar perfil") from e

    dados = perfil.data[0] if perfil.data else {"id": user_id}
    return ContextoUsuario.from_user({
        "id": user_id,
        "organization_id": dados.get("organization_id"),
        "member_function": dados.get("member_function"),
        "roles": papeis.data or [],
    })


# ============================================
# SESSÃO (única leitura de estado global)
# ============================================

def is_authenticated() -> bool:
    """Verifica se usuário está autenticado"""
    return st.session_state.get("authenticated", False) and "user" in st.session_state


def get_current_user() -> Optional[Dict[str, Any]]:
    """Retorna dados do usuário logado"""
    if is_authenticated():
        return st.session_state.get("user")
    return None


def contexto_da_sessao() -> Optional[ContextoUsuario]:
    """Converte o usuário da sessão Streamlit em contexto explícito"""
    user = get_current_user()
    if not user:
        return None
    return ContextoUsuario.from_user(user)


def logout():
    """Limpa sessão do usuário"""
    for key in ["user", "authenticated", "organization_id", "user_id"]:
        if key in st.session_state:
            del st.session_state[key]
