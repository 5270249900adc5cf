"""
Taxonomia de erros e sanitização de erros do banco.
Nunca expõe nomes de tabela, constraint ou texto cru do driver ao usuário.
"""

import logging

import httpx
from postgrest.exceptions import APIError

logger = logging.getLogger(__name__)

# Falhas que o cliente Supabase pode levantar numa chamada ao banco
ERROS_BANCO = (APIError, httpx.HTTPError)

MENSAGENS_CATEGORIA = {
    "duplicado": "Este registro já existe.",
    "em_uso": "Não é possível remover: registro está em uso.",
    "permissao": "Você não tem permissão para esta ação.",
    "nao_encontrado": "Registro não encontrado.",
    "dados_invalidos": "Dados inválidos. Verifique os campos.",
    "conexao": "Erro de conexão. Verifique sua internet.",
}

# Códigos Postgres / PostgREST
CODIGOS_CATEGORIA = {
    "23505": "duplicado",
    "23503": "em_uso",
    "42501": "permissao",
    "PGRST116": "nao_encontrado",
    "22P02": "dados_invalidos",
    "23502": "dados_invalidos",
    "23514": "dados_invalidos",
}

# Ordem importa: a primeira regra que casar define a categoria
TRECHOS_CATEGORIA = [
    (("unique constraint", "duplicate key"), "duplicado"),
    (("foreign key",), "em_uso"),
    (("permission denied", "row-level security"), "permissao"),
    (("not found", "no rows", "0 rows"), "nao_encontrado"),
    (("invalid input", "invalid value"), "dados_invalidos"),
    (("network", "fetch", "connection", "timed out", "timeout"), "conexao"),
]


class ErroAcesso(Exception):
    """Falha do repositório: indisponível, permissão negada, constraint violada"""

    def __init__(self, mensagem: str, categoria: str = "generico", operacao: str = ""):
        super().__init__(mensagem)
        self.mensagem = mensagem
        self.categoria = categoria
        self.operacao = operacao


class ErroValidacao(Exception):
    """Entrada do chamador reprovada no schema; bloqueia a mutação"""

    def __init__(self, mensagem: str, campo: str = None):
        super().__init__(mensagem)
        self.mensagem = mensagem
        self.campo = campo


def _texto_erro(erro: Exception) -> str:
    partes = [getattr(erro, "message", None), getattr(erro, "details", None), str(erro)]
    return " ".join(p for p in partes if isinstance(p, str)).lower()


def classificar_erro(erro: Exception) -> str:
    """Categoria do erro pelo código do banco ou por trechos da mensagem"""
    codigo = getattr(erro, "code", None)
    if codigo and str(codigo) in CODIGOS_CATEGORIA:
        return CODIGOS_CATEGORIA[str(codigo)]

    texto = _texto_erro(erro)
    for trechos, categoria in TRECHOS_CATEGORIA:
        if any(t in texto for t in trechos):
            return categoria
    return "generico"


def tratar_erro_banco(erro: Exception, operacao: str) -> ErroAcesso:
    """
    Registra o erro completo e devolve um ErroAcesso com mensagem segura.

    O chamador decide se levanta (`raise tratar_erro_banco(e, op) from e`).
    """
    logger.error("[SUPABASE] Erro de banco em %s: %r", operacao, erro)

    categoria = classificar_erro(erro)
    mensagem = MENSAGENS_CATEGORIA.get(categoria, f"Erro ao {operacao}. Tente novamente.")
    return ErroAcesso(mensagem, categoria=categoria, operacao=operacao)
