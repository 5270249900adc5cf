"""
Configurações do Agency Engine
Motor analítico de operações para agências (financeiro, vendas, equipe)
"""

import logging
import os

# Configurações do sistema
APP_NAME = "Agency Engine"
APP_VERSION = "2.3.0"
APP_SUBTITLE = "Motor Analítico | Financeiro, Vendas e Capacidade"

# Meses
MESES = [
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro"
]

# ============================================
# FINANCEIRO
# ============================================

CATEGORIA_COMISSAO = "Comissões de Vendas"

# Categorias que alimentam a linha de impostos do DRE
CATEGORIAS_IMPOSTOS = [
    "Impostos",
    "Impostos sobre Serviços",
]

# Categorias elegíveis para repasse (mídia paga pelo cliente)
CATEGORIAS_REPASSE = [
    "Compra de Mídia/Ads",
    "Mídia Paga",
    "Investimento em Mídia",
    "Google Ads",
    "Facebook Ads",
    "Meta Ads",
    "LinkedIn Ads",
    "TikTok Ads",
]

# ============================================
# CRM
# ============================================

# Estágios do kanban com probabilidade padrão
ESTAGIOS_DEAL = {
    "prospecting": {"label": "Prospecção", "probabilidade": 10},
    "proposal": {"label": "Proposta", "probabilidade": 40},
    "negotiation": {"label": "Negociação", "probabilidade": 70},
    "closed_won": {"label": "Fechado ✓", "probabilidade": 100},
    "closed_lost": {"label": "Perdido ✗", "probabilidade": 0},
}

ESTAGIOS_TERMINAIS = ("closed_won", "closed_lost")

# ============================================
# LIMIARES DOS PAINÉIS
# ============================================

# Radar de churn (dias até o fim do contrato)
CHURN_HORIZONTE_PADRAO_DIAS = 60
CHURN_LIMITE_CRITICO_DIAS = 15
CHURN_LIMITE_ALTO_DIAS = 30

# Capacidade da equipe (% de utilização)
CAPACIDADE_SEMANAL_PADRAO_HORAS = 40
UTILIZACAO_LIMITE_ATENCAO = 80
UTILIZACAO_LIMITE_SOBRECARGA = 100

# Consumo de horas do projeto (% das horas contratadas)
PROJETO_LIMITE_ATENCAO = 80
PROJETO_LIMITE_EXCEDIDO = 100
PROJETO_LIMITE_CRITICO = 120

# Metas mensais (% atingido)
META_LIMITE_PROXIMA = 70
META_LIMITE_ATINGIDA = 100

# ============================================
# LOGGING
# ============================================

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configurar_logging(nivel: str = None):
    """Configura o logging raiz (nível via LOG_LEVEL)"""
    nivel = (nivel or os.environ.get("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, nivel, logging.INFO), format=LOG_FORMAT)


# Formatação de valores (somente na camada de apresentação)
def format_currency(centavos, prefix="R$ "):
    """Formata valor em centavos como moeda brasileira"""
    if centavos is None:
        return "-"
    try:
        value = centavos / 100
        sinal = "-" if value < 0 else ""
        texto = f"{abs(value):,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
        return f"{sinal}{prefix}{texto}"
    except (TypeError, ValueError):
        return "-"


def format_percent(value, decimals=1):
    """Formata percentual já expresso em 0-100"""
    if value is None or (isinstance(value, float) and str(value) == 'nan'):
        return "-"
    try:
        return f"{value:,.{decimals}f}%".replace(",", "X").replace(".", ",").replace("X", ".")
    except (TypeError, ValueError):
        return "-"


def format_number(value, decimals=0):
    """Formata número com separador de milhar"""
    if value is None or (isinstance(value, float) and str(value) == 'nan'):
        return "-"
    try:
        return f"{value:,.{decimals}f}".replace(",", "X").replace(".", ",").replace("X", ".")
    except (TypeError, ValueError):
        return "-"
