"""
Motor Analítico
================

Métricas de decisão derivadas dos registros transacionais da agência:
DRE, rentabilidade por cliente, ranking de vendas, comissões, radar de
churn e capacidade da equipe.

Uso básico:
-----------
    from auth import get_supabase_client, contexto_da_sessao
    from supabase_manager import SupabaseManager
    from motor_analitico.painel import PainelAnalitico

    manager = SupabaseManager(get_supabase_client(), contexto_da_sessao())
    painel = PainelAnalitico(manager)

    dre = painel.dre()               # mês corrente
    ranking = painel.ranking_vendas("2026-01")
    radar = painel.radar_churn(horizonte_dias=60)

Todos os valores monetários saem em centavos (int); a formatação em R$
fica com a camada de apresentação (config.format_currency).
"""

__version__ = "2.3.0"
