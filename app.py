"""
Agency Engine - Painel Analítico
Aplicação Streamlit: DRE, rentabilidade, vendas, churn e capacidade da equipe.
"""

import io
import logging

import pandas as pd
import streamlit as st

from auth import contexto_da_sessao, logout
from config import (
    APP_NAME,
    APP_SUBTITLE,
    APP_VERSION,
    ESTAGIOS_DEAL,
    MESES,
    configurar_logging,
    format_currency,
    format_number,
    format_percent,
)
from motor_analitico.cache import CacheAgregados
from motor_analitico.capacidade import resumo_capacidade
from motor_analitico.churn_radar import receita_em_risco
from motor_analitico.dinheiro import mes_corrente
from motor_analitico.dre import avaliar_metas
from motor_analitico.erros import ErroAcesso, ErroValidacao
from motor_analitico.excel_export import exportar_painel
from motor_analitico.painel import PainelAnalitico
from motor_analitico.rentabilidade import top_clientes
from supabase_manager import get_manager

configurar_logging()
logger = logging.getLogger(__name__)

ROTULOS_RISCO = {"critical": "🔴 Crítico", "high": "🟠 Alto", "medium": "🟡 Médio"}
ROTULOS_CARGA = {"overloaded": "🔴 Sobrecarregado", "attention": "🟡 Atenção", "healthy": "🟢 Saudável"}

# ============================================
# CONFIGURAÇÃO DA PÁGINA
# ============================================

st.set_page_config(
    page_title=APP_NAME,
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def _cache_agregados() -> CacheAgregados:
    """Um cache por processo; as chaves já incluem a organização"""
    return CacheAgregados()


# ============================================
# SEÇÕES
# ============================================

def secao_dre(painel: PainelAnalitico, mes: str):
    dre = painel.dre(mes)
    st.subheader(f"📋 DRE de {MESES[dre.inicio.month - 1]}/{dre.inicio.year}")
    if not dre.has_data:
        st.info("Nenhuma transação no período.")

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Receita Bruta", format_currency(dre.receita_bruta))
    col2.metric("Margem de Contribuição", format_currency(dre.margem_contribuicao),
                format_percent(dre.margem_contribuicao_percent))
    col3.metric("Lucro Líquido", format_currency(dre.lucro_liquido))
    col4.metric("Margem Líquida", format_percent(dre.margem_liquida))

    df = pd.DataFrame([
        {"Conta": linha["conta"], "Valor": format_currency(linha["valor"])} for linha in dre.linhas()
    ])
    st.dataframe(df, use_container_width=True, hide_index=True)

    metas = avaliar_metas(dre, painel.manager.obter_organizacao())
    if metas.meta_receita_liquida:
        st.progress(min(metas.atingimento_meta, 100) / 100,
                    text=f"Meta de resultado: {format_percent(metas.atingimento_meta)}")
    if metas.teto_excedido:
        st.warning(f"Custos fixos acima do teto ({format_percent(metas.uso_teto)})")


def secao_rentabilidade(painel: PainelAnalitico):
    st.subheader("💰 Rentabilidade por Cliente")
    rentabilidade = painel.rentabilidade()
    if not rentabilidade:
        st.info("Nenhum cliente cadastrado.")
        return

    df = pd.DataFrame([
        {
            "Cliente": r.client_name,
            "Receita": format_currency(r.revenue),
            "Custos Diretos": format_currency(r.direct_costs),
            "Mão de Obra": format_currency(r.labor_cost),
            "Lucro": format_currency(r.profit),
            "Margem": format_percent(r.margin),
        }
        for r in top_clientes(rentabilidade, n=10)
    ])
    st.dataframe(df, use_container_width=True, hide_index=True)


def secao_vendas(painel: PainelAnalitico, mes: str):
    st.subheader("🏆 Ranking de Vendas")
    kpis = painel.pipeline()
    col1, col2, col3 = st.columns(3)
    col1.metric("Pipeline Ponderado", format_currency(kpis.valor_ponderado))
    col2.metric("Pipeline Aberto", format_currency(kpis.total_aberto))
    col3.metric("Fechado (total)", format_currency(kpis.valor_fechado))

    ranking = painel.ranking_vendas(mes)
    if not ranking:
        st.info("Nenhum negócio fechado no período.")
    else:
        df = pd.DataFrame([
            {
                "Vendedor": p.salesperson_name,
                "Negócios": p.deals_closed,
                "Receita": format_currency(p.revenue_centavos),
                "Ticket Médio": format_currency(p.average_ticket_centavos),
                "Comissão": format_currency(p.commission_earned_centavos),
            }
            for p in ranking
        ])
        st.dataframe(df, use_container_width=True, hide_index=True)

    with st.expander("Negócios por estágio"):
        for estagio, deals in kpis.por_estagio.items():
            st.markdown(f"**{ESTAGIOS_DEAL[estagio]['label']}** ({len(deals)})")


def secao_churn(painel: PainelAnalitico, horizonte: int):
    st.subheader("📉 Radar de Churn")
    riscos = painel.radar_churn(horizonte)
    if not riscos:
        st.success(f"Nenhum contrato vence nos próximos {horizonte} dias.")
        return

    st.metric("Receita mensal em risco", format_currency(receita_em_risco(riscos)["total"]))
    df = pd.DataFrame([
        {
            "Cliente": r.client_name,
            "Fim do Contrato": r.contract_end.strftime("%d/%m/%Y"),
            "Dias": r.days_until_end,
            "Fee Mensal": format_currency(r.fee_mensal_centavos),
            "Risco": ROTULOS_RISCO[r.risk_level],
        }
        for r in riscos
    ])
    st.dataframe(df, use_container_width=True, hide_index=True)


def secao_capacidade(painel: PainelAnalitico):
    st.subheader("👥 Capacidade da Equipe")
    cargas = painel.capacidade()
    resumo = resumo_capacidade(cargas)
    col1, col2 = st.columns(2)
    col1.metric("Sobrecarregados", resumo["overloaded"])
    col2.metric("Em atenção", resumo["attention"])

    df = pd.DataFrame([
        {
            "Membro": c.name,
            "Capacidade": f"{c.weekly_capacity_hours}h",
            "Alocado": f"{format_number(c.allocated_hours, 1)}h",
            "Utilização": f"{c.utilization_percent}%",
            "Status": ROTULOS_CARGA[c.status],
        }
        for c in cargas
    ])
    st.dataframe(df, use_container_width=True, hide_index=True)


# ============================================
# PÁGINA
# ============================================

def main():
    contexto = contexto_da_sessao()
    if contexto is None:
        st.warning("Faça login para acessar o painel.")
        st.stop()

    st.title(f"📊 {APP_NAME}")
    st.caption(f"{APP_SUBTITLE} | v{APP_VERSION}")

    with st.sidebar:
        mes = st.text_input("Mês (AAAA-MM)", value=mes_corrente())
        horizonte = st.slider("Horizonte do radar (dias)", 15, 180, 60, step=15)
        if st.button("🔄 Recarregar"):
            _cache_agregados().limpar()
        if st.button("Sair"):
            logout()
            st.rerun()

    try:
        manager = get_manager(contexto, _cache_agregados())
        painel = PainelAnalitico(manager)

        if contexto.pode_acessar_financeiro:
            secao_dre(painel, mes)
            secao_rentabilidade(painel)
        if contexto.pode_acessar_war_room:
            secao_vendas(painel, mes)
        secao_churn(painel, horizonte)
        secao_capacidade(painel)

        if contexto.pode_acessar_financeiro:
            buffer = io.BytesIO()
            exportar_painel(painel.carregar_tudo(mes, horizonte), buffer,
                            manager.obter_organizacao().name, mes)
            st.download_button(
                label="⬇️ Baixar Excel",
                data=buffer.getvalue(),
                file_name=f"Painel_{mes}.xlsx",
                mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                use_container_width=True
            )
    except (ErroAcesso, ErroValidacao) as e:
        st.error(e.mensagem)


main()
