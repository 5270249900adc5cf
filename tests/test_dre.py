import json
import random
from datetime import date

from motor_analitico.dre import avaliar_metas, calcular_totais, carregar_dre, construir_dre
from motor_analitico.entidades import Organizacao, Transacao
from tests.conftest import HOJE, ORG_ID

JANEIRO = (date(2026, 1, 1), date(2026, 1, 31))


def _tx(valor, tipo="despesa", cost_type="fixo", category="Aluguel", data="2026-01-10", **extra):
    return Transacao(
        id=extra.pop("id", f"tx-{valor}-{tipo}-{category}"),
        organization_id=ORG_ID,
        description=category,
        category=category,
        value_centavos=valor,
        type=tipo,
        cost_type=cost_type,
        date=date.fromisoformat(data),
        **extra,
    )


def test_dre_end_to_end(db, manager):
    db.seed("transactions", description="Fee", category="Fee Mensal", value_centavos=500000,
            type="receita", nature="operacional", cost_type="fixo", date="2026-01-05")
    db.seed("transactions", description="Aluguel", category="Aluguel", value_centavos=100000,
            type="despesa", nature="operacional", cost_type="fixo", date="2026-01-10")
    db.seed("transactions", description="Freela", category="Freelancers", value_centavos=50000,
            type="despesa", nature="operacional", cost_type="direto", date="2026-01-12")

    dre = carregar_dre(manager, "2026-01")

    assert dre.receita_bruta == 500000
    assert dre.impostos == 0
    assert dre.custos_variaveis == 50000
    assert dre.margem_contribuicao == 450000
    assert dre.custos_fixos == 100000
    assert dre.lucro_liquido == 350000
    assert dre.margem_liquida == 70.0
    assert dre.has_data is True


def test_dre_linhas_consistentes_em_conjuntos_aleatorios():
    rnd = random.Random(42)
    categorias = ["Fee Mensal", "Aluguel", "Freelancers", "Impostos", "Impostos sobre Serviços"]
    for _ in range(50):
        transacoes = [
            _tx(
                rnd.randint(1, 10_000_000),
                tipo=rnd.choice(["receita", "despesa"]),
                cost_type=rnd.choice(["direto", "fixo"]),
                category=rnd.choice(categorias),
                id=f"tx-{i}",
            )
            for i in range(rnd.randint(0, 30))
        ]
        dre = construir_dre(transacoes, *JANEIRO)
        assert dre.margem_contribuicao == dre.receita_bruta - dre.impostos - dre.custos_variaveis
        assert dre.lucro_liquido == dre.margem_contribuicao - dre.custos_fixos
        assert isinstance(dre.lucro_liquido, int)


def test_dre_deterministico():
    transacoes = [
        _tx(300000, tipo="receita", category="Fee Mensal"),
        _tx(20000, category="Impostos"),
        _tx(15000, cost_type="direto", category="Freelancers"),
        _tx(15000, cost_type="direto", category="Ferramentas/Software"),
    ]
    primeira = json.dumps(construir_dre(transacoes, *JANEIRO).to_dict(), sort_keys=True)
    segunda = json.dumps(construir_dre(list(transacoes), *JANEIRO).to_dict(), sort_keys=True)
    assert primeira == segunda


def test_dre_sem_dados_devolve_zerado():
    dre = construir_dre([], *JANEIRO)
    assert dre.has_data is False
    assert dre.receita_bruta == dre.lucro_liquido == 0
    assert dre.margem_liquida == 0
    assert dre.to_dict()["hasData"] is False


def test_impostos_so_entram_na_linha_de_impostos():
    dre = construir_dre([
        _tx(100000, tipo="receita", category="Fee Mensal"),
        _tx(6000, cost_type="direto", category="Impostos"),
        _tx(4000, category="Impostos sobre Serviços"),
    ], *JANEIRO)
    assert dre.impostos == 10000
    assert dre.custos_variaveis == 0
    assert dre.custos_fixos == 0
    assert [c.name for c in dre.categorias_impostos] == ["Impostos", "Impostos sobre Serviços"]


def test_repasse_e_nao_operacional_ficam_fora_do_resultado():
    dre = construir_dre([
        _tx(100000, tipo="receita", category="Fee Mensal"),
        _tx(80000, tipo="receita", category="Compra de Mídia/Ads", is_repasse=True, nature="nao_operacional"),
        _tx(75000, category="Compra de Mídia/Ads", is_repasse=True, nature="nao_operacional"),
        _tx(50000, tipo="receita", category="Outros", nature="nao_operacional"),
    ], *JANEIRO)
    assert dre.receita_bruta == 100000
    assert dre.custos_fixos == 0
    assert dre.repasses == 80000


def test_janela_usa_competencia_antes_do_vencimento():
    dentro = _tx(1000, tipo="receita", category="Fee Mensal", data="2026-02-05",
                 competence_date=date(2026, 1, 31), id="a")
    fora = _tx(2000, tipo="receita", category="Fee Mensal", data="2026-01-20",
               competence_date=date(2026, 2, 1), id="b")
    limite = _tx(4000, tipo="receita", category="Fee Mensal", data="2026-01-01", id="c")
    dre = construir_dre([dentro, fora, limite], *JANEIRO)
    assert dre.receita_bruta == 5000


def test_dre_padrao_e_o_mes_corrente():
    dre = construir_dre([_tx(1000, tipo="receita", data="2026-01-02")], hoje=HOJE)
    assert (dre.inicio, dre.fim) == JANEIRO
    assert dre.receita_bruta == 1000


def test_margem_liquida_arredonda_duas_casas():
    dre = construir_dre([_tx(30000, tipo="receita"), _tx(10000, id="d")], *JANEIRO)
    assert dre.margem_liquida == 66.67


def test_avaliacao_de_metas_da_organizacao():
    dre = construir_dre([_tx(500000, tipo="receita"), _tx(150000, id="f")], *JANEIRO)
    org = Organizacao(id=ORG_ID, name="Agência", meta_receita_liquida_centavos=400000,
                      teto_custos_fixos_centavos=100000)
    metas = avaliar_metas(dre, org)
    assert metas.lucro_liquido == 350000
    assert metas.meta_atingida is False
    assert metas.atingimento_meta == 87.5
    assert metas.teto_excedido is True
    assert metas.uso_teto == 150.0


def test_totais_financeiros():
    totais = calcular_totais([
        _tx(100000, tipo="receita", status="pago", id="1"),
        _tx(30000, cost_type="direto", category="Freelancers", id="2"),
        _tx(20000, status="pago", id="3"),
        _tx(80000, tipo="receita", category="Google Ads", is_repasse=True, nature="nao_operacional", id="4"),
        _tx(70000, category="Google Ads", is_repasse=True, nature="nao_operacional", id="5"),
    ])
    assert totais.receitas == 100000
    assert totais.despesas == 50000
    assert totais.saldo_previsto == 50000
    assert totais.saldo_realizado == 80000
    assert totais.saldo_repasse == 10000
    assert totais.total_repasses == 80000
    assert totais.fluxo_caixa == 60000
    assert (totais.custos_diretos, totais.custos_fixos) == (30000, 20000)
