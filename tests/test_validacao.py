from datetime import date, timedelta

import pytest

from motor_analitico.erros import ErroValidacao
from motor_analitico.validacao import (
    ClienteInput,
    DealInput,
    MetaMensalInput,
    TransacaoInput,
    is_categoria_repasse,
    parse_input,
    preparar_transacao,
    try_parse_input,
)

PROJETO_ID = "33333333-3333-4333-8333-333333333333"


def _transacao(**extra):
    dados = {
        "description": "Google Ads cliente X",
        "category": "Aluguel",
        "value_centavos": 10000,
        "type": "despesa",
        "date": "2026-01-10",
    }
    dados.update(extra)
    return dados


def test_campo_obrigatorio_em_portugues():
    dados = _transacao()
    del dados["description"]
    with pytest.raises(ErroValidacao) as exc:
        parse_input(TransacaoInput, dados)
    assert exc.value.mensagem == "Descrição é obrigatório"
    assert exc.value.campo == "description"


def test_valor_fora_da_faixa():
    with pytest.raises(ErroValidacao) as exc:
        parse_input(TransacaoInput, _transacao(value_centavos=0))
    assert exc.value.mensagem == "Valor não pode ser menor que 1"


def test_data_malformada():
    with pytest.raises(ErroValidacao) as exc:
        parse_input(TransacaoInput, _transacao(date="10/01/2026"))
    assert exc.value.mensagem == "Data de vencimento: data inválida"


def test_repasse_exige_categoria_de_midia():
    with pytest.raises(ErroValidacao) as exc:
        parse_input(TransacaoInput, _transacao(is_repasse=True))
    assert exc.value.mensagem.startswith("Repasse só pode ser marcado para categorias de mídia/ads")


def test_repasse_e_sempre_nao_operacional():
    entrada = parse_input(TransacaoInput, _transacao(category="Compra de Mídia/Ads", is_repasse=True))
    assert entrada.nature == "nao_operacional"


def test_transacao_de_projeto_e_custo_direto():
    entrada = parse_input(TransacaoInput, _transacao(project_id=PROJETO_ID))
    assert entrada.cost_type == "direto"
    assert parse_input(TransacaoInput, _transacao()).cost_type == "fixo"


def test_competencia_no_maximo_um_ano_a_frente():
    longe = (date.today() + timedelta(days=400)).isoformat()
    with pytest.raises(ErroValidacao) as exc:
        parse_input(TransacaoInput, _transacao(competence_date=longe))
    assert exc.value.mensagem == "Data de competência não pode ser mais de 1 ano no futuro"


def test_preparar_transacao_preenche_datas():
    entrada = parse_input(TransacaoInput, _transacao(status="pago"))
    payload = preparar_transacao(entrada, hoje=date(2026, 1, 15))
    assert payload["competence_date"] == "2026-01-10"
    assert payload["payment_date"] == "2026-01-15"
    pendente = preparar_transacao(parse_input(TransacaoInput, _transacao()), hoje=date(2026, 1, 15))
    assert pendente["payment_date"] is None


@pytest.mark.parametrize("categoria,esperado", [
    ("Compra de Mídia/Ads", True),
    ("Facebook Ads", True),
    ("tiktok - campanha", True),
    ("Aluguel", False),
    ("", False),
])
def test_categorias_de_repasse(categoria, esperado):
    assert is_categoria_repasse(categoria) is esperado


def test_cliente_com_fim_antes_do_inicio():
    with pytest.raises(ErroValidacao) as exc:
        parse_input(ClienteInput, {"name": "X", "contrato_inicio": "2026-02-01", "contrato_fim": "2026-01-01"})
    assert exc.value.mensagem == "Fim do contrato não pode ser anterior ao início"


def test_cliente_nome_em_branco():
    with pytest.raises(ErroValidacao) as exc:
        parse_input(ClienteInput, {"name": "   "})
    assert exc.value.mensagem == "Nome é obrigatório"


def test_deal_usa_probabilidade_do_estagio():
    assert parse_input(DealInput, {"company": "X", "stage": "negotiation"}).probability == 70
    assert parse_input(DealInput, {"company": "X", "stage": "proposal", "probability": 55}).probability == 55
    with pytest.raises(ErroValidacao):
        parse_input(DealInput, {"company": "X", "stage": "ganho"})


def test_meta_com_mes_invalido():
    with pytest.raises(ErroValidacao) as exc:
        parse_input(MetaMensalInput, {"month": "2026-13", "type": "leads", "target_value_centavos": 10})
    assert exc.value.mensagem == "Mês inválido"


def test_try_parse_input():
    assert try_parse_input(MetaMensalInput, {"month": "2026-01"}) is None
    assert try_parse_input(MetaMensalInput, {"month": "2026-01", "type": "leads",
                                             "target_value_centavos": 10}).type == "leads"
