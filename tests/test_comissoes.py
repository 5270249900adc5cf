import pytest

from config import CATEGORIA_COMISSAO
from motor_analitico.comissoes import MotorComissoes, calcular_comissao, chave_idempotencia
from motor_analitico.entidades import Deal
from motor_analitico.erros import ErroAcesso, ErroValidacao
from tests.conftest import HOJE, MEMBRO_ID, ORG_ID, novo_id

PROJETO_ID = "33333333-3333-4333-8333-333333333333"


def _deal(valor=100000, salesperson_id=MEMBRO_ID, **extra):
    dados = dict(
        id=novo_id(),
        organization_id=ORG_ID,
        company="Cliente XPTO",
        value_centavos=valor,
        probability=100,
        stage="closed_won",
        salesperson_id=salesperson_id,
        updated_at="2026-01-15T10:00:00",
    )
    dados.update(extra)
    return Deal(**dados)


def test_comissao_de_dez_por_cento(db, manager, vendedor):
    deal = _deal(project_id=PROJETO_ID)

    comissao = MotorComissoes(manager).provisionar(deal, hoje=HOJE)

    assert comissao.value_centavos == 10000
    assert comissao.type == "despesa"
    assert comissao.category == CATEGORIA_COMISSAO
    assert comissao.status == "pendente"
    assert comissao.cost_type == "direto"
    assert comissao.date == HOJE
    assert comissao.salesperson_id == MEMBRO_ID
    assert comissao.project_id == PROJETO_ID
    assert comissao.deal_id == deal.id
    assert comissao.idempotency_key == chave_idempotencia(deal)
    assert len(db.rows("transactions")) == 1
    assert db.rows("transactions")[0]["notes"] == "Comissão de 10% sobre negócio fechado"


def test_provisionar_duas_vezes_nao_duplica(db, manager, vendedor):
    deal = _deal()
    motor = MotorComissoes(manager)

    primeira = motor.provisionar(deal, hoje=HOJE)
    segunda = motor.provisionar(deal, hoje=HOJE)

    assert primeira.id == segunda.id
    assert len(db.rows("transactions")) == 1


def test_disparo_concorrente_resolve_para_a_existente(db, manager, vendedor, monkeypatch):
    deal = _deal()
    motor = MotorComissoes(manager)
    existente = db.seed("transactions", description="Comissão", category=CATEGORIA_COMISSAO,
                        value_centavos=10000, type="despesa", date="2026-01-15",
                        idempotency_key=chave_idempotencia(deal))

    buscas = []
    original = motor.buscar_provisionada

    def checagem_atrasada(chave):
        buscas.append(chave)
        # primeira checagem não enxerga a linha gravada pelo outro disparo
        return None if len(buscas) == 1 else original(chave)

    monkeypatch.setattr(motor, "buscar_provisionada", checagem_atrasada)

    comissao = motor.provisionar(deal, hoje=HOJE)

    assert comissao.id == existente["id"]
    assert len(db.rows("transactions")) == 1


def test_percentual_zero_nao_gera_transacao(db, manager):
    db.seed("profiles", id=MEMBRO_ID, name="Sem Comissão", comissao_percentual=0)

    assert MotorComissoes(manager).provisionar(_deal(), hoje=HOJE) is None
    assert db.rows("transactions") == []


def test_percentual_nulo_nao_gera_transacao(db, manager):
    db.seed("profiles", id=MEMBRO_ID, name="Sem Comissão", comissao_percentual=None)

    assert MotorComissoes(manager).provisionar(_deal(), hoje=HOJE) is None
    assert db.rows("transactions") == []


def test_vendedor_inexistente_aborta_sem_gravar(db, manager):
    with pytest.raises(ErroAcesso) as exc:
        MotorComissoes(manager).provisionar(_deal(), hoje=HOJE)

    assert exc.value.categoria == "nao_encontrado"
    assert db.consultas_em("transactions", "insert") == []


def test_deal_sem_vendedor_ou_nao_fechado(db, manager, vendedor):
    motor = MotorComissoes(manager)
    assert motor.provisionar(_deal(salesperson_id=None), hoje=HOJE) is None
    assert motor.provisionar(_deal(stage="negotiation"), hoje=HOJE) is None
    assert db.rows("transactions") == []


def test_falha_no_banco_ao_gravar_e_sanitizada(db, manager, vendedor):
    from postgrest.exceptions import APIError

    db.falhar("transactions", APIError({"message": "permission denied for table transactions",
                                        "code": "42501", "details": None, "hint": None}))
    with pytest.raises(ErroAcesso) as exc:
        MotorComissoes(manager).provisionar(_deal(), hoje=HOJE)

    assert exc.value.mensagem == "Você não tem permissão para esta ação."
    assert "transactions" not in exc.value.mensagem


@pytest.mark.parametrize("valor,percentual,esperado", [
    (100000, 10, 10000),
    (12345, 10, 1235),
    (99999, 2.5, 2500),
    (100000, 0, 0),
    (100000, None, 0),
])
def test_calcular_comissao_arredonda_em_centavos(valor, percentual, esperado):
    assert calcular_comissao(valor, percentual) == esperado


def test_chave_sem_updated_at():
    deal = _deal(updated_at=None)
    assert chave_idempotencia(deal) == f"{deal.id}:fechamento"


def test_atualizar_configuracao_nao_e_retroativa(db, manager, vendedor):
    motor = MotorComissoes(manager)
    antes = motor.provisionar(_deal(), hoje=HOJE)

    membro = motor.atualizar_configuracao({
        "profile_id": MEMBRO_ID,
        "comissao_percentual": 15,
        "tipo_comissao": "sobre_margem",
    })

    assert membro.comissao_percentual == 15
    assert membro.tipo_comissao == "sobre_margem"
    assert db.rows("transactions")[0]["value_centavos"] == antes.value_centavos == 10000

    nova = motor.provisionar(_deal(), hoje=HOJE)
    assert nova.value_centavos == 15000


def test_atualizar_configuracao_valida_percentual(manager, vendedor):
    with pytest.raises(ErroValidacao) as exc:
        MotorComissoes(manager).atualizar_configuracao({"profile_id": MEMBRO_ID, "comissao_percentual": 150})
    assert exc.value.campo == "comissao_percentual"
