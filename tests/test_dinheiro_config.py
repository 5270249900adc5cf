from datetime import date, datetime

import pytest

from config import format_currency, format_percent
from motor_analitico.dinheiro import (
    arredondar, contrato_vigente, dentro_janela, dias_ate, janela_mes, limites_timestamp,
    mes_corrente, para_data, percentual_centavos, razao_percentual, validar_mes,
)
from motor_analitico.erros import ErroValidacao


@pytest.mark.parametrize("valor, casas, esperado", [
    (2.5, 0, 3),
    (-2.5, 0, -2),
    (66.666, 2, 66.67),
    (0.45, 1, 0.5),
])
def test_arredondar_meio_para_cima(valor, casas, esperado):
    assert arredondar(valor, casas) == esperado


def test_percentual_centavos():
    assert percentual_centavos(100005, 10) == 10001
    assert percentual_centavos(99999, 7.5) == 7500
    assert percentual_centavos(0, 10) == 0


def test_razao_percentual_sem_denominador():
    assert razao_percentual(10, 0) == 0
    assert razao_percentual(10, None, casas=1) == 0.0
    assert razao_percentual(1, 3, casas=1) == 33.3


def test_janela_mes():
    assert janela_mes("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))
    assert janela_mes(hoje=date(2026, 1, 15)) == (date(2026, 1, 1), date(2026, 1, 31))
    assert mes_corrente(date(2026, 3, 2)) == "2026-03"


def test_datas():
    assert para_data("2026-01-31T10:00:00") == date(2026, 1, 31)
    assert para_data(datetime(2026, 1, 31, 10)) == date(2026, 1, 31)
    assert para_data("") is None
    assert dias_ate("2026-01-10", hoje=date(2026, 1, 15)) == -5
    assert dentro_janela("2026-01-31", date(2026, 1, 1), date(2026, 1, 31))
    assert not dentro_janela(None, date(2026, 1, 1), date(2026, 1, 31))
    assert limites_timestamp(date(2026, 1, 1), date(2026, 1, 31)) == ("2026-01-01", "2026-01-31T23:59:59")


def test_contrato_vigente():
    hoje = date(2026, 1, 15)
    assert contrato_vigente("2025-01-01", None, hoje)
    assert contrato_vigente("2025-01-01", "2026-01-15", hoje)
    assert not contrato_vigente("2025-01-01", "2026-01-14", hoje)
    assert not contrato_vigente("2026-02-01", None, hoje)


def test_format_currency():
    assert format_currency(123456) == "R$ 1.234,56"
    assert format_currency(-5050) == "-R$ 50,50"
    assert format_currency(None) == "-"
    assert format_percent(12.345) == "12,3%"


@pytest.mark.parametrize("mes", ["2026-13", "2026-00", "jan/26", "2026-1", "26-01"])
def test_janela_mes_rejeita_mes_malformado(mes):
    with pytest.raises(ErroValidacao) as exc:
        janela_mes(mes)
    assert exc.value.campo == "mes"


def test_validar_mes():
    assert validar_mes("2026-12") == "2026-12"
    with pytest.raises(ErroValidacao):
        validar_mes("2026-12-01")
