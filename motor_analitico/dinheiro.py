"""
Primitivas monetárias e de calendário.
Todo valor monetário trafega como inteiro em centavos.
"""

import calendar
import math
import re
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Tuple, Union

from motor_analitico.erros import ErroValidacao

DataLike = Union[date, datetime, str, None]

PADRAO_MES = r"^\d{4}-(0[1-9]|1[0-2])$"


def arredondar(valor, casas: int = 0):
    """Meio para cima: 2.5 -> 3, -2.5 -> -2"""
    fator = 10 ** casas
    resultado = math.floor(valor * fator + 0.5)
    return int(resultado) if casas == 0 else resultado / fator


def percentual_centavos(base: int, percentual) -> int:
    """round(base * percentual / 100), calculado uma única vez em centavos"""
    valor = Decimal(int(base)) * Decimal(str(percentual)) / Decimal(100)
    return int(valor.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def razao_percentual(numerador, denominador, casas: Optional[int] = None):
    """
    numerador / denominador * 100 para exibição; 0 quando o denominador é zero.
    Sem `casas` devolve int; com `casas` devolve float com essa precisão.
    """
    if not denominador:
        return 0 if casas is None else 0.0
    return arredondar(numerador / denominador * 100, casas or 0)


def para_reais(centavos: int) -> float:
    """Converte para unidade de exibição (só na borda de apresentação)"""
    return (centavos or 0) / 100


def para_data(valor: DataLike) -> Optional[date]:
    """Aceita date, datetime ou string ISO ('2026-01-31' ou '2026-01-31T10:00:00')"""
    if valor is None or valor == "":
        return None
    if isinstance(valor, datetime):
        return valor.date()
    if isinstance(valor, date):
        return valor
    return date.fromisoformat(str(valor)[:10])


def validar_mes(mes: str) -> str:
    """'YYYY-MM' ou ErroValidacao antes de qualquer consulta"""
    if not isinstance(mes, str) or not re.match(PADRAO_MES, mes):
        raise ErroValidacao("Mês inválido", campo="mes")
    return mes


def janela_mes(mes: Optional[str] = None, hoje: Optional[date] = None) -> Tuple[date, date]:
    """
    Janela [YYYY-MM-01, último dia do mês], inclusiva.

    Args:
        mes: 'YYYY-MM'; padrão é o mês corrente
        hoje: referência para o mês corrente

    Raises:
        ErroValidacao: mês fora do formato 'YYYY-MM'
    """
    if mes:
        validar_mes(mes)
        ano, numero = int(mes[:4]), int(mes[5:7])
    else:
        hoje = hoje or date.today()
        ano, numero = hoje.year, hoje.month
    ultimo_dia = calendar.monthrange(ano, numero)[1]
    return date(ano, numero, 1), date(ano, numero, ultimo_dia)


def mes_corrente(hoje: Optional[date] = None) -> str:
    hoje = hoje or date.today()
    return f"{hoje.year:04d}-{hoje.month:02d}"


def dias_ate(alvo: DataLike, hoje: Optional[date] = None) -> int:
    """Diferença inteira em dias entre alvo e hoje (negativa se já passou)"""
    hoje = hoje or date.today()
    return (para_data(alvo) - hoje).days


def somar_dias(base: date, dias: int) -> date:
    return base + timedelta(days=dias)


def dentro_janela(valor: DataLike, inicio: date, fim: date) -> bool:
    """True se a data cai em [inicio, fim]"""
    data = para_data(valor)
    return data is not None and inicio <= data <= fim


def contrato_vigente(inicio: DataLike, fim: DataLike, hoje: Optional[date] = None) -> bool:
    """Contrato já iniciado e ainda não encerrado (fim nulo = prazo indeterminado)"""
    hoje = hoje or date.today()
    data_inicio = para_data(inicio)
    data_fim = para_data(fim)
    if data_inicio and data_inicio > hoje:
        return False
    return data_fim is None or data_fim >= hoje


def limites_timestamp(inicio: date, fim: date) -> Tuple[str, str]:
    """Limites ISO para filtrar colunas timestamp dentro da janela"""
    return inicio.isoformat(), f"{fim.isoformat()}T23:59:59"
