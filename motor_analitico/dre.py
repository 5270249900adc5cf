"""
DRE - Demonstração de Resultado do Exercício
Consolidação do período a partir das transações da organização.

Linhas:
    RECEITA BRUTA
    (-) Impostos
    (-) Custos Variáveis
    = MARGEM DE CONTRIBUIÇÃO
    (-) Custos Fixos
    = LUCRO LÍQUIDO

Repasses e lançamentos não operacionais ficam fora do resultado; entram
apenas nos totais de caixa (TotaisFinanceiros).
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from config import CATEGORIAS_IMPOSTOS
from motor_analitico.dinheiro import dentro_janela, janela_mes, razao_percentual
from motor_analitico.entidades import Organizacao, Transacao


# ============================================
# ESTRUTURAS DE DADOS
# ============================================

@dataclass(frozen=True)
class CategoriaValor:
    """Total de uma categoria dentro de uma linha do DRE"""
    name: str
    value: int


@dataclass(frozen=True)
class DRE:
    """DRE de um período; margens e lucro são derivados, nunca armazenados"""
    inicio: date
    fim: date
    receita_bruta: int = 0
    impostos: int = 0
    custos_variaveis: int = 0
    custos_fixos: int = 0
    repasses: int = 0
    categorias_receita: Tuple[CategoriaValor, ...] = ()
    categorias_impostos: Tuple[CategoriaValor, ...] = ()
    categorias_custos_variaveis: Tuple[CategoriaValor, ...] = ()
    categorias_custos_fixos: Tuple[CategoriaValor, ...] = ()

    @property
    def margem_contribuicao(self) -> int:
        return self.receita_bruta - self.impostos - self.custos_variaveis

    @property
    def lucro_liquido(self) -> int:
        return self.margem_contribuicao - self.custos_fixos

    @property
    def margem_liquida(self) -> float:
        return razao_percentual(self.lucro_liquido, self.receita_bruta, casas=2)

    @property
    def margem_contribuicao_percent(self) -> float:
        return razao_percentual(self.margem_contribuicao, self.receita_bruta, casas=2)

    @property
    def receita_liquida(self) -> int:
        """Receita bruta deduzida dos impostos"""
        return self.receita_bruta - self.impostos

    @property
    def has_data(self) -> bool:
        return bool(self.receita_bruta or self.custos_fixos or self.custos_variaveis)

    def to_dict(self) -> Dict:
        """Formato consumido pelo painel (chaves estáveis, valores em centavos)"""
        return {
            "periodo": {"inicio": self.inicio.isoformat(), "fim": self.fim.isoformat()},
            "receitaBruta": self.receita_bruta,
            "impostos": self.impostos,
            "custosVariaveis": self.custos_variaveis,
            "margemContribuicao": self.margem_contribuicao,
            "margemContribuicaoPercent": self.margem_contribuicao_percent,
            "custosFixos": self.custos_fixos,
            "lucroLiquido": self.lucro_liquido,
            "margemLiquida": self.margem_liquida,
            "repasses": self.repasses,
            "hasData": self.has_data,
            "receitaCategories": [[c.name, c.value] for c in self.categorias_receita],
            "impostosCategories": [[c.name, c.value] for c in self.categorias_impostos],
            "custosVariaveisCategories": [[c.name, c.value] for c in self.categorias_custos_variaveis],
            "custosFixosCategories": [[c.name, c.value] for c in self.categorias_custos_fixos],
        }

    def linhas(self) -> List[Dict]:
        """Linhas do demonstrativo para tabela/exportação"""
        return [
            {"conta": "RECEITA BRUTA", "valor": self.receita_bruta},
            {"conta": "(-) Impostos", "valor": -self.impostos},
            {"conta": "(-) Custos Variáveis", "valor": -self.custos_variaveis},
            {"conta": "MARGEM DE CONTRIBUIÇÃO", "valor": self.margem_contribuicao},
            {"conta": "(-) Custos Fixos", "valor": -self.custos_fixos},
            {"conta": "LUCRO LÍQUIDO", "valor": self.lucro_liquido},
        ]


@dataclass(frozen=True)
class AvaliacaoMetas:
    """Resultado do período contra as metas da organização"""
    lucro_liquido: int
    meta_receita_liquida: int
    custos_fixos: int
    teto_custos_fixos: int

    @property
    def atingimento_meta(self) -> float:
        return razao_percentual(self.lucro_liquido, self.meta_receita_liquida, casas=1)

    @property
    def meta_atingida(self) -> bool:
        return self.meta_receita_liquida > 0 and self.lucro_liquido >= self.meta_receita_liquida

    @property
    def uso_teto(self) -> float:
        return razao_percentual(self.custos_fixos, self.teto_custos_fixos, casas=1)

    @property
    def teto_excedido(self) -> bool:
        return self.teto_custos_fixos > 0 and self.custos_fixos > self.teto_custos_fixos


@dataclass(frozen=True)
class TotaisFinanceiros:
    """Totais de caixa; receitas e despesas operacionais excluem repasses"""
    receitas: int = 0
    despesas: int = 0
    repasse_entrada: int = 0
    repasse_saida: int = 0
    saldo_realizado: int = 0
    custos_diretos: int = 0
    custos_fixos: int = 0

    @property
    def saldo_previsto(self) -> int:
        return self.receitas - self.despesas

    @property
    def fluxo_caixa(self) -> int:
        return self.saldo_previsto + self.saldo_repasse

    @property
    def saldo_repasse(self) -> int:
        return self.repasse_entrada - self.repasse_saida

    @property
    def total_repasses(self) -> int:
        return max(self.repasse_entrada, self.repasse_saida)


# ============================================
# CÁLCULO
# ============================================

def _is_imposto(transacao: Transacao) -> bool:
    return transacao.category in CATEGORIAS_IMPOSTOS


def _categorias(valores: Dict[str, int]) -> Tuple[CategoriaValor, ...]:
    """Categorias em ordem decrescente de valor (empate por nome, para saída determinística)"""
    ordenadas = sorted(valores.items(), key=lambda item: (-item[1], item[0]))
    return tuple(CategoriaValor(name=nome, value=valor) for nome, valor in ordenadas)


def construir_dre(transacoes: Iterable[Transacao], inicio: date = None, fim: date = None,
                  hoje: date = None) -> DRE:
    """
    Monta o DRE das transações cuja data de referência (competência, ou
    vencimento quando não há competência) cai em [inicio, fim].

    Args:
        transacoes: transações da organização
        inicio, fim: janela inclusiva; padrão é o mês corrente
        hoje: referência do mês corrente

    Returns:
        DRE zerado quando não há movimento no período
    """
    if inicio is None or fim is None:
        inicio, fim = janela_mes(hoje=hoje)

    receitas: Dict[str, int] = defaultdict(int)
    impostos: Dict[str, int] = defaultdict(int)
    variaveis: Dict[str, int] = defaultdict(int)
    fixos: Dict[str, int] = defaultdict(int)
    repasse_entrada = 0
    repasse_saida = 0

    for t in transacoes:
        if not dentro_janela(t.data_referencia, inicio, fim):
            continue

        if t.is_repasse:
            if t.type == "receita":
                repasse_entrada += t.value_centavos
            else:
                repasse_saida += t.value_centavos
            continue

        if not t.operacional:
            continue

        if t.type == "receita":
            receitas[t.category] += t.value_centavos
        elif _is_imposto(t):
            impostos[t.category] += t.value_centavos
        elif t.cost_type == "direto":
            variaveis[t.category] += t.value_centavos
        else:
            fixos[t.category] += t.value_centavos

    return DRE(
        inicio=inicio,
        fim=fim,
        receita_bruta=sum(receitas.values()),
        impostos=sum(impostos.values()),
        custos_variaveis=sum(variaveis.values()),
        custos_fixos=sum(fixos.values()),
        repasses=max(repasse_entrada, repasse_saida),
        categorias_receita=_categorias(receitas),
        categorias_impostos=_categorias(impostos),
        categorias_custos_variaveis=_categorias(variaveis),
        categorias_custos_fixos=_categorias(fixos),
    )


def avaliar_metas(dre: DRE, organizacao: Organizacao) -> AvaliacaoMetas:
    return AvaliacaoMetas(
        lucro_liquido=dre.lucro_liquido,
        meta_receita_liquida=organizacao.meta_receita_liquida_centavos,
        custos_fixos=dre.custos_fixos,
        teto_custos_fixos=organizacao.teto_custos_fixos_centavos,
    )


def calcular_totais(transacoes: Iterable[Transacao]) -> TotaisFinanceiros:
    """
    Totais sobre todas as transações recebidas (sem janela).
    Receitas/despesas só operacionais; repasses apenas no fluxo de caixa;
    saldo realizado só com transações pagas.
    """
    receitas = despesas = 0
    entrada = saida = 0
    realizado = 0
    diretos = fixos = 0

    for t in transacoes:
        if t.is_repasse:
            if t.type == "receita":
                entrada += t.value_centavos
            else:
                saida += t.value_centavos
            continue

        if not t.operacional:
            continue

        sinal = 1 if t.type == "receita" else -1
        if t.status == "pago":
            realizado += sinal * t.value_centavos

        if t.type == "receita":
            receitas += t.value_centavos
        else:
            despesas += t.value_centavos
            if t.cost_type == "direto":
                diretos += t.value_centavos
            else:
                fixos += t.value_centavos

    return TotaisFinanceiros(
        receitas=receitas,
        despesas=despesas,
        repasse_entrada=entrada,
        repasse_saida=saida,
        saldo_realizado=realizado,
        custos_diretos=diretos,
        custos_fixos=fixos,
    )


def carregar_dre(manager, mes: Optional[str] = None, hoje: date = None) -> DRE:
    """DRE do mês ('YYYY-MM', padrão mês corrente) com as transações da organização"""
    inicio, fim = janela_mes(mes, hoje)
    return construir_dre(manager.listar_transacoes(), inicio, fim)
