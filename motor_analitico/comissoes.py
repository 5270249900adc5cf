"""
Motor de Comissões
Provisiona a comissão do vendedor como despesa quando um negócio é fechado.

A transação de comissão leva deal_id e uma chave de idempotência
"{deal_id}:{referência do fechamento}"; provisionar duas vezes o mesmo
fechamento devolve a transação existente em vez de criar outra.
"""

import logging
from datetime import date
from typing import Dict, Optional

from config import CATEGORIA_COMISSAO
from motor_analitico.dinheiro import percentual_centavos
from motor_analitico.entidades import Deal, MembroEquipePublico, Transacao
from motor_analitico.erros import ErroAcesso
from motor_analitico.validacao import ComissaoConfigInput, TransacaoInput, parse_input, preparar_transacao
from supabase_manager import Filtro

logger = logging.getLogger(__name__)

REFERENCIA_FECHAMENTO_PADRAO = "fechamento"


def calcular_comissao(valor_deal: int, percentual) -> int:
    """round(valor × percentual / 100) em centavos"""
    if not percentual:
        return 0
    return percentual_centavos(valor_deal, percentual)


def chave_idempotencia(deal: Deal) -> str:
    """Identifica o evento de fechamento: deal + momento da transição"""
    return f"{deal.id}:{deal.updated_at or REFERENCIA_FECHAMENTO_PADRAO}"


def _texto_percentual(percentual: float) -> str:
    return f"{percentual:g}".replace(".", ",")


class MotorComissoes:
    """Provisionamento e configuração de comissões"""

    def __init__(self, manager):
        self.manager = manager

    def buscar_provisionada(self, chave: str) -> Optional[Transacao]:
        """Transação de comissão já gravada para a chave, se houver"""
        existentes = self.manager.listar_transacoes(
            [Filtro.eq("idempotency_key", chave), Filtro.eq("category", CATEGORIA_COMISSAO)],
            ordem=None,
        )
        return existentes[0] if existentes else None

    def provisionar(self, deal: Deal, hoje: date = None) -> Optional[Transacao]:
        """
        Cria a despesa de comissão do negócio fechado.

        Returns:
            Transacao criada (ou a já existente para o mesmo fechamento);
            None quando não há vendedor, percentual ou valor a provisionar

        Raises:
            ErroAcesso: perfil do vendedor não encontrado (nada é gravado)
        """
        hoje = hoje or date.today()

        if deal.stage != "closed_won":
            logger.warning("[COMISSAO] Negócio %s não está fechado (%s); nada a provisionar", deal.id, deal.stage)
            return None
        if not deal.salesperson_id:
            return None

        vendedor = self.manager.obter_membro(deal.salesperson_id)
        if not vendedor.comissao_percentual:
            logger.info("[COMISSAO] %s sem percentual de comissão; negócio %s ignorado", vendedor.name, deal.id)
            return None

        valor = calcular_comissao(deal.value_centavos, vendedor.comissao_percentual)
        if valor <= 0:
            return None

        chave = chave_idempotencia(deal)
        existente = self.buscar_provisionada(chave)
        if existente is not None:
            logger.info("[COMISSAO] Comissão do fechamento %s já provisionada", chave)
            return existente

        entrada = parse_input(TransacaoInput, self._dados_transacao(deal, vendedor, valor, chave, hoje))
        try:
            row = self.manager.criar("transactions", preparar_transacao(entrada, hoje))
        except ErroAcesso as e:
            if e.categoria != "duplicado":
                raise
            # Outro disparo gravou a mesma chave entre a checagem e o insert
            existente = self.buscar_provisionada(chave)
            if existente is None:
                raise
            return existente

        logger.info("[COMISSAO] Provisionado %d centavos para %s (negócio %s)", valor, vendedor.name, deal.id)
        return Transacao.from_row(row)

    def _dados_transacao(self, deal: Deal, vendedor: MembroEquipePublico, valor: int,
                         chave: str, hoje: date) -> Dict:
        return {
            "description": f"Comissão de Vendas - {vendedor.name or 'Vendedor'}",
            "category": CATEGORIA_COMISSAO,
            "value_centavos": valor,
            "type": "despesa",
            "nature": "operacional",
            "cost_type": "direto",
            "is_repasse": False,
            "date": hoje,
            "competence_date": hoje,
            "status": "pendente",
            "project_id": deal.project_id,
            "salesperson_id": deal.salesperson_id,
            "deal_id": deal.id,
            "idempotency_key": chave,
            "notes": f"Comissão de {_texto_percentual(vendedor.comissao_percentual)}% sobre negócio fechado",
        }

    def atualizar_configuracao(self, dados: Dict) -> MembroEquipePublico:
        """
        Altera percentual e base de comissão do membro.
        Sem efeito retroativo: comissões já provisionadas não mudam.
        """
        entrada = parse_input(ComissaoConfigInput, dados)
        row = self.manager.atualizar("profiles", str(entrada.profile_id), {
            "comissao_percentual": entrada.comissao_percentual,
            "tipo_comissao": entrada.tipo_comissao,
        })
        return MembroEquipePublico.from_row(row)
