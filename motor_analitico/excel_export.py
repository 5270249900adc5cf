"""
Exportação Excel do Painel Analítico
DRE, rentabilidade por cliente, ranking de vendas, radar de churn e capacidade.

Os agregados chegam em centavos; a conversão para reais acontece só na célula.
"""

from datetime import datetime
from typing import Iterable, List, Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from config import APP_NAME
from motor_analitico.capacidade import CargaMembro
from motor_analitico.churn_radar import RiscoChurn
from motor_analitico.dinheiro import para_reais
from motor_analitico.dre import DRE
from motor_analitico.performance_vendas import PerformanceVendedor
from motor_analitico.rentabilidade import RentabilidadeCliente

FORMATO_MOEDA = '"R$" #,##0.00;[Red]-"R$" #,##0.00;"-"'
FORMATO_PERCENTUAL = '0.00"%"'


class EstilosExcel:
    """Estilos do relatório"""

    AZUL_ESCURO = '1F4E79'
    AZUL_MEDIO = '2E75B6'
    VERDE = '70AD47'
    AMARELO = 'FFC000'
    LARANJA = 'ED7D31'
    VERMELHO = 'C00000'
    CINZA_ESCURO = '404040'
    CINZA_CLARO = 'D9D9D9'
    BRANCO = 'FFFFFF'
    FUNDO_AZUL = 'DDEBF7'

    # Cor por status dos painéis
    CORES_STATUS = {
        "critical": VERMELHO,
        "overloaded": VERMELHO,
        "high": LARANJA,
        "attention": AMARELO,
        "medium": AMARELO,
        "healthy": VERDE,
    }

    @classmethod
    def borda_fina(cls):
        return Border(
            left=Side(style='thin', color=cls.CINZA_CLARO),
            right=Side(style='thin', color=cls.CINZA_CLARO),
            top=Side(style='thin', color=cls.CINZA_CLARO),
            bottom=Side(style='thin', color=cls.CINZA_CLARO)
        )

    @classmethod
    def borda_total(cls):
        return Border(
            top=Side(style='medium', color=cls.AZUL_ESCURO),
            bottom=Side(style='double', color=cls.AZUL_ESCURO)
        )


class ExcelAnaliticoExporter:
    """Exportador dos agregados do painel para Excel"""

    def __init__(self, organizacao_nome: str = None, periodo: str = None):
        self.organizacao_nome = organizacao_nome or "Agência"
        self.periodo = periodo or datetime.now().strftime("%Y-%m")
        self.wb = Workbook()
        self.estilos = EstilosExcel
        self._primeira_aba = True

    def _nova_aba(self, titulo: str):
        if self._primeira_aba:
            ws = self.wb.active
            ws.title = titulo
            self._primeira_aba = False
            return ws
        return self.wb.create_sheet(titulo)

    def _aplicar_estilo_cabecalho(self, cell):
        cell.font = Font(name='Calibri', size=10, bold=True, color=self.estilos.BRANCO)
        cell.fill = PatternFill('solid', fgColor=self.estilos.AZUL_MEDIO)
        cell.alignment = Alignment(horizontal='center', vertical='center')
        cell.border = self.estilos.borda_fina()

    def _aplicar_estilo_total(self, cell):
        cell.font = Font(name='Calibri', size=10, bold=True, color=self.estilos.AZUL_ESCURO)
        cell.fill = PatternFill('solid', fgColor=self.estilos.CINZA_CLARO)
        cell.border = self.estilos.borda_total()

    def _aplicar_estilo_resultado(self, cell, positivo=True):
        cell.font = Font(name='Calibri', size=10, bold=True, color=self.estilos.BRANCO)
        cell.fill = PatternFill('solid', fgColor=self.estilos.VERDE if positivo else self.estilos.VERMELHO)
        cell.border = self.estilos.borda_fina()

    def _titulo(self, ws, texto: str, col_fim: int):
        ws.merge_cells(start_row=2, start_column=2, end_row=2, end_column=col_fim)
        cell = ws.cell(row=2, column=2)
        cell.value = texto
        cell.font = Font(name='Calibri', size=16, bold=True, color=self.estilos.AZUL_ESCURO)
        cell = ws.cell(row=3, column=2)
        cell.value = f"{self.organizacao_nome} | {self.periodo}"
        cell.font = Font(name='Calibri', size=10, color=self.estilos.CINZA_ESCURO)
        return 5

    def _cabecalho(self, ws, row: int, colunas: List[str], larguras: List[int]):
        ws.column_dimensions['A'].width = 2
        for i, (titulo, largura) in enumerate(zip(colunas, larguras)):
            cell = ws.cell(row=row, column=2 + i)
            cell.value = titulo
            self._aplicar_estilo_cabecalho(cell)
            ws.column_dimensions[get_column_letter(2 + i)].width = largura
        ws.row_dimensions[row].height = 20
        return row + 1

    def _celula(self, ws, row: int, col: int, valor, formato: str = None):
        cell = ws.cell(row=row, column=col)
        cell.value = valor
        cell.border = self.estilos.borda_fina()
        if formato:
            cell.number_format = formato
            cell.alignment = Alignment(horizontal='right')
        return cell

    def _celula_status(self, ws, row: int, col: int, status: str):
        cell = self._celula(ws, row, col, status)
        cor = self.estilos.CORES_STATUS.get(status)
        if cor:
            cell.font = Font(name='Calibri', size=10, bold=True, color=self.estilos.BRANCO)
            cell.fill = PatternFill('solid', fgColor=cor)
            cell.alignment = Alignment(horizontal='center')
        return cell

    # =========================================================================
    # ABAS
    # =========================================================================
    def criar_dre(self, dre: DRE):
        ws = self._nova_aba("DRE")
        row = self._titulo(ws, "DEMONSTRAÇÃO DO RESULTADO", col_fim=4)
        row = self._cabecalho(ws, row, ["Conta", "Valor", "AV%"], [35, 18, 10])

        for linha in dre.linhas():
            conta = linha["conta"]
            cell_conta = self._celula(ws, row, 2, conta)
            cell_valor = self._celula(ws, row, 3, para_reais(linha["valor"]), FORMATO_MOEDA)
            av = linha["valor"] / dre.receita_bruta * 100 if dre.receita_bruta else 0
            cell_av = self._celula(ws, row, 4, av, FORMATO_PERCENTUAL)

            if conta == "LUCRO LÍQUIDO":
                for cell in (cell_conta, cell_valor, cell_av):
                    self._aplicar_estilo_resultado(cell, linha["valor"] >= 0)
            elif not conta.startswith("(-)"):
                for cell in (cell_conta, cell_valor, cell_av):
                    self._aplicar_estilo_total(cell)
            row += 1

        row += 1
        self._celula(ws, row, 2, "Margem Líquida")
        self._celula(ws, row, 4, dre.margem_liquida, FORMATO_PERCENTUAL)
        row += 1
        self._celula(ws, row, 2, "Repasses (fora do resultado)")
        self._celula(ws, row, 3, para_reais(dre.repasses), FORMATO_MOEDA)
        return ws

    def criar_rentabilidade(self, rentabilidade: Iterable[RentabilidadeCliente]):
        ws = self._nova_aba("Rentabilidade")
        row = self._titulo(ws, "RENTABILIDADE POR CLIENTE", col_fim=7)
        row = self._cabecalho(
            ws, row,
            ["Cliente", "Receita", "Custos Diretos", "Mão de Obra", "Lucro", "Margem"],
            [30, 16, 16, 16, 16, 10],
        )
        for r in rentabilidade:
            self._celula(ws, row, 2, r.client_name)
            self._celula(ws, row, 3, para_reais(r.revenue), FORMATO_MOEDA)
            self._celula(ws, row, 4, para_reais(r.direct_costs), FORMATO_MOEDA)
            self._celula(ws, row, 5, para_reais(r.labor_cost), FORMATO_MOEDA)
            self._celula(ws, row, 6, para_reais(r.profit), FORMATO_MOEDA)
            self._celula(ws, row, 7, r.margin, FORMATO_PERCENTUAL)
            row += 1
        return ws

    def criar_ranking(self, ranking: Iterable[PerformanceVendedor]):
        ws = self._nova_aba("Ranking Vendas")
        row = self._titulo(ws, "RANKING DE VENDAS", col_fim=7)
        row = self._cabecalho(
            ws, row,
            ["#", "Vendedor", "Negócios", "Receita", "Ticket Médio", "Comissão"],
            [5, 28, 10, 16, 16, 16],
        )
        for posicao, p in enumerate(ranking, start=1):
            self._celula(ws, row, 2, posicao)
            self._celula(ws, row, 3, p.salesperson_name)
            self._celula(ws, row, 4, p.deals_closed)
            self._celula(ws, row, 5, para_reais(p.revenue_centavos), FORMATO_MOEDA)
            self._celula(ws, row, 6, para_reais(p.average_ticket_centavos), FORMATO_MOEDA)
            self._celula(ws, row, 7, para_reais(p.commission_earned_centavos), FORMATO_MOEDA)
            row += 1
        return ws

    def criar_churn(self, riscos: Iterable[RiscoChurn]):
        ws = self._nova_aba("Radar Churn")
        row = self._titulo(ws, "RADAR DE CHURN", col_fim=6)
        row = self._cabecalho(
            ws, row,
            ["Cliente", "Fim do Contrato", "Dias", "Fee Mensal", "Risco"],
            [30, 16, 8, 16, 12],
        )
        total = 0
        for risco in riscos:
            self._celula(ws, row, 2, risco.client_name)
            self._celula(ws, row, 3, risco.contract_end, 'DD/MM/YYYY')
            self._celula(ws, row, 4, risco.days_until_end)
            self._celula(ws, row, 5, para_reais(risco.fee_mensal_centavos), FORMATO_MOEDA)
            self._celula_status(ws, row, 6, risco.risk_level)
            total += risco.fee_mensal_centavos
            row += 1

        self._aplicar_estilo_total(self._celula(ws, row, 2, "RECEITA EM RISCO"))
        self._aplicar_estilo_total(self._celula(ws, row, 5, para_reais(total), FORMATO_MOEDA))
        return ws

    def criar_capacidade(self, cargas: Iterable[CargaMembro]):
        ws = self._nova_aba("Capacidade")
        row = self._titulo(ws, "CAPACIDADE DA EQUIPE", col_fim=7)
        row = self._cabecalho(
            ws, row,
            ["Membro", "Capacidade (h)", "Alocado (h)", "Utilização", "Tarefas", "Status"],
            [28, 14, 12, 12, 10, 14],
        )
        for carga in cargas:
            self._celula(ws, row, 2, carga.name)
            self._celula(ws, row, 3, carga.weekly_capacity_hours)
            self._celula(ws, row, 4, carga.allocated_hours, '0.0')
            self._celula(ws, row, 5, carga.utilization_percent, '0"%"')
            self._celula(ws, row, 6, len(carga.tasks))
            self._celula_status(ws, row, 7, carga.status)
            row += 1
        return ws

    def generate(self, destino, dre: DRE = None,
                 rentabilidade: Optional[Iterable[RentabilidadeCliente]] = None,
                 ranking: Optional[Iterable[PerformanceVendedor]] = None,
                 churn: Optional[Iterable[RiscoChurn]] = None,
                 capacidade: Optional[Iterable[CargaMembro]] = None):
        """
        Gera o arquivo com as abas dos agregados informados.

        Args:
            destino: caminho do arquivo ou buffer (BytesIO) para download
        """
        if dre is not None:
            self.criar_dre(dre)
        if rentabilidade is not None:
            self.criar_rentabilidade(rentabilidade)
        if ranking is not None:
            self.criar_ranking(ranking)
        if churn is not None:
            self.criar_churn(churn)
        if capacidade is not None:
            self.criar_capacidade(capacidade)
        if self._primeira_aba:
            self._nova_aba(APP_NAME[:31])

        self.wb.save(destino)
        return destino


def exportar_painel(painel: dict, destino, organizacao_nome: str = None, periodo: str = None):
    """Função de conveniência - recebe o dicionário de PainelAnalitico.carregar_tudo()"""
    exporter = ExcelAnaliticoExporter(organizacao_nome, periodo)
    return exporter.generate(
        destino,
        dre=painel.get("dre"),
        rentabilidade=painel.get("rentabilidade"),
        ranking=painel.get("ranking_vendas"),
        churn=painel.get("radar_churn"),
        capacidade=painel.get("capacidade"),
    )
