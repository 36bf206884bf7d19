"""
Patrimony (balance sheet) classification and totals.

Assets and liabilities are bucketed into current ("circulante") and
non-current ("não circulante") groups by a fixed category table. Bank
balances are always current assets, investment value is always a
non-current asset and credit-card debt is a current liability.
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, Iterable, Optional, Sequence

from valuation_engine.investment import LIQUIDITY_AT_MATURITY, LIQUIDITY_DAILY, Investment

logger = logging.getLogger(__name__)


class PatrimonyGroup(Enum):
    ATIVO_CIRCULANTE = "ativo_circulante"
    ATIVO_NAO_CIRCULANTE = "ativo_nao_circulante"
    PASSIVO_CIRCULANTE = "passivo_circulante"
    PASSIVO_NAO_CIRCULANTE = "passivo_nao_circulante"


PATRIMONY_CATEGORY_RULES: Dict[str, PatrimonyGroup] = {
    # Ativos circulantes
    "conta_corrente": PatrimonyGroup.ATIVO_CIRCULANTE,
    "dinheiro": PatrimonyGroup.ATIVO_CIRCULANTE,
    "aplicacao_curto_prazo": PatrimonyGroup.ATIVO_CIRCULANTE,
    "carteira_digital": PatrimonyGroup.ATIVO_CIRCULANTE,
    "poupanca": PatrimonyGroup.ATIVO_CIRCULANTE,
    "emprestimo_a_receber_curto": PatrimonyGroup.ATIVO_CIRCULANTE,
    "reserva_emergencia": PatrimonyGroup.ATIVO_CIRCULANTE,

    # Ativos não circulantes
    "imovel": PatrimonyGroup.ATIVO_NAO_CIRCULANTE,
    "carro": PatrimonyGroup.ATIVO_NAO_CIRCULANTE,
    "moto": PatrimonyGroup.ATIVO_NAO_CIRCULANTE,
    "computador": PatrimonyGroup.ATIVO_NAO_CIRCULANTE,
    "investimento_longo_prazo": PatrimonyGroup.ATIVO_NAO_CIRCULANTE,
    "outro_duravel": PatrimonyGroup.ATIVO_NAO_CIRCULANTE,

    # Passivos circulantes
    "cartao_credito": PatrimonyGroup.PASSIVO_CIRCULANTE,
    "parcelamento": PatrimonyGroup.PASSIVO_CIRCULANTE,
    "emprestimo_bancario_curto": PatrimonyGroup.PASSIVO_CIRCULANTE,
    "conta_pagar": PatrimonyGroup.PASSIVO_CIRCULANTE,

    # Passivos não circulantes
    "financiamento_imovel": PatrimonyGroup.PASSIVO_NAO_CIRCULANTE,
    "financiamento_carro": PatrimonyGroup.PASSIVO_NAO_CIRCULANTE,
    "emprestimo_pessoal_longo": PatrimonyGroup.PASSIVO_NAO_CIRCULANTE,
}

_ASSET_GROUPS = (PatrimonyGroup.ATIVO_CIRCULANTE, PatrimonyGroup.ATIVO_NAO_CIRCULANTE)
_LIABILITY_GROUPS = (PatrimonyGroup.PASSIVO_CIRCULANTE, PatrimonyGroup.PASSIVO_NAO_CIRCULANTE)


@dataclass(frozen=True)
class Asset:
    name: str
    category: str
    current_value: float


@dataclass(frozen=True)
class Liability:
    name: str
    category: str
    remaining_amount: float


@dataclass(frozen=True)
class BalanceSheet:
    current_assets: float = 0.0
    non_current_assets: float = 0.0
    current_liabilities: float = 0.0
    non_current_liabilities: float = 0.0

    @property
    def total_assets(self) -> float:
        return self.current_assets + self.non_current_assets

    @property
    def total_liabilities(self) -> float:
        return self.current_liabilities + self.non_current_liabilities

    @property
    def net_worth(self) -> float:
        return self.total_assets - self.total_liabilities


def asset_group(category: str) -> PatrimonyGroup:
    """Group of an asset category; unknown or liability categories count as non-current assets."""
    group = PATRIMONY_CATEGORY_RULES.get(category)
    if group not in _ASSET_GROUPS:
        logger.warning(f"Unknown asset category '{category}', classified as non-current")
        return PatrimonyGroup.ATIVO_NAO_CIRCULANTE
    return group


def liability_group(category: str) -> PatrimonyGroup:
    """Group of a liability category; unknown or asset categories count as current liabilities."""
    group = PATRIMONY_CATEGORY_RULES.get(category)
    if group not in _LIABILITY_GROUPS:
        logger.warning(f"Unknown liability category '{category}', classified as current")
        return PatrimonyGroup.PASSIVO_CIRCULANTE
    return group


def build_balance_sheet(assets: Iterable[Asset], liabilities: Iterable[Liability],
                        bank_balances: Iterable[float] = (), investment_value: float = 0.0,
                        credit_card_debt: float = 0.0) -> BalanceSheet:
    """
    Sum assets and liabilities into current and non-current totals.

    Args:
        assets: Registered assets
        liabilities: Registered liabilities (remaining balances)
        bank_balances: Bank account balances, always current
        investment_value: Current investment value, always non-current
        credit_card_debt: Outstanding card debt, a current liability

    Returns:
        BalanceSheet: Totals; net worth keeps its sign
    """
    totals = {group: 0.0 for group in PatrimonyGroup}

    for asset in assets:
        totals[asset_group(asset.category)] += asset.current_value
    for liability in liabilities:
        totals[liability_group(liability.category)] += liability.remaining_amount

    totals[PatrimonyGroup.ATIVO_CIRCULANTE] += sum(bank_balances)
    totals[PatrimonyGroup.ATIVO_NAO_CIRCULANTE] += investment_value
    totals[PatrimonyGroup.PASSIVO_CIRCULANTE] += credit_card_debt

    return BalanceSheet(
        current_assets=totals[PatrimonyGroup.ATIVO_CIRCULANTE],
        non_current_assets=totals[PatrimonyGroup.ATIVO_NAO_CIRCULANTE],
        current_liabilities=totals[PatrimonyGroup.PASSIVO_CIRCULANTE],
        non_current_liabilities=totals[PatrimonyGroup.PASSIVO_NAO_CIRCULANTE],
    )


def classify_investment_group(investment: Investment, as_of: date) -> PatrimonyGroup:
    """
    Group an investment by liquidity for display.

    Daily liquidity, or maturity within 12 months of as_of, is current;
    everything else is non-current.
    """
    if investment.liquidity == LIQUIDITY_DAILY:
        return PatrimonyGroup.ATIVO_CIRCULANTE

    maturity: Optional[date] = investment.maturity_date
    if investment.liquidity == LIQUIDITY_AT_MATURITY and maturity is not None:
        months = (maturity.year - as_of.year) * 12 + (maturity.month - as_of.month)
        if months < 12 or (months == 12 and maturity.day <= as_of.day):
            return PatrimonyGroup.ATIVO_CIRCULANTE

    return PatrimonyGroup.ATIVO_NAO_CIRCULANTE


@dataclass(frozen=True)
class NetWorthSummary:
    available_balance: float
    total_invested: float
    current_investment_value: float
    investment_return: float
    net_worth: float


def net_worth_summary(bank_balances: Iterable[float], investments: Sequence[Investment]) -> NetWorthSummary:
    """Net worth from bank balances and current investment value."""
    available = sum(bank_balances)
    invested = sum(inv.principal for inv in investments)
    current = sum(inv.current_value for inv in investments)
    return NetWorthSummary(
        available_balance=available,
        total_invested=invested,
        current_investment_value=current,
        investment_return=current - invested,
        net_worth=available + current,
    )
