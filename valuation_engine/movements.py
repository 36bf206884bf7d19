"""
Investment movements: creation, deposits, withdrawals and closing.

These functions only compute the new investment fields, the monthly snapshot
to upsert and the cash movement on the linked bank account. Persisting them
is up to the caller.

Lifecycle rules:
- Creation: current_value = principal, seed snapshot applied = total = principal
- Deposit: principal and current_value grow by the amount
- Withdrawal: current_value shrinks by the amount and principal is scaled by
  the same proportion, so the yield ratio is kept
"""

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Optional

from valuation_engine.investment import Investment, MonthlySnapshot, month_start
from valuation_engine.valuation import ValuationResult

logger = logging.getLogger(__name__)


class InvestmentMovementError(ValueError):
    """Raised when a deposit or withdrawal is inconsistent with the position."""
    pass


@dataclass(frozen=True)
class CashMovement:
    """Balance change on a bank account; negative amounts are debits."""
    bank_account_id: Optional[str]
    amount: float


@dataclass(frozen=True)
class MovementResult:
    investment: Investment
    snapshot: Optional[MonthlySnapshot]
    cash: Optional[CashMovement]


def _cash(investment: Investment, amount: float) -> Optional[CashMovement]:
    if investment.bank_account_id is None:
        return None
    return CashMovement(investment.bank_account_id, amount)


def _month_snapshot(investment: Investment, on: date,
                    existing: Optional[MonthlySnapshot]) -> Optional[MonthlySnapshot]:
    if existing is None:
        return None
    if existing.investment_id != investment.id or existing.month_date != month_start(on):
        raise InvestmentMovementError(
            f"Snapshot {existing.investment_id}/{existing.month_date} does not belong to "
            f"{investment.id}/{month_start(on)}"
        )
    return existing


def open_investment(investment: Investment) -> MovementResult:
    """
    Register a new investment.

    Args:
        investment: New position; its principal is the initial contribution

    Returns:
        MovementResult: Investment with current_value = principal, seed
            snapshot for the purchase month, and the debit of the principal
    """
    if investment.principal <= 0:
        raise InvestmentMovementError(f"Initial amount must be positive, got {investment.principal}")

    opened = replace(investment, current_value=investment.principal)
    snapshot = MonthlySnapshot(
        investment_id=opened.id,
        month_date=opened.purchase_date,
        applied_value=opened.principal,
        total_value=opened.principal,
    )
    return MovementResult(opened, snapshot, _cash(opened, -opened.principal))


def deposit(investment: Investment, amount: float, on: date,
            month_snapshot: Optional[MonthlySnapshot] = None) -> MovementResult:
    """
    Add capital to an investment.

    Args:
        investment: Current position
        amount: Deposited amount
        on: Deposit date
        month_snapshot: Stored snapshot for the deposit month, if any

    Returns:
        MovementResult: Updated position, snapshot with the month's
            contributions accumulated, and the debit of the amount
    """
    if amount <= 0:
        raise InvestmentMovementError(f"Deposit amount must be positive, got {amount}")

    updated = replace(
        investment,
        principal=investment.principal + amount,
        current_value=investment.current_value + amount,
    )

    existing = _month_snapshot(investment, on, month_snapshot)
    applied = (existing.applied_value if existing else 0.0) + amount
    snapshot = MonthlySnapshot(updated.id, on, applied, updated.current_value)

    logger.debug(f"Deposit of {amount:.2f} into {investment.name}: value {updated.current_value:.2f}")
    return MovementResult(updated, snapshot, _cash(updated, -amount))


def withdraw(investment: Investment, amount: float, on: date,
             transaction_cost: float = 0.0,
             month_snapshot: Optional[MonthlySnapshot] = None) -> MovementResult:
    """
    Redeem part of an investment.

    Args:
        investment: Current position
        amount: Gross amount withdrawn from the position
        on: Withdrawal date
        transaction_cost: Costs deducted from the cash credited
        month_snapshot: Stored snapshot for the withdrawal month, if any

    Returns:
        MovementResult: Updated position, snapshot with the new total value,
            and the credit of the net amount

    Raises:
        InvestmentMovementError: If the amount exceeds the current value or
            nothing would be credited after costs
    """
    if amount <= 0:
        raise InvestmentMovementError(f"Withdrawal amount must be positive, got {amount}")
    if amount > investment.current_value:
        raise InvestmentMovementError(
            f"Withdrawal of {amount:.2f} exceeds current value {investment.current_value:.2f}"
        )
    net_amount = amount - transaction_cost
    if net_amount <= 0:
        raise InvestmentMovementError(
            f"Transaction cost {transaction_cost:.2f} consumes the whole withdrawal"
        )

    new_value = investment.current_value - amount
    new_principal = investment.principal * new_value / investment.current_value
    updated = replace(investment, principal=new_principal, current_value=new_value)

    existing = _month_snapshot(investment, on, month_snapshot)
    applied = existing.applied_value if existing else 0.0
    snapshot = MonthlySnapshot(updated.id, on, applied, new_value)

    return MovementResult(updated, snapshot, _cash(updated, net_amount))


def close_investment(investment: Investment) -> MovementResult:
    """Delete a position, returning its current value to the linked account."""
    return MovementResult(investment, None, _cash(investment, investment.current_value))


def apply_valuation(investment: Investment, result: ValuationResult) -> Investment:
    """Copy of the investment carrying a valuation result; principal is untouched."""
    if result.investment_id != investment.id:
        raise ValueError(f"Valuation for {result.investment_id} applied to {investment.id}")
    return replace(investment, current_value=result.value)
