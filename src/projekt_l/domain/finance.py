"""
Pure finance calculations.

Balance effects of transactions, net worth, savings projections and the XP
paid for reaching savings goals.
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from ..core.enums import AccountType, TransactionType

LIABILITY_ACCOUNT_TYPES = {AccountType.CREDIT, AccountType.LOAN}
SAVINGS_ACCOUNT_TYPES = {AccountType.SAVINGS, AccountType.INVESTMENT}
TIME_TO_GOAL_MAX_MONTHS = 1200
DEFAULT_PROJECTION_MONTHS = 120


def balance_changes(
    transaction_type: str,
    amount: float,
    account_id: UUID,
    to_account_id: Optional[UUID] = None,
    target_removed: bool = False,
) -> List[Tuple[UUID, float]]:
    """Per-account balance deltas caused by a transaction.

    With target_removed a transfer whose target account is gone only yields
    the source leg, so it can still be reversed.

    Raises:
        ValueError: If a transfer has no target account
    """
    amount = abs(amount)
    transaction_type = TransactionType(transaction_type)

    if transaction_type == TransactionType.INCOME:
        return [(account_id, amount)]
    if transaction_type == TransactionType.EXPENSE:
        return [(account_id, -amount)]

    if to_account_id is None:
        if target_removed:
            return [(account_id, -amount)]
        raise ValueError("Transfers need a target account")
    if to_account_id == account_id:
        raise ValueError("Cannot transfer to the same account")
    return [(account_id, -amount), (to_account_id, amount)]


@dataclass(frozen=True)
class NetWorth:
    assets: float
    liabilities: float
    net_worth: float
    level: int


def net_worth_level(net_worth: float) -> int:
    if net_worth <= 0:
        return 1
    return min(100, max(1, math.floor(math.log10(net_worth + 1) * 10)))


def calculate_net_worth(accounts: Iterable[Tuple[str, float]]) -> NetWorth:
    """Sum (account_type, balance) pairs into assets and liabilities."""
    assets = 0.0
    liabilities = 0.0
    for account_type, balance in accounts:
        if AccountType(account_type) in LIABILITY_ACCOUNT_TYPES:
            liabilities += abs(balance)
        elif balance > 0:
            assets += balance

    net = round(assets - liabilities, 2)
    return NetWorth(
        assets=round(assets, 2),
        liabilities=round(liabilities, 2),
        net_worth=net,
        level=net_worth_level(net),
    )


def compound_interest(
    principal: float,
    monthly_contribution: float,
    annual_rate: float,
    compounds_per_year: int,
    months: int,
) -> float:
    """Future value of principal plus monthly contributions, rounded to cents."""
    if annual_rate == 0:
        return round(principal + monthly_contribution * months, 2)

    rate = annual_rate / compounds_per_year
    growth = math.pow(1 + rate, months)
    value = principal * growth + monthly_contribution * ((growth - 1) / rate)
    return round(value, 2)


def time_to_goal(
    current: float, target: float, monthly_contribution: float, annual_rate: float
) -> Optional[int]:
    """Months until target is reached, or None if it never will be."""
    if monthly_contribution <= 0 and annual_rate <= 0:
        return None
    if current >= target:
        return 0
    if annual_rate == 0:
        return math.ceil((target - current) / monthly_contribution)

    low, high = 0, TIME_TO_GOAL_MAX_MONTHS
    while low < high:
        mid = (low + high) // 2
        if compound_interest(current, monthly_contribution, annual_rate, 12, mid) >= target:
            high = mid
        else:
            low = mid + 1
    return low


def savings_goal_xp(target_amount: float) -> int:
    """XP for achieving a savings goal, tiered by its size."""
    if target_amount >= 10000:
        return 150
    if target_amount >= 5000:
        return 100
    if target_amount >= 1000:
        return 75
    if target_amount >= 500:
        return 50
    return 25


def goal_progress_percent(current: float, target: float) -> float:
    if target <= 0:
        return 100.0
    return round(min(100.0, max(0.0, current / target * 100)), 1)


def months_between(start_year: int, start_month: int, end_year: int, end_month: int) -> int:
    return (end_year - start_year) * 12 + (end_month - start_month)
