"""Finance API endpoints: accounts, transactions, CSV import, cashflow and savings goals."""

from collections import defaultdict
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_user
from ..core.enums import AchievementRequirement, ActivityType, FactionId, TransactionType
from ..core.progression import ProgressionEngine
from ..db.database import get_db
from ..db.models import Account, FinanceTransaction, SavingsGoal, User
from ..domain.finance import (
    DEFAULT_PROJECTION_MONTHS,
    SAVINGS_ACCOUNT_TYPES,
    balance_changes,
    calculate_net_worth,
    compound_interest,
    goal_progress_percent,
    months_between,
    savings_goal_xp,
    time_to_goal,
)
from ..importers.finance import parse_bank_csv
from ..repositories.dependencies import get_progression_engine
from ..utils.logging_config import get_logger
from .middleware import bad_request
from .ownership import get_owned
from .schemas import (
    AccountCreate,
    AccountResponse,
    AccountUpdate,
    BalanceUpdateRequest,
    CashflowResponse,
    CategoryTotalResponse,
    CompoundInterestResponse,
    CsvImportRequest,
    CsvImportResponse,
    GoalAmountRequest,
    GoalAmountResponse,
    NetWorthResponse,
    ProblemDetails,
    SavingsGoalCreate,
    SavingsGoalResponse,
    SavingsGoalUpdate,
    TransactionCreate,
    TransactionResponse,
)

router = APIRouter(prefix="/v1/finance", tags=["finance"])
logger = get_logger("api")

FINANZEN = FactionId.FINANZEN.value


def _owned_responses(entity: str):
    return {
        403: {"model": ProblemDetails, "description": f"{entity} belongs to another user"},
        404: {"model": ProblemDetails, "description": f"{entity} not found"},
    }


ACCOUNT_RESPONSES = _owned_responses("Account")
TRANSACTION_RESPONSES = _owned_responses("Transaction")
GOAL_RESPONSES = _owned_responses("Savings goal")


def _apply_balance_changes(db: Session, user: User, transaction: FinanceTransaction, sign: int) -> None:
    """Add (sign=1) or reverse (sign=-1) a transaction's effect on balances.

    Reversing a transfer whose target account was deleted only restores the
    source account.
    """
    try:
        changes = balance_changes(
            transaction.transaction_type,
            transaction.amount,
            transaction.account_id,
            transaction.to_account_id,
            target_removed=sign < 0,
        )
    except ValueError as e:
        raise bad_request(str(e))

    for account_id, delta in changes:
        account = db.get(Account, account_id)
        if account is None or account.user_id != user.id:
            # target account was deleted
            continue
        account.current_balance = round(account.current_balance + sign * delta, 2)


def _month_bounds(year: int, month: int):
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


def _cashflow(db: Session, user: User, year: int, month: int) -> CashflowResponse:
    start, end = _month_bounds(year, month)
    transactions = (
        db.query(FinanceTransaction)
        .filter(
            FinanceTransaction.user_id == user.id,
            FinanceTransaction.occurred_at >= start,
            FinanceTransaction.occurred_at < end,
        )
        .all()
    )
    savings_accounts = {
        account_id
        for (account_id,) in db.query(Account.id).filter(
            Account.user_id == user.id,
            Account.account_type.in_([t.value for t in SAVINGS_ACCOUNT_TYPES]),
        )
    }

    income = expenses = savings = 0.0
    for t in transactions:
        if t.transaction_type == TransactionType.INCOME.value:
            income += t.amount
        elif t.transaction_type == TransactionType.EXPENSE.value:
            expenses += t.amount
        elif t.to_account_id in savings_accounts:
            savings += t.amount

    return CashflowResponse(
        year=year,
        month=month,
        income=round(income, 2),
        expenses=round(expenses, 2),
        savings=round(savings, 2),
        net=round(income - expenses, 2),
    )


def goal_response(goal: SavingsGoal, today: Optional[date] = None) -> SavingsGoalResponse:
    """Savings goal with progress and a compound interest projection."""
    today = today or datetime.now(timezone.utc).date()
    if goal.target_date:
        months = max(0, months_between(today.year, today.month, goal.target_date.year, goal.target_date.month))
        days_remaining = (goal.target_date - today).days
    else:
        months = DEFAULT_PROJECTION_MONTHS
        days_remaining = None

    return SavingsGoalResponse(
        id=goal.id,
        name=goal.name,
        description=goal.description,
        icon=goal.icon,
        color=goal.color,
        target_amount=goal.target_amount,
        current_amount=goal.current_amount,
        monthly_contribution=goal.monthly_contribution,
        interest_rate=goal.interest_rate,
        compounds_per_year=goal.compounds_per_year,
        start_date=goal.start_date,
        target_date=goal.target_date,
        is_achieved=goal.is_achieved,
        achieved_at=goal.achieved_at,
        progress_percent=goal_progress_percent(goal.current_amount, goal.target_amount),
        projected_amount=compound_interest(
            goal.current_amount,
            goal.monthly_contribution,
            goal.interest_rate,
            goal.compounds_per_year,
            months,
        ),
        days_remaining=days_remaining,
        months_to_goal=time_to_goal(
            goal.current_amount, goal.target_amount, goal.monthly_contribution, goal.interest_rate
        ),
        created_at=goal.created_at,
    )


async def _sync_goal_achievement(
    db: Session, goal: SavingsGoal, user: User, engine: ProgressionEngine
) -> Tuple[int, List[str]]:
    """Recompute is_achieved from the amounts.

    Dropping below the target clears the achievement. The XP reward is paid
    only the first time the target is reached. Returns the XP paid now and
    the keys of achievements that payout unlocked.
    """
    reached = goal.current_amount >= goal.target_amount
    if not reached:
        goal.is_achieved = False
        goal.achieved_at = None
        return 0, []
    if goal.is_achieved:
        return 0, []

    goal.is_achieved = True
    goal.achieved_at = datetime.now(timezone.utc)
    if goal.reward_paid:
        return 0, []

    xp = savings_goal_xp(goal.target_amount)
    goal.reward_paid = True
    await engine.update_faction_stats(user.id, FINANZEN, xp)
    await engine.log_activity(
        user.id,
        ActivityType.GOAL_ACHIEVED,
        title=f"{goal.icon} Sparziel erreicht: {goal.name}",
        faction_id=FINANZEN,
        xp_amount=xp,
        related_entity_type="savings_goal",
        related_entity_id=goal.id,
        details={"target_amount": goal.target_amount},
    )
    db.flush()
    paid_goals = (
        db.query(SavingsGoal)
        .filter(SavingsGoal.user_id == user.id, SavingsGoal.reward_paid.is_(True))
        .count()
    )
    unlocked = await engine.check_achievements(
        user.id, AchievementRequirement.SAVINGS_GOAL, paid_goals
    )
    return xp, [a.key for a in unlocked]


# Accounts


@router.post(
    "/accounts",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ProblemDetails, "description": "Validation error"}},
)
def create_account(
    data: AccountCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AccountResponse:
    account = Account(user_id=current_user.id, is_active=True, **data.model_dump())
    db.add(account)
    db.commit()
    db.refresh(account)

    logger.info(f"Created {account.account_type} account {account.id} for user {current_user.id}")
    return AccountResponse.model_validate(account)


@router.get("/accounts", response_model=List[AccountResponse])
def list_accounts(
    include_inactive: bool = Query(False),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[AccountResponse]:
    query = db.query(Account).filter(Account.user_id == current_user.id)
    if not include_inactive:
        query = query.filter(Account.is_active.is_(True))
    return [AccountResponse.model_validate(a) for a in query.order_by(Account.name).all()]


@router.get("/accounts/{account_id}", response_model=AccountResponse, responses=ACCOUNT_RESPONSES)
def get_account(
    account_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AccountResponse:
    return AccountResponse.model_validate(get_owned(db, Account, account_id, current_user, "Account"))


@router.patch("/accounts/{account_id}", response_model=AccountResponse, responses=ACCOUNT_RESPONSES)
def update_account(
    account_id: UUID,
    data: AccountUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AccountResponse:
    account = get_owned(db, Account, account_id, current_user, "Account")
    for key, value in data.model_dump(exclude_unset=True).items():
        if value is None and key in ("name", "is_active", "is_excluded_from_net_worth"):
            continue
        setattr(account, key, value)
    db.commit()
    db.refresh(account)

    logger.info(f"Updated account {account.id}")
    return AccountResponse.model_validate(account)


@router.put("/accounts/{account_id}/balance", response_model=AccountResponse, responses=ACCOUNT_RESPONSES)
def update_balance(
    account_id: UUID,
    data: BalanceUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AccountResponse:
    account = get_owned(db, Account, account_id, current_user, "Account")
    account.current_balance = round(data.current_balance, 2)
    db.commit()
    db.refresh(account)

    logger.info(f"Set balance of account {account.id} to {account.current_balance}")
    return AccountResponse.model_validate(account)


@router.delete("/accounts/{account_id}", status_code=status.HTTP_204_NO_CONTENT, responses=ACCOUNT_RESPONSES)
def delete_account(
    account_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    account = get_owned(db, Account, account_id, current_user, "Account")
    db.query(FinanceTransaction).filter(FinanceTransaction.account_id == account.id).delete(
        synchronize_session=False
    )
    db.delete(account)
    db.commit()
    logger.info(f"Deleted account {account_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/accounts/{account_id}/import",
    response_model=CsvImportResponse,
    responses=ACCOUNT_RESPONSES,
)
async def import_bank_csv(
    account_id: UUID,
    data: CsvImportRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> CsvImportResponse:
    """
    Import a semicolon separated bank statement into an account.

    Rows matching an existing transaction on date and absolute amount are
    skipped. Balances are left alone since the statement is history.
    """
    account = get_owned(db, Account, account_id, current_user, "Account")
    rows = parse_bank_csv(data.content)

    seen = {
        (occurred_at, round(amount, 2))
        for occurred_at, amount in db.query(
            FinanceTransaction.occurred_at, FinanceTransaction.amount
        ).filter(FinanceTransaction.account_id == account.id)
    }

    imported = skipped = 0
    for row in rows:
        key = (row.occurred_at, round(abs(row.amount), 2))
        if key in seen:
            skipped += 1
            continue
        db.add(
            FinanceTransaction(
                user_id=current_user.id,
                account_id=account.id,
                transaction_type=(
                    TransactionType.INCOME.value if row.amount >= 0 else TransactionType.EXPENSE.value
                ),
                category=row.category,
                amount=abs(row.amount),
                description=row.description or None,
                occurred_at=row.occurred_at,
                tags=[],
            )
        )
        seen.add(key)
        imported += 1

    if imported:
        await engine.log_activity(
            current_user.id,
            ActivityType.TRANSACTION_IMPORTED,
            title=f"💳 {imported} Transaktionen importiert",
            faction_id=FINANZEN,
            related_entity_type="account",
            related_entity_id=account.id,
            details={"imported": imported, "skipped": skipped},
        )
    await engine.repos.commit()

    logger.info(f"Imported {imported} transactions into account {account.id} ({skipped} duplicates)")
    return CsvImportResponse(imported=imported, skipped=skipped)


# Transactions


@router.post(
    "/transactions",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ProblemDetails, "description": "Invalid transfer"}, **ACCOUNT_RESPONSES},
)
def create_transaction(
    data: TransactionCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TransactionResponse:
    get_owned(db, Account, data.account_id, current_user, "Account")
    if data.to_account_id is not None:
        get_owned(db, Account, data.to_account_id, current_user, "Account")

    transaction = FinanceTransaction(user_id=current_user.id, **data.model_dump())
    if transaction.transaction_type != TransactionType.TRANSFER.value:
        transaction.to_account_id = None
    _apply_balance_changes(db, current_user, transaction, 1)
    db.add(transaction)
    db.commit()
    db.refresh(transaction)

    logger.info(f"Created {transaction.transaction_type} transaction {transaction.id}")
    return TransactionResponse.model_validate(transaction)


@router.get("/transactions", response_model=List[TransactionResponse])
def list_transactions(
    account_id: Optional[UUID] = Query(None),
    transaction_type: Optional[TransactionType] = Query(None, alias="type"),
    category: Optional[str] = Query(None, max_length=50),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[TransactionResponse]:
    query = db.query(FinanceTransaction).filter(FinanceTransaction.user_id == current_user.id)
    if account_id:
        query = query.filter(FinanceTransaction.account_id == account_id)
    if transaction_type:
        query = query.filter(FinanceTransaction.transaction_type == transaction_type.value)
    if category:
        query = query.filter(FinanceTransaction.category == category)
    if start:
        query = query.filter(FinanceTransaction.occurred_at >= start)
    if end:
        query = query.filter(FinanceTransaction.occurred_at <= end)

    transactions = (
        query.order_by(FinanceTransaction.occurred_at.desc(), FinanceTransaction.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return [TransactionResponse.model_validate(t) for t in transactions]


@router.get("/transactions/by-category", response_model=List[CategoryTotalResponse])
def get_totals_by_category(
    transaction_type: TransactionType = Query(TransactionType.EXPENSE, alias="type"),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[CategoryTotalResponse]:
    """Totals per category, largest first."""
    query = db.query(FinanceTransaction).filter(
        FinanceTransaction.user_id == current_user.id,
        FinanceTransaction.transaction_type == transaction_type.value,
    )
    if start:
        query = query.filter(FinanceTransaction.occurred_at >= start)
    if end:
        query = query.filter(FinanceTransaction.occurred_at <= end)

    totals = defaultdict(float)
    counts = defaultdict(int)
    for t in query.all():
        key = t.category or "Sonstiges"
        totals[key] += t.amount
        counts[key] += 1

    rows = [
        CategoryTotalResponse(category=key, total=round(total, 2), count=counts[key])
        for key, total in totals.items()
    ]
    return sorted(rows, key=lambda r: r.total, reverse=True)


@router.delete(
    "/transactions/{transaction_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=TRANSACTION_RESPONSES,
)
def delete_transaction(
    transaction_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    transaction = get_owned(db, FinanceTransaction, transaction_id, current_user, "Transaction")
    _apply_balance_changes(db, current_user, transaction, -1)
    db.delete(transaction)
    db.commit()
    logger.info(f"Deleted transaction {transaction_id} and reversed its balance effect")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Reports


@router.get("/cashflow", response_model=CashflowResponse)
def get_cashflow(
    year: Optional[int] = Query(None, ge=1900, le=2200),
    month: Optional[int] = Query(None, ge=1, le=12),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CashflowResponse:
    today = datetime.now(timezone.utc).date()
    return _cashflow(db, current_user, year or today.year, month or today.month)


@router.get("/cashflow/history", response_model=List[CashflowResponse])
def get_cashflow_history(
    months: int = Query(12, ge=1, le=120),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[CashflowResponse]:
    """Monthly cashflow for the last N months, oldest first."""
    today = datetime.now(timezone.utc).date()
    history = []
    for back in range(months - 1, -1, -1):
        index = today.year * 12 + today.month - 1 - back
        history.append(_cashflow(db, current_user, index // 12, index % 12 + 1))
    return history


@router.get("/net-worth", response_model=NetWorthResponse)
def get_net_worth(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> NetWorthResponse:
    accounts = (
        db.query(Account)
        .filter(
            Account.user_id == current_user.id,
            Account.is_active.is_(True),
            Account.is_excluded_from_net_worth.is_(False),
        )
        .all()
    )
    result = calculate_net_worth((a.account_type, a.current_balance) for a in accounts)
    return NetWorthResponse(
        assets=result.assets,
        liabilities=result.liabilities,
        net_worth=result.net_worth,
        net_worth_level=result.level,
    )


@router.get("/calculator/compound-interest", response_model=CompoundInterestResponse)
def calculate_compound_interest(
    principal: float = Query(0.0, ge=0),
    monthly_contribution: float = Query(0.0, ge=0),
    annual_rate: float = Query(0.0, ge=0, le=1),
    compounds_per_year: int = Query(12, ge=1, le=365),
    months: int = Query(DEFAULT_PROJECTION_MONTHS, ge=0, le=1200),
    target: Optional[float] = Query(None, gt=0),
    current_user: User = Depends(get_current_user),
) -> CompoundInterestResponse:
    return CompoundInterestResponse(
        projected_amount=compound_interest(
            principal, monthly_contribution, annual_rate, compounds_per_year, months
        ),
        months_to_goal=(
            time_to_goal(principal, target, monthly_contribution, annual_rate) if target else None
        ),
    )


# Savings goals


@router.post(
    "/savings-goals",
    response_model=SavingsGoalResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ProblemDetails, "description": "Validation error"}},
)
def create_savings_goal(
    data: SavingsGoalCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SavingsGoalResponse:
    values = data.model_dump()
    values["start_date"] = data.start_date or datetime.now(timezone.utc).date()
    goal = SavingsGoal(user_id=current_user.id, is_achieved=False, **values)
    db.add(goal)
    db.commit()
    db.refresh(goal)

    logger.info(f"Created savings goal {goal.id} for user {current_user.id}")
    return goal_response(goal)


@router.get("/savings-goals", response_model=List[SavingsGoalResponse])
def list_savings_goals(
    include_achieved: bool = Query(True),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[SavingsGoalResponse]:
    query = db.query(SavingsGoal).filter(SavingsGoal.user_id == current_user.id)
    if not include_achieved:
        query = query.filter(SavingsGoal.is_achieved.is_(False))
    today = datetime.now(timezone.utc).date()
    return [goal_response(g, today) for g in query.order_by(SavingsGoal.created_at).all()]


@router.get("/savings-goals/{goal_id}", response_model=SavingsGoalResponse, responses=GOAL_RESPONSES)
def get_savings_goal(
    goal_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SavingsGoalResponse:
    return goal_response(get_owned(db, SavingsGoal, goal_id, current_user, "Savings goal"))


@router.patch("/savings-goals/{goal_id}", response_model=SavingsGoalResponse, responses=GOAL_RESPONSES)
async def update_savings_goal(
    goal_id: UUID,
    data: SavingsGoalUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> SavingsGoalResponse:
    goal = get_owned(db, SavingsGoal, goal_id, current_user, "Savings goal")
    for key, value in data.model_dump(exclude_unset=True).items():
        if value is None and key != "target_date" and key != "description":
            continue
        setattr(goal, key, value)
    # a changed target can reach or lose the goal
    await _sync_goal_achievement(db, goal, current_user, engine)
    await engine.repos.commit()
    db.refresh(goal)

    logger.info(f"Updated savings goal {goal.id}")
    return goal_response(goal)


@router.put(
    "/savings-goals/{goal_id}/amount",
    response_model=GoalAmountResponse,
    responses=GOAL_RESPONSES,
)
async def set_goal_amount(
    goal_id: UUID,
    data: GoalAmountRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> GoalAmountResponse:
    """
    Set a goal's saved amount.

    Reaching the target marks the goal as achieved, dropping below it again
    clears that. Finanzen XP tiered by the target size is paid only the
    first time the goal is achieved.
    """
    goal = get_owned(db, SavingsGoal, goal_id, current_user, "Savings goal")
    was_achieved = goal.is_achieved
    goal.current_amount = round(data.current_amount, 2)

    xp, unlocked = await _sync_goal_achievement(db, goal, current_user, engine)
    achieved_now = goal.is_achieved and not was_achieved
    await engine.repos.commit()
    db.refresh(goal)

    if achieved_now:
        logger.info(f"Savings goal {goal.id} achieved (+{xp} XP)")
    return GoalAmountResponse(
        goal=goal_response(goal),
        achieved_now=achieved_now,
        xp_awarded=xp,
        achievements_unlocked=unlocked,
    )


@router.delete(
    "/savings-goals/{goal_id}", status_code=status.HTTP_204_NO_CONTENT, responses=GOAL_RESPONSES
)
def delete_savings_goal(
    goal_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    goal = get_owned(db, SavingsGoal, goal_id, current_user, "Savings goal")
    db.delete(goal)
    db.commit()
    logger.info(f"Deleted savings goal {goal_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
