"""Currency API endpoints: the gold and gem wallet."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_user
from ..config import get_config
from ..core.enums import CurrencyKind, CurrencyTransactionType
from ..core.progression import ProgressionEngine
from ..db.database import get_db
from ..db.models import CurrencyTransaction, User
from ..repositories.dependencies import get_progression_engine
from ..utils.logging_config import get_logger
from .middleware import bad_request
from .schemas import (
    CurrencyChangeRequest,
    CurrencyChangeResponse,
    CurrencyStatsResponse,
    CurrencyTransactionResponse,
    ProblemDetails,
    WalletResponse,
)

router = APIRouter(prefix="/v1/currency", tags=["currency"])
logger = get_logger("api")


async def _wallet(engine: ProgressionEngine, user: User):
    return await engine.repos.currency.get_or_create_wallet(user.id, get_config().app.starting_gold)


async def _record(
    engine: ProgressionEngine, user: User, data: CurrencyChangeRequest, amount: int, transaction_type: str
) -> CurrencyTransaction:
    return await engine.repos.currency.add_transaction(
        CurrencyTransaction(
            user_id=user.id,
            amount=amount,
            currency=data.currency,
            transaction_type=transaction_type,
            description=data.description,
            source_type=data.source_type,
            source_id=data.source_id,
        )
    )


@router.get("", response_model=WalletResponse)
async def get_wallet(
    current_user: User = Depends(get_current_user),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> WalletResponse:
    wallet = await _wallet(engine, current_user)
    await engine.repos.commit()
    return WalletResponse.model_validate(wallet)


@router.post(
    "/add",
    response_model=CurrencyChangeResponse,
    responses={422: {"model": ProblemDetails, "description": "Validation error"}},
)
async def add_currency(
    data: CurrencyChangeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> CurrencyChangeResponse:
    wallet = await _wallet(engine, current_user)
    if data.currency == CurrencyKind.GEMS.value:
        wallet.gems += data.amount
    else:
        wallet.gold += data.amount
        wallet.total_gold_earned += data.amount

    transaction = await _record(engine, current_user, data, data.amount, data.transaction_type)
    await engine.repos.commit()
    db.refresh(wallet)
    db.refresh(transaction)

    logger.info(f"User {current_user.id} received {data.amount} {data.currency}")
    return CurrencyChangeResponse(
        wallet=WalletResponse.model_validate(wallet),
        transaction=CurrencyTransactionResponse.model_validate(transaction),
    )


@router.post(
    "/spend",
    response_model=CurrencyChangeResponse,
    responses={400: {"model": ProblemDetails, "description": "Insufficient funds"}},
)
async def spend_currency(
    data: CurrencyChangeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> CurrencyChangeResponse:
    """Deduct from the wallet; the transaction is stored with a negative amount."""
    wallet = await _wallet(engine, current_user)
    is_gems = data.currency == CurrencyKind.GEMS.value
    balance = wallet.gems if is_gems else wallet.gold
    if balance < data.amount:
        raise bad_request("Insufficient funds")

    if is_gems:
        wallet.gems -= data.amount
    else:
        wallet.gold -= data.amount
        wallet.total_gold_spent += data.amount

    transaction_type = (
        data.transaction_type
        if "transaction_type" in data.model_fields_set
        else CurrencyTransactionType.PURCHASE.value
    )
    transaction = await _record(engine, current_user, data, -data.amount, transaction_type)
    await engine.repos.commit()
    db.refresh(wallet)
    db.refresh(transaction)

    logger.info(f"User {current_user.id} spent {data.amount} {data.currency}")
    return CurrencyChangeResponse(
        wallet=WalletResponse.model_validate(wallet),
        transaction=CurrencyTransactionResponse.model_validate(transaction),
    )


@router.get("/transactions", response_model=List[CurrencyTransactionResponse])
async def list_transactions(
    limit: int = Query(50, ge=1, le=500),
    transaction_type: Optional[CurrencyTransactionType] = Query(None, alias="type"),
    current_user: User = Depends(get_current_user),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> List[CurrencyTransactionResponse]:
    transactions = await engine.repos.currency.list_transactions(
        current_user.id,
        transaction_type=transaction_type.value if transaction_type else None,
        limit=limit,
    )
    return [CurrencyTransactionResponse.model_validate(t) for t in transactions]


@router.get("/stats", response_model=CurrencyStatsResponse)
async def get_currency_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> CurrencyStatsResponse:
    wallet = await _wallet(engine, current_user)
    await engine.repos.commit()
    count = (
        db.query(func.count(CurrencyTransaction.id))
        .filter(CurrencyTransaction.user_id == current_user.id)
        .scalar()
    )
    return CurrencyStatsResponse(
        gold=wallet.gold,
        gems=wallet.gems,
        total_gold_earned=wallet.total_gold_earned,
        total_gold_spent=wallet.total_gold_spent,
        transaction_count=count or 0,
    )
