"""Trading API endpoints - plan trades, deposits, withdrawals and activity."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from invest_api.auth import get_current_user
from invest_api.database import get_session
from invest_api.models import NotificationType, TradePlan, TradeStatus, User
from invest_api.schemas.common import MessageResponse, NotificationResponse, Pagination
from invest_api.schemas.trading import (
    ActivitiesData,
    ActivitiesResponse,
    DepositCreate,
    StatsData,
    StatsResponse,
    TradeCreate,
    TradeCreatedResponse,
    TradeData,
    TradesData,
    TradesResponse,
    TradeStatsResponse,
    TradeSummary,
    TransactionCreatedResponse,
    TransactionData,
    TransactionStatsResponse,
    TransactionSummary,
    WithdrawalCreate,
)
from invest_api.services import ledger as ledger_service
from invest_api.services import notifications as notification_service
from invest_api.services.ledger import ConcurrentUpdateError

router = APIRouter()


def _conflict(e: ConcurrentUpdateError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


# ============================================================================
# Ledger endpoints
# ============================================================================


@router.post(
    "/inittrade",
    response_model=TradeCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start a plan trade",
)
async def initiate_trade(
    data: TradeCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> TradeCreatedResponse:
    """Debit the plan amount from the balance and record a pending trade.

    - **type**: Starter, Pro or Elite
    - **amount**: Taken from the balance; must not exceed it
    - **maturityAmount**, **maturityDate**, **profit**: Stored as supplied
    """
    try:
        trade = await ledger_service.initiate_trade(session, user.id, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ConcurrentUpdateError as e:
        raise _conflict(e)

    if trade is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return TradeCreatedResponse(
        message="Trade initiated successfully",
        data=TradeData(trade=TradeSummary.model_validate(trade)),
    )


@router.post(
    "/deposit",
    response_model=TransactionCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a deposit",
)
async def create_deposit(
    data: DepositCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> TransactionCreatedResponse:
    """Log a pending deposit. The balance is credited by an admin later."""
    deposit = await ledger_service.create_deposit(session, user, data)
    return TransactionCreatedResponse(
        message="Deposit request created successfully",
        data=TransactionData(transaction=TransactionSummary.model_validate(deposit)),
    )


@router.post(
    "/withdraw",
    response_model=TransactionCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a withdrawal",
)
async def create_withdrawal(
    data: WithdrawalCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> TransactionCreatedResponse:
    """Debit ``usdAmount`` from the balance or profit and log a pending withdrawal."""
    try:
        withdrawal = await ledger_service.create_withdrawal(session, user, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ConcurrentUpdateError as e:
        raise _conflict(e)

    return TransactionCreatedResponse(
        message="Withdrawal request created successfully",
        data=TransactionData(transaction=TransactionSummary.model_validate(withdrawal)),
    )


# ============================================================================
# Queries
# ============================================================================


@router.get("/trades", response_model=TradesResponse, summary="List my trades")
async def list_trades(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status_filter: TradeStatus | None = Query(default=None, alias="status"),
    plan: TradePlan | None = Query(default=None, alias="type"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> TradesResponse:
    """Get a page of trades, newest first, with overall trade statistics."""
    trades, total = await ledger_service.list_trades(
        session, user.id, page=page, limit=limit, status=status_filter, plan=plan
    )
    stats = await ledger_service.get_trade_stats(session, user.id)

    return TradesResponse(
        message="Trades retrieved successfully",
        data=TradesData(
            trades=[TradeSummary.model_validate(t) for t in trades],
            pagination=Pagination.build(page, limit, total),
            stats=TradeStatsResponse.model_validate(stats),
        ),
    )


@router.get("/activities", response_model=ActivitiesResponse, summary="Get my activity feed")
async def get_activities(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    type: NotificationType | None = Query(default=None),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ActivitiesResponse:
    """Get a page of notifications plus the most recent trades and transactions."""
    activities = await ledger_service.get_activities(
        session, user.id, page=page, limit=limit, type=type
    )

    return ActivitiesResponse(
        message="Activities retrieved successfully",
        data=ActivitiesData(
            notifications=[
                NotificationResponse.model_validate(n) for n in activities.notifications
            ],
            recent_trades=[TradeSummary.model_validate(t) for t in activities.recent_trades],
            recent_transactions=[
                TransactionSummary.model_validate(t) for t in activities.recent_transactions
            ],
            transaction_stats=TransactionStatsResponse.model_validate(
                activities.transaction_stats
            ),
            pagination=Pagination.build(page, limit, activities.total_notifications),
        ),
    )


@router.post(
    "/notifications/read",
    response_model=MessageResponse,
    summary="Mark all notifications as read",
)
async def mark_notifications_read(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await notification_service.mark_all_read(session, user.id)
    return MessageResponse(message="Notifications marked as read")


@router.get("/stats", response_model=StatsResponse, summary="Get my trading statistics")
async def get_stats(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> StatsResponse:
    trade_stats = await ledger_service.get_trade_stats(session, user.id)
    transaction_stats = await ledger_service.get_transaction_stats(session, user.id)

    return StatsResponse(
        message="Trading statistics retrieved successfully",
        data=StatsData(
            trades=TradeStatsResponse.model_validate(trade_stats),
            transactions=TransactionStatsResponse.model_validate(transaction_stats),
        ),
    )
