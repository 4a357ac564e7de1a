"""Account REST API — balance and ledger history for the player, deposit for the
payment service. JWT required on every route."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_common.database import get_db_session
from src.sc_common.response import ApiResponse, success_response
from src.sc_gateway.auth.dependencies import get_current_user_id, require_deposit_service
from src.sc_wallet.application.schemas import DepositRequest
from src.sc_wallet.application.service import AccountApplicationService

router = APIRouter(prefix="/account", tags=["account"])

_service = AccountApplicationService()


@router.get("/balance")
async def get_balance(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(db, user_id)
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))


@router.post("/deposit")
async def deposit(
    body: DepositRequest,
    service_id: Annotated[str, Depends(require_deposit_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.deposit(db, body.user_id, body.amount_cents, source=service_id)
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))


@router.get("/ledger")
async def list_ledger(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    entry_type: str | None = Query(None, description="Filter by LedgerEntryType"),
) -> ApiResponse:
    data = await _service.list_ledger(db, user_id, cursor, limit, entry_type)
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))
