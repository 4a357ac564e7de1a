"""Play REST API — purchase, reveal, complete and history. JWT required."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_common.database import get_db_session
from src.sc_common.response import ApiResponse, success_response
from src.sc_gateway.auth.dependencies import get_current_user_id
from src.sc_play.application.schemas import CompleteRequest, PurchaseRequest, RevealRequest
from src.sc_play.application.service import PlayApplicationService

router = APIRouter(prefix="/plays", tags=["plays"])

_service = PlayApplicationService()


@router.post("")
async def purchase(
    body: PurchaseRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.purchase(
        db, user_id, body.category_id, body.stake_cents, body.play_id
    )
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))


@router.get("")
async def list_plays(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _service.list_plays(db, user_id, cursor, limit)
    return success_response(
        data.model_dump(mode="json"), getattr(request.state, "request_id", None)
    )


@router.get("/{play_id}")
async def get_play(
    play_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_play(db, user_id, play_id)
    return success_response(
        data.model_dump(mode="json"), getattr(request.state, "request_id", None)
    )


@router.post("/{play_id}/reveal")
async def reveal(
    play_id: str,
    body: RevealRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.reveal(db, user_id, play_id, body.uncovered_bps, body.reveal_all)
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))


@router.post("/{play_id}/complete")
async def complete(
    play_id: str,
    body: CompleteRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.complete(
        db, user_id, play_id, body.claimed_is_win, body.claimed_tier_id
    )
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))
