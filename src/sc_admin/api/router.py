# src/sc_admin/api/router.py
"""Admin REST API — reconciliation, ledger audit, catalog report."""
from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.sc_admin.application.service import ReconciliationService
from src.sc_common.database import get_db_session
from src.sc_common.enums import OrphanPolicy
from src.sc_common.errors import AdminRequiredError
from src.sc_common.response import ApiResponse, success_response
from src.sc_gateway.auth.dependencies import get_current_user_id

router = APIRouter(prefix="/admin", tags=["admin"])
_service = ReconciliationService()


async def require_admin(user_id: str = Depends(get_current_user_id)) -> str:
    if user_id not in settings.ADMIN_USER_IDS:
        raise AdminRequiredError()
    return user_id


class ReconcileRequest(BaseModel):
    policy: OrphanPolicy | None = None
    older_than_seconds: int | None = Field(None, ge=0)
    limit: int = Field(100, ge=1, le=1000)


@router.post("/reconcile")
async def reconcile(
    body: ReconcileRequest,
    admin_id: Annotated[str, Depends(require_admin)],
) -> ApiResponse:
    report = await _service.reconcile_stale_plays(
        body.policy, body.older_than_seconds, body.limit
    )
    return success_response(asdict(report))


@router.get("/invariants")
async def verify_invariants(
    admin_id: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(await _service.verify_all_invariants(db))


@router.get("/catalog")
async def catalog_report(
    admin_id: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(await _service.catalog_report(db))
