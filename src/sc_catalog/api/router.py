"""sc_catalog REST API — public, read-only."""

from fastapi import APIRouter, Request

from config.settings import settings
from src.sc_catalog.application.schemas import CatalogResponse, CategoryItem
from src.sc_catalog.domain.catalog import CATALOG
from src.sc_common.response import ApiResponse, success_response

router = APIRouter(prefix="/catalog", tags=["catalog"])


def build_catalog() -> CatalogResponse:
    return CatalogResponse(
        categories=[
            CategoryItem.from_table(table, settings.rtp_for(category_id))
            for category_id, table in sorted(CATALOG.items())
        ]
    )


@router.get("/categories")
async def list_categories(request: Request) -> ApiResponse:
    data = build_catalog()
    return success_response(
        data.model_dump(), getattr(request.state, "request_id", None)
    )
