"""dd_round REST endpoints.

GET /round                — live + preview round, tallies, activity, betting status
GET /leaderboard          — top wallets by total winnings
GET /prices               — current quotes for the live round's tokens
GET /cron/advance-round   — run the advancement procedure (idempotent; poll it)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.dd_common.response import ApiResponse, success_response
from src.dd_round.application.orchestrator import RoundAdvancementService
from src.dd_round.application.schemas import AdvanceRoundResponse
from src.dd_round.application.service import RoundQueryService
from src.dependencies import get_advancement_service, get_query_service

router = APIRouter(tags=["rounds"])


@router.get("/round")
async def get_round(
    request: Request,
    service: Annotated[RoundQueryService, Depends(get_query_service)],
) -> ApiResponse:
    result = await service.get_current_state()
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/leaderboard")
async def get_leaderboard(
    request: Request,
    service: Annotated[RoundQueryService, Depends(get_query_service)],
    limit: int = Query(10, ge=1, le=100),
) -> ApiResponse:
    result = await service.get_leaderboard(limit)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/prices")
async def get_prices(
    request: Request,
    service: Annotated[RoundQueryService, Depends(get_query_service)],
) -> ApiResponse:
    result = await service.get_prices()
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/cron/advance-round")
async def advance_round(
    request: Request,
    service: Annotated[RoundAdvancementService, Depends(get_advancement_service)],
) -> ApiResponse:
    result = await service.advance()
    body = AdvanceRoundResponse(success=True, actions=result.actions, timestamp=result.timestamp)
    resp = success_response(body.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
