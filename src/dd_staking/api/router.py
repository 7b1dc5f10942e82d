# src/dd_staking/api/router.py
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.dd_common.response import ApiResponse, success_response
from src.dd_staking.application.schemas import PlaceStakeRequest
from src.dd_staking.application.service import StakeAdmissionService
from src.dependencies import get_stake_service

router = APIRouter(tags=["staking"])


@router.post("/bet")
async def place_stake(
    req: PlaceStakeRequest,
    request: Request,
    service: Annotated[StakeAdmissionService, Depends(get_stake_service)],
) -> ApiResponse:
    result = await service.place_stake(req)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
