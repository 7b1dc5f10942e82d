# src/dd_admin/api/router.py
"""Admin REST API. Every route is password-gated."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.dd_admin.application.service import AdminService
from src.dd_common.response import ApiResponse, success_response
from src.dd_gateway.auth.dependencies import require_admin, require_admin_query
from src.dependencies import get_admin_service

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/start-round", dependencies=[Depends(require_admin)])
async def start_round(
    request: Request,
    service: Annotated[AdminService, Depends(get_admin_service)],
) -> ApiResponse:
    result = await service.start_round()
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/end-round", dependencies=[Depends(require_admin)])
async def end_round(
    request: Request,
    service: Annotated[AdminService, Depends(get_admin_service)],
) -> ApiResponse:
    result = await service.end_round()
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/history", dependencies=[Depends(require_admin_query)])
async def get_history(
    request: Request,
    service: Annotated[AdminService, Depends(get_admin_service)],
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    result = await service.get_history(limit)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/payout-status", dependencies=[Depends(require_admin)])
async def payout_status(
    request: Request,
    service: Annotated[AdminService, Depends(get_admin_service)],
) -> ApiResponse:
    result = await service.get_payout_status()
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
