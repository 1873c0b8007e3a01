from fastapi import APIRouter, Body, Depends

from subscriptions.dependencies import FilterParams, get_plan_service
from subscriptions.schemas import CountResponse, MutationResult, Page, PlanEntity
from subscriptions.services.plan_service import SubscriptionPlanService

router = APIRouter(prefix="/api/v1/plans", tags=["plans"])


@router.get("", response_model=Page[PlanEntity])
async def list_plans(
    params: FilterParams = Depends(),
    service: SubscriptionPlanService = Depends(get_plan_service),
):
    return await service.find_all(params.as_filter() or None)


@router.get("/count", response_model=CountResponse)
async def count_plans(
    params: FilterParams = Depends(),
    service: SubscriptionPlanService = Depends(get_plan_service),
):
    return CountResponse(count=await service.count(params.as_filter()))


@router.get("/{plan_id}", response_model=PlanEntity)
async def get_plan(plan_id: str, service: SubscriptionPlanService = Depends(get_plan_service)):
    return await service.find_one({"id": plan_id})


@router.post("", status_code=201, response_model=PlanEntity)
async def create_plan(
    payload: dict = Body(...),
    service: SubscriptionPlanService = Depends(get_plan_service),
):
    return await service.create(payload)


@router.patch("/{plan_id}", response_model=MutationResult[PlanEntity])
async def update_plan(
    plan_id: str,
    payload: dict = Body(...),
    service: SubscriptionPlanService = Depends(get_plan_service),
):
    return await service.update(payload, {"id": plan_id})


@router.delete("/{plan_id}", response_model=MutationResult[PlanEntity])
async def delete_plan(plan_id: str, service: SubscriptionPlanService = Depends(get_plan_service)):
    return await service.delete({"id": plan_id})
