from fastapi import APIRouter, Body, Depends

from subscriptions.dependencies import FilterParams, get_user_service
from subscriptions.schemas import CountResponse, MutationResult, Page, UserResponse
from subscriptions.services.user_service import UserService

router = APIRouter(prefix="/api/v1/users", tags=["users"])


# Service results carry the password hash; every response is narrowed to
# UserResponse before it leaves the process.

@router.get("", response_model=Page[UserResponse])
async def list_users(
    params: FilterParams = Depends(),
    service: UserService = Depends(get_user_service),
):
    page = await service.find_all(params.as_filter() or None)
    return Page[UserResponse].model_validate(page.model_dump())


@router.get("/count", response_model=CountResponse)
async def count_users(
    params: FilterParams = Depends(),
    service: UserService = Depends(get_user_service),
):
    return CountResponse(count=await service.count(params.as_filter()))


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, service: UserService = Depends(get_user_service)):
    user = await service.find_one({"id": user_id})
    return UserResponse.model_validate(user.model_dump())


@router.post("", status_code=201, response_model=UserResponse)
async def create_user(payload: dict = Body(...), service: UserService = Depends(get_user_service)):
    user = await service.create(payload)
    return UserResponse.model_validate(user.model_dump())


@router.patch("/{user_id}", response_model=MutationResult[UserResponse])
async def update_user(
    user_id: str,
    payload: dict = Body(...),
    service: UserService = Depends(get_user_service),
):
    result = await service.update(payload, {"id": user_id})
    return MutationResult[UserResponse].model_validate(result.model_dump())


@router.delete("/{user_id}", response_model=MutationResult[UserResponse])
async def delete_user(user_id: str, service: UserService = Depends(get_user_service)):
    result = await service.delete({"id": user_id})
    return MutationResult[UserResponse].model_validate(result.model_dump())
