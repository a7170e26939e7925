from fastapi import APIRouter, Depends

from tournament_hub.api.deps import get_category_service
from tournament_hub.core.security import get_current_user, require_staff
from tournament_hub.schemas.category import CategoryCreate, CategoryOut, CategoryUpdate
from tournament_hub.schemas.common import ApiResponse, ok
from tournament_hub.services.category_service import CategoryService

router = APIRouter(prefix="/api/v1/categories", tags=["categories"])


@router.get("", response_model=ApiResponse[list[CategoryOut]])
def list_categories(user=Depends(get_current_user), service: CategoryService = Depends(get_category_service)):
    return ok([CategoryOut.model_validate(c) for c in service.list()])


@router.post("", response_model=ApiResponse[CategoryOut], status_code=201)
def create_category(
    data: CategoryCreate,
    user=Depends(require_staff),
    service: CategoryService = Depends(get_category_service),
):
    return ok(CategoryOut.model_validate(service.create(data)), "Category created")


@router.get("/{category_id}", response_model=ApiResponse[CategoryOut])
def get_category(category_id: int, user=Depends(get_current_user), service: CategoryService = Depends(get_category_service)):
    return ok(CategoryOut.model_validate(service.get(category_id)))


@router.patch("/{category_id}", response_model=ApiResponse[CategoryOut])
def update_category(
    category_id: int,
    data: CategoryUpdate,
    user=Depends(require_staff),
    service: CategoryService = Depends(get_category_service),
):
    return ok(CategoryOut.model_validate(service.update(category_id, data)), "Category updated")


@router.delete("/{category_id}", response_model=ApiResponse[None])
def delete_category(category_id: int, user=Depends(require_staff), service: CategoryService = Depends(get_category_service)):
    service.delete(category_id)
    return ok(None, "Category deleted")
