from typing import Optional

from fastapi import APIRouter, Depends, Query

from pennywise.api.dependencies import get_current_user, get_db
from pennywise.api.schemas import CategoryCreate, CategoryOut
from pennywise.database.base import Database
from pennywise.domain.category import CategoryService
from pennywise.domain.entities import CategoryType

router = APIRouter(tags=["categories"])


@router.get("", response_model=list[CategoryOut])
def list_categories(
    category_type: Optional[CategoryType] = Query(None),
    user_id: str = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    categories = CategoryService(db).list_categories(user_id, category_type=category_type)
    return [CategoryOut.model_validate(c) for c in categories]


@router.post("", response_model=CategoryOut, status_code=201)
def create_category(
    payload: CategoryCreate,
    user_id: str = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    category = CategoryService(db).create_category(
        user_id,
        name=payload.name,
        category_type=payload.category_type,
        parent_id=payload.parent_id,
    )
    return CategoryOut.model_validate(category)


@router.post("/defaults", status_code=201)
def init_default_categories(
    user_id: str = Depends(get_current_user), db: Database = Depends(get_db)
) -> dict:
    return {"created": CategoryService(db).init_default_categories(user_id)}
