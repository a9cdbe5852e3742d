from fastapi import APIRouter, Depends

from pennywise.api.dependencies import get_current_user, get_db
from pennywise.api.schemas import PreferencesOut, PreferencesUpdate, UserOut
from pennywise.database.base import Database
from pennywise.domain.user import UserService

router = APIRouter(tags=["users"])


@router.get("/me", response_model=UserOut)
def get_me(user_id: str = Depends(get_current_user), db: Database = Depends(get_db)):
    return UserOut.model_validate(UserService(db).ensure_user(user_id))


@router.patch("/me/preferences", response_model=PreferencesOut)
def update_preferences(
    payload: PreferencesUpdate,
    user_id: str = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    changes = payload.model_dump(exclude_none=True)
    return PreferencesOut.model_validate(UserService(db).update_preferences(user_id, **changes))
