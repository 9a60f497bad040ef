from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pharmapos.core.session_auth import Principal
from pharmapos.dependencies import get_db, require_admin
from pharmapos.schemas.user import UserCreate, UserRead, UserRoleUpdate
from pharmapos.services import user_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=list[UserRead])
def list_users(db: Session = Depends(get_db), _admin: Principal = Depends(require_admin)):
    return user_service.list_users(db)


@router.post("", response_model=UserRead, status_code=201)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    _admin: Principal = Depends(require_admin),
):
    return user_service.create_user(
        db,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
    )


@router.put("", response_model=UserRead)
def update_user_role(
    payload: UserRoleUpdate,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    return user_service.set_role(db, admin, payload.user_id, payload.role)


__all__ = ["router"]
