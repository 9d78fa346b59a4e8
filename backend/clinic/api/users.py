"""User management endpoints: listing and role assignment."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from ..core.guards import UserPermissions
from ..models.base import get_db
from ..services.permission_service import PermissionService
from ..services.user_repository import UserRepository

router = APIRouter(prefix="/users", tags=["users"])
roles_router = APIRouter(prefix="/roles", tags=["users"])


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    username: str
    first_name: Optional[str]
    last_name: Optional[str]
    role: str
    specialty: Optional[str]
    is_active: bool


class RoleUpdate(BaseModel):
    role: str


class RoleResponse(BaseModel):
    role: str
    name: str
    description: str


@roles_router.get("/", response_model=List[RoleResponse], dependencies=[Depends(UserPermissions.view)])
def list_roles():
    """Roles an administrator can assign."""
    results = []
    for role in PermissionService.get_all_roles():
        config = PermissionService.get_role_config(role)
        results.append(RoleResponse(role=role.value, name=config.name, description=config.description))
    return results


@router.get("/", response_model=List[UserResponse], dependencies=[Depends(UserPermissions.view)])
def list_users(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return UserRepository(db).list_users(skip=skip, limit=limit)


@router.get("/{user_id}", response_model=UserResponse, dependencies=[Depends(UserPermissions.view)])
def get_user(user_id: str, db: Session = Depends(get_db)):
    user = UserRepository(db).get_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.put("/{user_id}/role", response_model=UserResponse, dependencies=[Depends(UserPermissions.edit)])
def update_user_role(user_id: str, req: RoleUpdate, db: Session = Depends(get_db)):
    if not PermissionService.is_valid_role(req.role):
        raise HTTPException(status_code=400, detail=f"Unknown role '{req.role}'")
    repo = UserRepository(db)
    user = repo.get_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return repo.update_role(user, req.role)
