"""Permission introspection for the signed-in user."""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..core.guards import require_valid_role
from ..core.permissions import Role
from ..services.permission_service import PermissionService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/permissions")
def get_my_permissions(role: Role = Depends(require_valid_role)) -> Dict[str, Any]:
    """Menus, module grants and role metadata for client bootstrap."""
    return PermissionService.get_user_permissions(role)
