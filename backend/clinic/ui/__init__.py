from .permission_gate import (
    ACCESS_DENIED_PLACEHOLDER,
    LOADING_PLACEHOLDER,
    UNAUTHORIZED_PLACEHOLDER,
    GateState,
    PermissionContext,
    PermissionGate,
    with_permissions,
)

__all__ = [
    "ACCESS_DENIED_PLACEHOLDER",
    "LOADING_PLACEHOLDER",
    "UNAUTHORIZED_PLACEHOLDER",
    "GateState",
    "PermissionContext",
    "PermissionGate",
    "with_permissions",
]
