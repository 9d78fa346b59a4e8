"""
Access-control failures raised by the API guards.

Each exception carries its HTTP status and the JSON body the client sees;
``access_denied_handler`` renders them at the top level of the response.
"""
from typing import Any, Dict, Iterable, Optional

from fastapi import Request
from fastapi.responses import JSONResponse


class AccessDenied(Exception):
    status_code = 403
    error = "Access denied"

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.error, "message": self.message}
        body.update(self.extra)
        return body


class Unauthenticated(AccessDenied):
    status_code = 401
    error = "Authentication required"

    def __init__(self, message: str = "You must be logged in to access this resource"):
        super().__init__(message)


class InvalidRole(AccessDenied):
    error = "Invalid role"

    def __init__(self, message: str = "Your user role is invalid. Please contact administrator."):
        super().__init__(message)


class InsufficientPermission(AccessDenied):
    error = "Insufficient permissions"

    def __init__(self, role: str, role_name: str, module: str, action: str):
        super().__init__(
            f"Your role ({role_name}) does not have permission to {action} {module}",
            requiredPermission={"module": module, "action": action},
            userRole=role,
        )


class InsufficientRole(AccessDenied):
    error = "Insufficient role"

    def __init__(self, role: Optional[str], required_roles: Iterable[str]):
        required = list(required_roles)
        super().__init__(
            f"Access restricted to: {', '.join(required)}",
            userRole=role,
            requiredRoles=required,
        )


class ModuleAccessDenied(AccessDenied):
    error = "Module access denied"

    def __init__(self, role: str, role_name: str, module: str):
        super().__init__(
            f"Your role ({role_name}) does not have access to {module} module",
            userRole=role,
            module=module,
        )


class ResolutionFailure(AccessDenied):
    """The user lookup behind role resolution could not be completed."""
    status_code = 503
    error = "Role resolution failed"

    def __init__(self, message: str = "Unable to verify your role right now. Please try again later."):
        super().__init__(message)


class PermissionCheckFailed(AccessDenied):
    status_code = 500

    def __init__(self, error: str, message: str):
        super().__init__(message)
        self.error = error


async def access_denied_handler(request: Request, exc: AccessDenied) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
