"""
Authorization gate.

``get_current_identity`` turns the Authorization header into an ``Identity``;
``require_roles`` builds per-route capability checks on top of it.
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request, status

from priming.core.errors import ApiError, ErrorCode, forbidden
from priming.core.security import verify_token
from priming.models.user import Role


@dataclass(frozen=True)
class Identity:
    id: int
    role: Role


async def get_current_identity(request: Request) -> Identity:
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise ApiError(
            status.HTTP_401_UNAUTHORIZED,
            ErrorCode.ACCESS_DENIED,
            "Access denied",
        )

    payload = verify_token(auth_header)
    if not payload:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            ErrorCode.INVALID_TOKEN,
            "Invalid token",
        )

    return Identity(id=payload.id, role=payload.role)


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]


def require_roles(*roles: Role, code: ErrorCode = ErrorCode.ACCESS_DENIED, message: str = "Access denied"):
    """Build a dependency that admits only the given roles."""
    allowed = frozenset(roles)

    async def check(identity: CurrentIdentity) -> Identity:
        if identity.role not in allowed:
            raise forbidden(message, code)
        return identity

    return check


require_admin = require_roles(
    Role.ADMIN,
    message="Access denied. Administrator permissions are required.",
)
require_evaluator_or_admin = require_roles(
    Role.EVALUATOR,
    Role.ADMIN,
    code=ErrorCode.NOT_EVALUATOR,
    message="Access denied. Evaluator permissions are required.",
)
require_child = require_roles(
    Role.CHILD,
    message="Access denied. This feature is only available to children.",
)
require_child_evaluator_or_admin = require_roles(Role.CHILD, Role.EVALUATOR, Role.ADMIN)

AdminIdentity = Annotated[Identity, Depends(require_admin)]
EvaluatorIdentity = Annotated[Identity, Depends(require_evaluator_or_admin)]
ChildIdentity = Annotated[Identity, Depends(require_child)]
AnyRoleIdentity = Annotated[Identity, Depends(require_child_evaluator_or_admin)]
