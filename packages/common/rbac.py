"""Role gates for FastAPI routes.

`require_roles(*roles)` builds a dependency that resolves the authenticated
`User` and refuses the request unless every listed role is present.
"""

import logging
from typing import Callable
from fastapi import Depends, HTTPException, status
from .auth import get_current_user, User

log = logging.getLogger(__name__)


def require_roles(*required: str) -> Callable[[User], User]:
    """Return a dependency that yields the current user only if it holds `required` roles."""
    needed = frozenset(required)

    def gate(user: User = Depends(get_current_user)) -> User:
        missing = needed.difference(user.roles)
        if missing:
            log.warning(
                "role check failed",
                extra={"user_id": user.sub, "missing_roles": sorted(missing)},
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role(s): {', '.join(sorted(missing))}",
            )
        return user

    return gate


require_student = require_roles("student")
require_admin = require_roles("admin")
