from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Depends, Request

from app.core.db.schemas.auth import User
from app.core.errors import UnauthorizedError
from app.core.logging import user_id_var
from app.modules.auth import CallerIdentity, fastapi_users
from app.modules.generation.client import GenerationClient


async def current_identity(
    user: Optional[User] = Depends(fastapi_users.current_user(optional=True, active=True)),
) -> CallerIdentity:
    """Resolve the caller from the bearer token, or fail with 401.

    Every pipeline route depends on this, so nothing downstream runs for an
    anonymous request.
    """
    if user is None:
        raise UnauthorizedError()
    user_id_var.set(str(user.id))
    return CallerIdentity(user_id=user.id)


def get_generation_client(request: Request) -> GenerationClient:
    return request.app.state.generation_client


Identity = Annotated[CallerIdentity, Depends(current_identity)]
Generator = Annotated[GenerationClient, Depends(get_generation_client)]
