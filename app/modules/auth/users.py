"""fastapi-users wiring: user schemas, manager, bearer backend.

Tokens are RS256 JWTs (see ``app.core.jwt_strategy``); the strategy is built
on first use so importing this module never touches the key file.
"""

from typing import AsyncIterator, Optional

from fastapi import Depends, Request
from fastapi_users import FastAPIUsers, schemas
from fastapi_users.authentication import AuthenticationBackend, BearerTransport
from fastapi_users.manager import BaseUserManager, IntegerIDMixin
from fastapi_users_db_sqlalchemy import SQLAlchemyUserDatabase
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db.base import get_session
from app.core.db.schemas.auth import User
from app.core.jwt_strategy import RS256JWTStrategyWithKid
from app.core.logging import get_logger


logger = get_logger(__name__)


class UserRead(schemas.BaseUser[int]):
    pass


class UserCreate(schemas.BaseUserCreate):
    pass


class UserUpdate(schemas.BaseUserUpdate):
    pass


async def get_user_db(
    session: AsyncSession = Depends(get_session),
) -> AsyncIterator[SQLAlchemyUserDatabase]:
    yield SQLAlchemyUserDatabase(session, User)


class UserManager(IntegerIDMixin, BaseUserManager[User, int]):  # type: ignore[type-arg]
    reset_password_token_secret = settings.app.jwt_secret
    verification_token_secret = settings.app.jwt_secret

    async def on_after_register(
        self, user: User, request: Optional[Request] = None
    ) -> None:
        logger.info("registered user %s", user.id)

    async def on_after_login(self, user: User, request=None, response=None) -> None:
        logger.info("user %s logged in", user.id)

    async def on_after_forgot_password(
        self, user: User, token: str, request: Optional[Request] = None
    ) -> None:
        # Delivery of the reset token is left to the deployment's mailer
        logger.info("password reset requested for user %s", user.id)


async def get_user_manager(
    user_db: SQLAlchemyUserDatabase = Depends(get_user_db),
) -> AsyncIterator[UserManager]:
    yield UserManager(user_db)


_jwt_strategy: Optional[RS256JWTStrategyWithKid] = None


def get_jwt_strategy() -> RS256JWTStrategyWithKid:
    global _jwt_strategy
    if _jwt_strategy is None:
        _jwt_strategy = RS256JWTStrategyWithKid(
            lifetime_seconds=settings.jwt.token_lifetime_seconds,
            key_id="v1",
        )
    return _jwt_strategy


auth_backend = AuthenticationBackend(
    name="jwt",
    transport=BearerTransport(tokenUrl=f"{settings.app.version}/auth/login"),
    get_strategy=get_jwt_strategy,
)


fastapi_users = FastAPIUsers[User, int](  # type: ignore[type-arg]
    get_user_manager,
    [auth_backend],
)
