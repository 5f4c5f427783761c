from datetime import datetime, timedelta
from typing import Any, Dict, Optional
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import time
import uuid

from blog_api.config import Settings, get_app_settings
from blog_api.db.session import get_db
from blog_api.models.user import User
from blog_api.schemas.auth_schema import AuthStatus, TokenData, TokenResponse, TokenType
from blog_api.schemas.user_schema import UserPublic
from blog_api.services.identity_service import IdentityService
from blog_api.services.redis_service import RedisService, get_redis

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

REVOKED_PREFIX = "revoked:"

class AuthService:
    def __init__(self, db: AsyncSession, redis: RedisService, settings: Settings):
        self.db = db
        self.redis = redis
        self.settings = settings

    def create_access_token(self, user_id: str, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token"""
        if expires_delta is None:
            expires_delta = timedelta(minutes=self.settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        expire = datetime.utcnow() + expires_delta

        to_encode = {
            "sub": user_id,
            "exp": expire,
            "type": TokenType.ACCESS.value,
            "jti": str(uuid.uuid4()),
        }
        return jwt.encode(to_encode, self.settings.secret_key, algorithm=self.settings.ALGORITHM)

    def decode_token(self, token: str) -> Optional[TokenData]:
        """Decode a JWT access token without the revocation check"""
        try:
            payload = jwt.decode(token, self.settings.secret_key, algorithms=[self.settings.ALGORITHM])
        except JWTError:
            return None

        if payload.get("type") != TokenType.ACCESS.value:
            return None

        user_id = payload.get("sub")
        if not user_id:
            return None

        return TokenData(user_id=user_id, exp=payload.get("exp"))

    async def verify_token(self, token: str) -> Optional[TokenData]:
        """Verify a JWT token, rejecting revoked ones"""
        token_data = self.decode_token(token)
        if token_data is None:
            return None

        if await self.redis.get(f"{REVOKED_PREFIX}{token}"):
            return None

        return token_data

    async def revoke_token(self, token: str) -> None:
        """Add token to the revocation list until it would expire anyway"""
        token_data = self.decode_token(token)
        if token_data is None or token_data.exp is None:
            return

        remaining = int(token_data.exp - time.time())
        if remaining > 0:
            await self.redis.set(f"{REVOKED_PREFIX}{token}", "1", expire=remaining)

class AuthContext:
    """Authentication state for a single request.

    Transitions: unauthenticated -> authenticating -> authenticated on
    sign-in, back to unauthenticated on sign-out or a failed sign-in.
    """

    def __init__(
        self,
        auth_service: AuthService,
        user: Optional[User] = None,
        token: Optional[str] = None
    ):
        self.auth_service = auth_service
        self.token = token
        self._user = user
        self.status = AuthStatus.AUTHENTICATED if user else AuthStatus.UNAUTHENTICATED

    def current_user(self) -> Optional[User]:
        return self._user

    def is_authenticated(self) -> bool:
        return self.status == AuthStatus.AUTHENTICATED and self._user is not None

    async def sign_in(self, provider: Any, payload: Optional[Dict[str, Any]]) -> TokenResponse:
        """Sign in through an identity provider and issue an access token"""
        self.status = AuthStatus.AUTHENTICATING
        try:
            identity_service = IdentityService(self.auth_service.db)
            user = await identity_service.upsert_user(provider, payload)
        except Exception:
            self._user = None
            self.token = None
            self.status = AuthStatus.UNAUTHENTICATED
            raise

        expires_delta = timedelta(minutes=self.auth_service.settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        self.token = self.auth_service.create_access_token(user.id, expires_delta)
        self._user = user
        self.status = AuthStatus.AUTHENTICATED

        logger.info(f"User {user.id} signed in via {user.provider}")

        return TokenResponse(
            access_token=self.token,
            token_type="bearer",
            expires_in=int(expires_delta.total_seconds()),
            user=UserPublic.model_validate(user)
        )

    async def sign_out(self) -> None:
        """Revoke the current token and drop the session"""
        if self.token:
            await self.auth_service.revoke_token(self.token)

        if self._user is not None:
            logger.info(f"User {self._user.id} signed out")

        self._user = None
        self.token = None
        self.status = AuthStatus.UNAUTHENTICATED

async def get_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
    redis: RedisService = Depends(get_redis),
    settings: Settings = Depends(get_app_settings)
) -> AuthContext:
    """Dependency building the auth context from the bearer token, if any"""
    auth_service = AuthService(db, redis, settings)

    if credentials is None:
        return AuthContext(auth_service)

    token = credentials.credentials
    token_data = await auth_service.verify_token(token)
    if token_data is None:
        return AuthContext(auth_service)

    user = await IdentityService(db).get_user(token_data.user_id)
    if user is None:
        return AuthContext(auth_service)

    return AuthContext(auth_service, user=user, token=token)

async def require_user(auth: AuthContext = Depends(get_auth_context)) -> User:
    """Dependency to get current authenticated user"""
    if not auth.is_authenticated():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth.current_user()
