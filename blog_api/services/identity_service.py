from typing import Any, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select, and_
import logging

from blog_api.exceptions import AuthError, StoreError
from blog_api.models.user import User
from blog_api.schemas.user_schema import AuthProvider, ProviderProfile

logger = logging.getLogger(__name__)

def _first(payload: Dict[str, Any], *keys: str) -> Optional[str]:
    """Return the first non-blank value among ``keys`` as a string"""
    for key in keys:
        value = payload.get(key)
        if value is None:
            continue
        value = str(value).strip()
        if value:
            return value
    return None

def _github_profile(payload: Dict[str, Any]) -> Dict[str, Optional[str]]:
    return {
        "provider_id": _first(payload, "id", "providerId", "provider_id"),
        "name": _first(payload, "name", "login"),
        "avatar": _first(payload, "avatar_url", "avatar"),
        "email": _first(payload, "email"),
    }

def _qq_profile(payload: Dict[str, Any]) -> Dict[str, Optional[str]]:
    return {
        "provider_id": _first(payload, "openid", "providerId", "provider_id"),
        "name": _first(payload, "nickname", "name"),
        "avatar": _first(payload, "figureurl_qq_2", "figureurl_qq_1", "avatar"),
        "email": _first(payload, "email"),
    }

PROFILE_EXTRACTORS = {
    AuthProvider.GITHUB: _github_profile,
    AuthProvider.QQ: _qq_profile,
}

class IdentityService:
    """Normalizes provider sign-in payloads and keeps user records current"""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def normalize(provider: Any, payload: Optional[Dict[str, Any]]) -> ProviderProfile:
        """Map a provider payload to a canonical profile.

        Raises AuthError for unknown providers or payloads without a
        provider id or display name.
        """
        try:
            provider = AuthProvider(provider)
        except ValueError:
            raise AuthError(f"Unsupported identity provider: {provider}")

        if not isinstance(payload, dict):
            raise AuthError("Sign-in payload must be an object")

        fields = PROFILE_EXTRACTORS[provider](payload)
        if not fields["provider_id"]:
            raise AuthError(f"{provider.value} payload is missing the provider id")
        if not fields["name"]:
            raise AuthError(f"{provider.value} payload is missing the display name")

        return ProviderProfile(
            provider=provider,
            provider_id=fields["provider_id"],
            name=fields["name"][:100],
            avatar=fields["avatar"] or "",
            email=fields["email"],
        )

    async def get_user(self, user_id: str) -> Optional[User]:
        stmt = select(User).where(User.id == user_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_provider(self, provider: AuthProvider, provider_id: str) -> Optional[User]:
        stmt = select(User).where(
            and_(
                User.provider == provider.value,
                User.provider_id == provider_id
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert_user(self, provider: Any, payload: Optional[Dict[str, Any]]) -> User:
        """Create or refresh the user keyed by (provider, provider id)"""
        profile = self.normalize(provider, payload)

        try:
            user = await self.get_by_provider(profile.provider, profile.provider_id)

            if user:
                user.name = profile.name
                user.avatar = profile.avatar
                user.email = profile.email
                action = "Refreshed"
            else:
                user = User(
                    name=profile.name,
                    avatar=profile.avatar,
                    email=profile.email,
                    provider=profile.provider.value,
                    provider_id=profile.provider_id
                )
                self.db.add(user)
                action = "Created"

            await self.db.commit()
            await self.db.refresh(user)
        except SQLAlchemyError as e:
            logger.error(f"Error upserting {profile.provider.value} user {profile.provider_id}: {e}")
            await self.db.rollback()
            raise StoreError("Failed to save user")

        logger.info(f"{action} user {user.id} via {profile.provider.value}")
        return user
