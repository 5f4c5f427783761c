from pydantic import Field
from typing import Optional
from datetime import datetime
from enum import Enum

from blog_api.schemas.base_schema import CamelModel

class AuthProvider(str, Enum):
    """Supported identity providers"""
    GITHUB = "github"
    QQ = "qq"

class ProviderProfile(CamelModel):
    """Canonical identity extracted from a provider payload"""
    provider: AuthProvider
    provider_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    avatar: str = ""
    email: Optional[str] = None

class UserPublic(CamelModel):
    id: str
    name: str
    avatar: str = ""
    email: Optional[str] = None
    provider: AuthProvider
    provider_id: str
    created_at: datetime
