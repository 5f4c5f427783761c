from pydantic import Field
from typing import Optional
from enum import Enum

from blog_api.schemas.base_schema import CamelModel
from blog_api.schemas.user_schema import UserPublic

class TokenType(str, Enum):
    ACCESS = "access"

class AuthStatus(str, Enum):
    """Session state machine"""
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"

class TokenData(CamelModel):
    """Schema for token payload data"""
    user_id: str = Field(..., description="User ID")
    exp: Optional[int] = Field(None, description="Expiration timestamp")

class TokenResponse(CamelModel):
    """Schema for sign-in response"""
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Token expiration in seconds")
    user: UserPublic

class AuthStatusResponse(CamelModel):
    """Schema for authentication status response"""
    is_authenticated: bool = Field(..., description="Whether user is authenticated")
    user: Optional[UserPublic] = Field(None, description="Current user if authenticated")

class MessageResponse(CamelModel):
    message: str
