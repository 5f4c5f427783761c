from fastapi import APIRouter, Body, Depends, HTTPException, status
from typing import Any, Dict
import logging

from blog_api.exceptions import ServiceError, to_http_exception
from blog_api.schemas.auth_schema import AuthStatusResponse, MessageResponse, TokenResponse
from blog_api.schemas.user_schema import AuthProvider, UserPublic
from blog_api.services.auth_service import AuthContext, get_auth_context

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/signin/{provider}", response_model=TokenResponse)
async def sign_in(
    provider: AuthProvider,
    payload: Dict[str, Any] = Body(..., description="Profile returned by the identity provider"),
    auth: AuthContext = Depends(get_auth_context)
):
    """Sign in with a provider profile and return an access token"""
    try:
        return await auth.sign_in(provider, payload)
    except HTTPException:
        raise
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Sign-in error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Sign-in failed"
        )

@router.post("/signout", response_model=MessageResponse)
async def sign_out(auth: AuthContext = Depends(get_auth_context)):
    """Sign out (revoke the presented token)"""
    if not auth.is_authenticated():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        await auth.sign_out()
        return MessageResponse(message="Successfully signed out")
    except Exception as e:
        logger.error(f"Sign-out error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Sign-out failed"
        )

@router.get("/me", response_model=AuthStatusResponse)
async def get_auth_status(auth: AuthContext = Depends(get_auth_context)):
    """Report whether the request carries a valid session"""
    user = auth.current_user()
    return AuthStatusResponse(
        is_authenticated=auth.is_authenticated(),
        user=UserPublic.model_validate(user) if user else None
    )
