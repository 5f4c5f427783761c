from slowapi import Limiter
from slowapi.util import get_remote_address
from typing import Callable, Dict, Union

from blog_api.config import Settings, settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

# Limits of the running app, refreshed by configure_limiter
_limits: Dict[str, str] = {"comment": settings.COMMENT_RATE_LIMIT}

def configure_limiter(app_settings: Settings) -> None:
    """Apply an app's settings to the shared limiter"""
    limiter.enabled = app_settings.RATE_LIMIT_ENABLED
    _limits["comment"] = app_settings.COMMENT_RATE_LIMIT

def comment_rate_limit() -> str:
    return _limits["comment"]

def rate_limit(limit: Union[str, Callable[[], str]]):
    """Decorator for rate limiting; the endpoint must accept ``request``"""
    return limiter.limit(limit)
