"""
Admin capability check
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.errors import AuthorizationError

security = HTTPBearer(auto_error=False)

def verify_admin_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[str]:
    """Verify admin bearer token when admin auth is switched on"""
    settings = request.app.state.settings
    if not settings.REQUIRE_ADMIN_AUTH:
        return None

    if credentials is None or credentials.credentials != settings.ADMIN_TOKEN:
        raise AuthorizationError("Invalid admin token")
    return credentials.credentials
