from fastapi import Header, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from evergreeners import config

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(api_key: str = Security(api_key_header)):
    """Verify API key for authentication"""
    if not api_key or api_key != config.API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API Key"
        )
    return api_key


async def get_current_user_id(x_user_id: str = Header(None)) -> str:
    """Acting user, resolved by the session layer in front of this API"""
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header"
        )
    return x_user_id


async def get_optional_user_id(x_user_id: str = Header(None)):
    return x_user_id or None
