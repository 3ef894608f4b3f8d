import jwt
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from fastapi import Depends, HTTPException
from typing import Annotated

from helpers.settings import Settings, get_settings

security = HTTPBearer()


def _jwt_key(settings: Settings) -> str:
    if not settings.jwt_secret:
        raise ValueError("JWT_SECRET environment variable is not set")
    return settings.jwt_secret


def generate_user_token(payload: dict, settings: Settings) -> str:
    return jwt.encode(payload, _jwt_key(settings), algorithm='HS256')


def decode_user_token(token: str, settings: Settings) -> dict:
    try:
        return jwt.decode(token, _jwt_key(settings), algorithms=['HS256'])
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid Token")


async def get_current_claims(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> dict:
    """Claims of the caller's token. Users and roles live in the auth service."""
    claims = decode_user_token(credentials.credentials, settings)
    if not claims.get("id"):
        raise HTTPException(status_code=401, detail="Invalid Token")
    return claims


def require_roles(*roles: str):
    async def checker(claims: Annotated[dict, Depends(get_current_claims)]) -> dict:
        if claims.get("role") not in roles:
            raise HTTPException(status_code=403, detail="Not authorized to access this resource")
        return claims

    return checker
