from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Header, HTTPException, Request
from jose import JWTError, jwt

ALGORITHM = "HS256"


def decode_user_id(token: str, secret: str) -> str:
    claims = jwt.decode(token, secret, algorithms=[ALGORITHM])
    user_id = claims.get("id", claims.get("sub"))
    if user_id is None:
        raise JWTError("Token carries no user id")
    return str(user_id)


def create_access_token(user_id, secret: str, expires_in: timedelta = timedelta(hours=1), **claims) -> str:
    payload = {"id": user_id, "exp": datetime.now(timezone.utc) + expires_in, **claims}
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def verify_caller(request: Request, authorization: Optional[str] = Header(None)) -> str:
    secret = request.app.state.settings.jwt_secret
    try:
        scheme, token = authorization.split()
        if scheme.lower() != "bearer" or not secret:
            raise ValueError("Unsupported authorization scheme")
        return decode_user_id(token, secret)
    except (AttributeError, ValueError, JWTError):
        raise HTTPException(status_code=401, detail="Invalid or missing token")
