# app/shared/auth.py
import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Dict, Any

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError  # python-jose[cryptography]
from jose.exceptions import JOSEError

from app.shared.clock import Clock, SystemClock
from app.shared.config import Settings, settings as default_settings
from app.shared.errors import TokenGenerationError, TokenInvalidError

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False, scheme_name="bearerAuth")

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenIssuer:
    """
    Signs and verifies the two token kinds.

    Access tokens are short-lived and validated by signature and expiry only.
    Refresh tokens are long-lived; their signature is checked here, but whether
    one is still honoured is decided against the SessionStore by the caller.
    Issuing has no side effects and never touches storage.
    """

    def __init__(self, clock: Optional[Clock] = None, settings: Optional[Settings] = None):
        self.clock = clock or SystemClock()
        self.settings = settings or default_settings

    def _encode(self, sub: str, typ: str, key: str, ttl: timedelta, extra: Optional[Dict[str, Any]] = None) -> str:
        now = self.clock.now()
        payload: Dict[str, Any] = {
            "sub": sub,
            "typ": typ,
            "jti": uuid.uuid4().hex,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        if self.settings.JWT_ISS:
            payload["iss"] = self.settings.JWT_ISS
        if self.settings.JWT_AUD:
            payload["aud"] = self.settings.JWT_AUD
        if extra:
            payload.update(extra)
        try:
            return jwt.encode(payload, key, algorithm=self.settings.JWT_ALG)
        except (JOSEError, TypeError, ValueError) as e:
            logger.exception("failed to sign %s token for sub=%s", typ, sub)
            raise TokenGenerationError(f"signing {typ} token failed: {e}") from e

    def issue_access_token(self, sub: str, extra: Optional[Dict[str, Any]] = None) -> str:
        ttl = timedelta(minutes=self.settings.ACCESS_TOKEN_EXPIRE_MIN)
        return self._encode(sub, "access", self.settings.ACCESS_TOKEN_SECRET, ttl, extra)

    def issue_refresh_token(self, sub: str) -> str:
        ttl = timedelta(days=self.settings.REFRESH_TOKEN_EXPIRE_DAYS)
        return self._encode(sub, "refresh", self.settings.REFRESH_TOKEN_SECRET, ttl)

    def issue_pair(self, sub: str, extra: Optional[Dict[str, Any]] = None) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(sub, extra),
            refresh_token=self.issue_refresh_token(sub),
        )

    def _decode(self, token: str, typ: str, key: str) -> Dict[str, Any]:
        try:
            payload = jwt.decode(
                token,
                key,
                algorithms=[self.settings.JWT_ALG],
                audience=self.settings.JWT_AUD,
                issuer=self.settings.JWT_ISS,
                options={
                    "verify_aud": bool(self.settings.JWT_AUD),
                    "verify_iss": bool(self.settings.JWT_ISS),
                },
            )
        except JWTError as e:
            raise TokenInvalidError(details=str(e)) from e

        if payload.get("typ") != typ:
            raise TokenInvalidError(details=f"expected {typ} token")
        if not payload.get("sub"):
            raise TokenInvalidError(details="missing sub")
        return payload

    def verify_access_token(self, token: str) -> Dict[str, Any]:
        return self._decode(token, "access", self.settings.ACCESS_TOKEN_SECRET)

    def verify_refresh_token(self, token: str) -> Dict[str, Any]:
        return self._decode(token, "refresh", self.settings.REFRESH_TOKEN_SECRET)


def get_token_issuer() -> TokenIssuer:
    return TokenIssuer()


def get_current_user(
    request: Request,
    creds: HTTPAuthorizationCredentials = Depends(bearer),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """
    Guard for protected routes. Stateless: the access token is checked by
    signature and expiry only, so a logout does not cut short access tokens
    that were already handed out.
    """
    candidates = [t for t in (request.cookies.get(ACCESS_COOKIE), creds.credentials if creds else None) if t]
    if not candidates:
        raise TokenInvalidError("Unauthorized request", details="missing access token")

    # the cookie outlives the token inside it; fall back to the header when it no longer verifies
    for token in candidates[:-1]:
        try:
            payload = issuer.verify_access_token(token)
            break
        except TokenInvalidError:
            continue
    else:
        payload = issuer.verify_access_token(candidates[-1])
    return {"sub": payload["sub"], "email": payload.get("email")}
