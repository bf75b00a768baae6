# app/auth/api.py
from datetime import datetime
from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, ConfigDict, EmailStr
from sqlalchemy.orm import Session

from app.shared.db import get_db
from app.shared.http import ok
from app.shared.auth import ACCESS_COOKIE, REFRESH_COOKIE, TokenIssuer, TokenPair, get_current_user, get_token_issuer
from app.shared.config import settings
from app.auth.service import register_user, login, refresh_session, logout, get_profile, update_avatar

router = APIRouter(prefix="/users", tags=["Users"])

class RegisterIn(BaseModel):
    name: str
    email: EmailStr
    password: str

class LoginIn(BaseModel):
    email: str
    password: str

class RefreshIn(BaseModel):
    refresh_token: str | None = None

class AvatarIn(BaseModel):
    avatarImage: str

class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    name: str
    email: str
    avatar_image: str | None = None
    created_at: datetime

def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": settings.COOKIE_SECURE,
        "samesite": settings.COOKIE_SAMESITE,
        "path": "/",
    }

def _set_session_cookies(response: Response, pair: TokenPair) -> None:
    max_age = settings.COOKIE_MAX_AGE_DAYS * 24 * 60 * 60
    response.set_cookie(ACCESS_COOKIE, pair.access_token, max_age=max_age, **_cookie_options())
    response.set_cookie(REFRESH_COOKIE, pair.refresh_token, max_age=max_age, **_cookie_options())

def _user_out(u) -> dict:
    return UserOut.model_validate(u).model_dump(mode="json")

@router.post("/register", status_code=201)
def api_register(inb: RegisterIn, response: Response, db: Session = Depends(get_db),
                 issuer: TokenIssuer = Depends(get_token_issuer)):
    user, pair = register_user(db, issuer, inb.name, inb.email, inb.password)
    _set_session_cookies(response, pair)
    return ok({"user": _user_out(user), "accessToken": pair.access_token}, message="User Registered Successfully")

@router.post("/login")
def api_login(inb: LoginIn, response: Response, db: Session = Depends(get_db),
              issuer: TokenIssuer = Depends(get_token_issuer)):
    user, pair = login(db, issuer, inb.email, inb.password)
    _set_session_cookies(response, pair)
    return ok({"user": _user_out(user), "accessToken": pair.access_token}, message="User Logged In Successfully")

@router.post("/refresh-token")
def api_refresh(request: Request, response: Response, inb: RefreshIn | None = None,
                db: Session = Depends(get_db), issuer: TokenIssuer = Depends(get_token_issuer)):
    incoming = request.cookies.get(REFRESH_COOKIE) or (inb.refresh_token if inb else None)
    pair = refresh_session(db, issuer, incoming)
    _set_session_cookies(response, pair)
    return ok({"accessToken": pair.access_token, "refreshToken": pair.refresh_token}, message="Access Token Refreshed")

@router.post("/logout")
def api_logout(response: Response, user = Depends(get_current_user), db: Session = Depends(get_db)):
    logout(db, user["sub"])
    response.delete_cookie(ACCESS_COOKIE, **_cookie_options())
    response.delete_cookie(REFRESH_COOKIE, **_cookie_options())
    return ok({}, message="User Logged Out")

@router.get("/me")
def api_me(user = Depends(get_current_user), db: Session = Depends(get_db)):
    return ok({"user": _user_out(get_profile(db, user["sub"]))}, message="Current user fetched successfully")

@router.patch("/me")
def api_update_me(inb: AvatarIn, user = Depends(get_current_user), db: Session = Depends(get_db)):
    u = update_avatar(db, user["sub"], inb.avatarImage)
    return ok(_user_out(u), message="User updated successfully")
