import logging
import uuid
import bcrypt
from sqlalchemy.orm import Session
from app.auth.models import User
from app.auth.sessions import SessionStore
from app.shared.auth import TokenIssuer, TokenPair
from app.shared.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    TokenInvalidError,
    TokenRevokedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ALLOWED_AVATARS = [f"/avatars/avatar{i}.svg" for i in range(1, 21)]

def _hash(pw: str) -> str:
    return bcrypt.hashpw(pw.encode(), bcrypt.gensalt()).decode()

def _verify(pw: str, ph: str) -> bool:
    try: return bcrypt.checkpw(pw.encode(), ph.encode())
    except ValueError: return False

def _start_session(db: Session, issuer: TokenIssuer, user: User) -> TokenPair:
    pair = issuer.issue_pair(user.id, extra={"email": user.email})
    SessionStore(db).put(user.id, pair.refresh_token)
    return pair

def register_user(db: Session, issuer: TokenIssuer, name: str, email: str, password: str) -> tuple[User, TokenPair]:
    name, email, password = (name or "").strip(), (email or "").lower().strip(), (password or "").strip()
    if not name or not email or not password:
        raise ValidationError("All fields are required")
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("User with same email already exists")
    u = User(id=uuid.uuid4().hex, name=name, email=email, password_hash=_hash(password))
    # sign first so a signing failure leaves no half-registered user behind
    pair = issuer.issue_pair(u.id, extra={"email": u.email})
    db.add(u); db.commit(); db.refresh(u)
    SessionStore(db).put(u.id, pair.refresh_token)
    logger.info("registered user %s", u.id)
    return u, pair

def login(db: Session, issuer: TokenIssuer, email: str, password: str) -> tuple[User, TokenPair]:
    """LoggedOut|Active -> Active. Any previous refresh token stops being honoured."""
    email, password = (email or "").lower().strip(), (password or "").strip()
    if not email or not password:
        raise ValidationError("Provide both email and password")
    u = db.query(User).filter(User.email == email).first()
    if not u:
        logger.warning("login rejected: unknown email")
        raise AuthenticationError("unknown_email")
    if not _verify(password, u.password_hash):
        logger.warning("login rejected: bad password for user %s", u.id)
        raise AuthenticationError("bad_password")
    pair = _start_session(db, issuer, u)
    logger.info("user %s logged in", u.id)
    return u, pair

def refresh_session(db: Session, issuer: TokenIssuer, refresh_token: str | None) -> TokenPair:
    """Active -> Active': only the refresh token currently in the slot is accepted, and it is replaced."""
    if not refresh_token:
        raise TokenInvalidError("Unauthorized request", details="missing refresh token")
    payload = issuer.verify_refresh_token(refresh_token)
    u = db.get(User, payload["sub"])
    if not u:
        logger.warning("refresh rejected: unknown subject %s", payload["sub"])
        raise TokenInvalidError("Invalid refresh token")

    store = SessionStore(db)
    if not store.matches(u.id, refresh_token):
        logger.warning("refresh rejected: token for user %s is not the current one", u.id)
        raise TokenRevokedError()

    pair = _start_session(db, issuer, u)
    logger.info("rotated refresh token for user %s", u.id)
    return pair

def logout(db: Session, user_id: str) -> None:
    """Clears the slot. Logging out twice is fine."""
    SessionStore(db).clear(user_id)
    logger.info("user %s logged out", user_id)

def get_profile(db: Session, user_id: str) -> User:
    u = db.get(User, user_id)
    if not u:
        raise NotFoundError("User not found")
    return u

def update_avatar(db: Session, user_id: str, avatar_image: str) -> User:
    avatar_image = (avatar_image or "").strip()
    if not avatar_image:
        raise ValidationError("Invalid or missing avatarImage")
    if avatar_image not in ALLOWED_AVATARS:
        raise ValidationError("Avatar not allowed")
    u = get_profile(db, user_id)
    u.avatar_image = avatar_image
    db.commit(); db.refresh(u)
    return u
