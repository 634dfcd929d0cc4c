import logging
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from sqlalchemy.orm import Session

from stocksync.config import settings
from stocksync.models.user import User

logger = logging.getLogger(__name__)

ADMIN_USERNAME = "admin"
ADMIN_ROLE = "admin"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def create_session_token(username: str, role: str) -> str:
    payload = {
        "sub": username,
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.SESSION_MAX_AGE_HOURS),
    }
    return jwt.encode(payload, settings.SESSION_SECRET, algorithm="HS256")


def decode_session_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, settings.SESSION_SECRET, algorithms=["HS256"])
    except (jwt.ExpiredSignatureError, jwt.InvalidTokenError):
        return None


def authenticate(db: Session, username: str, password: str) -> User | None:
    user = get_user(db, username)
    if not user or not verify_password(password, user.password):
        return None
    return user


def get_user(db: Session, username: str) -> User | None:
    return db.query(User).filter(User.username == username).first()


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.username).all()


def create_user(db: Session, username: str, password: str, role: str = "staff") -> User:
    if get_user(db, username):
        raise ValueError(f"Username '{username}' already exists")
    user = User(username=username, password=hash_password(password), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def update_user(db: Session, username: str, role: str, password: str | None = None) -> User | None:
    """Change a user's role, and the password only when a non-blank one is given."""
    user = get_user(db, username)
    if not user:
        return None
    user.role = role
    if password and password.strip():
        user.password = hash_password(password)
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, username: str) -> bool:
    if username == ADMIN_USERNAME:
        return False
    user = get_user(db, username)
    if not user:
        return False
    db.delete(user)
    db.commit()
    return True


def ensure_default_admin(db: Session) -> None:
    """Create the admin account if it does not exist yet."""
    if get_user(db, ADMIN_USERNAME):
        return
    create_user(db, username=ADMIN_USERNAME, password=settings.DEFAULT_ADMIN_PASSWORD, role=ADMIN_ROLE)
    logger.info("Created default admin user '%s'", ADMIN_USERNAME)
