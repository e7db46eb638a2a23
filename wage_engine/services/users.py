from __future__ import annotations

from dataclasses import dataclass
from hmac import compare_digest

from sqlalchemy import func

from wage_engine.core.exceptions import AuthenticationError, DuplicateConstraintError, ValidationError
from wage_engine.core.logging import get_logger
from wage_engine.core.security import ROLES, Actor, hash_secret, new_access_token
from wage_engine.db.session import Database
from wage_engine.models import User

logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 8


@dataclass(frozen=True)
class IssuedToken:
    access_token: str
    email: str
    role: str


def normalize_email(value: str) -> str:
    email = (value or "").strip()
    if "@" not in email:
        raise ValidationError("Invalid email", field="email")
    return email


class UserService:
    """Accounts, login and bearer-token resolution."""

    def __init__(self, database: Database):
        self.database = database

    def create_user(self, email: str, password: str, role: str = "viewer") -> User:
        email = normalize_email(email)
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password")
        if role not in ROLES:
            raise ValidationError(f"Unknown role: {role}", field="role")

        with self.database.transaction() as db:
            existing = db.query(User).filter(func.lower(User.email) == email.lower()).one_or_none()
            if existing:
                raise DuplicateConstraintError("User already exists", constraint="users_email_key")
            user = User(email=email, hashed_password=hash_secret(password), role=role)
            db.add(user)
            db.flush()

        logger.info("user_created", email=email, role=role)
        return user

    def login(self, email: str, password: str) -> IssuedToken:
        """Check credentials and issue a fresh bearer token; only its hash is stored."""
        email = normalize_email(email)
        logger.info("login_attempt", email=email)
        with self.database.transaction() as db:
            user = db.query(User).filter(func.lower(User.email) == email.lower()).one_or_none()
            if not user or not compare_digest(user.hashed_password, hash_secret(password or "")):
                raise AuthenticationError("Invalid credentials")
            token = new_access_token()
            user.token_hash = hash_secret(token)
            issued = IssuedToken(access_token=token, email=user.email, role=user.role)

        logger.info("login_success", email=issued.email, role=issued.role)
        return issued

    def actor_for_token(self, token: str) -> Actor:
        token = (token or "").strip()
        if not token:
            raise AuthenticationError("Missing bearer token")
        digest = hash_secret(token)
        with self.database.session() as db:
            user = db.query(User).filter(User.token_hash == digest).one_or_none()
        if user is None:
            raise AuthenticationError("Invalid bearer token")
        return Actor(identity=user.email, role=user.role)
