# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every batch, sale and report must be attributable to a person.
Uses bcrypt for password hashing and validates password length.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- 8 to 100 characters
- Session tokens managed separately (see session_service.py)
- Deactivated users cannot authenticate
"""

import bcrypt
from ..extensions import db
from ..models import User
from ..models.auth import ROLE_OWNER, VALID_ROLES
from homebake.time_utils import utcnow


MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 100


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class AccountError(ValueError):
    """Raised when an account cannot be created (duplicate email, bad role)."""


def validate_password_strength(password: str) -> None:
    """Raises PasswordValidationError if the password is too short or too long."""
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    if len(password) > MAX_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at most {MAX_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt comparison. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def create_user(
    name: str,
    email: str,
    password: str,
    role: str,
    created_by_user_id: int | None = None,
    commit: bool = True,
) -> User:
    """
    Create a user with a bcrypt password hash.

    Raises:
        AccountError: empty name/email, unknown role or email already registered
        PasswordValidationError: password length out of range
    """
    name = (name or "").strip()
    email = normalize_email(email)

    if not name:
        raise AccountError("Name is required")
    if not email or "@" not in email:
        raise AccountError("A valid email is required")
    if role not in VALID_ROLES:
        raise AccountError(f"Invalid role: {role}")

    existing = db.session.query(User).filter(User.email == email).first()
    if existing:
        raise AccountError("Email already registered")

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        created_by_user_id=created_by_user_id,
        is_active=True,
    )
    db.session.add(user)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return user


def create_owner(name: str, email: str, password: str) -> User:
    """Bootstrap an owner account (CLI only; owners are never invited)."""
    return create_user(name=name, email=email, password=password, role=ROLE_OWNER)


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    user = db.session.query(User).filter(
        User.email == normalize_email(email),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password or "", user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None
