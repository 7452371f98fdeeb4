import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from jose import JWTError, jwt
import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..config import ACCESS_TOKEN_EXPIRE_MINUTES, SECRET_KEY
from ..database import get_db
from ..errors import Conflict, Forbidden, Unauthenticated
from ..models import User, UserRole
from ..schemas.user import AuthResponse, TokenData, User as UserSchema, UserCreate, UserLogin

logger = logging.getLogger(__name__)

router = APIRouter()

ALGORITHM = "HS256"
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes
    return password.encode('utf-8')[:BCRYPT_MAX_BYTES]


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    hashed_bytes = hashed_password.encode('utf-8') if isinstance(hashed_password, str) else hashed_password
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_bytes)
    except ValueError:
        # Malformed stored hash
        return False


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt with a fresh salt."""
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(_password_bytes(password), salt)
    return hashed.decode('utf-8')


def normalize_email(email: str) -> str:
    return email.strip().lower()


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Authenticate a user."""
    user = db.exec(select(User).where(User.email == normalize_email(email))).first()
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def create_user_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    return create_access_token(
        data={"sub": str(user.id), "role": UserRole(user.role).value},
        expires_delta=expires_delta,
    )


def _get_token_from_request(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return None


def _decode_token(token: str) -> Optional[TokenData]:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id = payload.get("sub")
        if not user_id:
            return None
        return TokenData(user_id=user_id, role=payload.get("role", UserRole.USER))
    except (JWTError, ValueError):
        return None


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to the signed-in user."""
    token = _get_token_from_request(request)
    if not token:
        raise Unauthenticated("Not authenticated")

    token_data = _decode_token(token)
    if not token_data:
        logger.warning("Rejected invalid or expired token on %s", request.url.path)
        raise Unauthenticated("Could not validate credentials")

    user = db.get(User, token_data.user_id)
    if user is None:
        logger.warning("Token for unknown user %s", token_data.user_id)
        raise Unauthenticated("User not found")
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Like get_current_user, but only lets admins through."""
    if not current_user.is_admin:
        logger.warning("User %s denied admin route", current_user.id)
        raise Forbidden("Admin access required")
    return current_user


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    user: UserCreate,
    db: Session = Depends(get_db),
):
    """Create a new user account."""
    email = normalize_email(user.email)
    db_user = db.exec(select(User).where(User.email == email)).first()
    if db_user:
        raise Conflict("Email already registered")

    db_user = User(
        email=email,
        full_name=user.full_name,
        hashed_password=get_password_hash(user.password),
    )
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Email already registered")
    db.refresh(db_user)
    logger.info("Registered user %s", db_user.id)

    return {
        "user": db_user,
        "token": create_user_token(db_user),
    }


@router.post("/login", response_model=AuthResponse)
def login(
    user: UserLogin,
    db: Session = Depends(get_db),
):
    """Sign in and get a bearer token."""
    db_user = authenticate_user(db, user.email, user.password)
    if not db_user:
        logger.info("Failed login attempt")
        raise Unauthenticated("Invalid credentials")

    return {
        "user": db_user,
        "token": create_user_token(db_user),
    }


@router.get("/me", response_model=UserSchema)
def read_users_me(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    return current_user
