# auth.py

from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, EmailStr
from eventsync.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES
from eventsync.database import database
from eventsync.models import users

ADMIN_ROLE = "admin"
USER_ROLE = "user"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


# Organisers and venue admins share one account model, told apart by role
class User(BaseModel):
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    disabled: Optional[bool] = None
    role: str = USER_ROLE

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

class Token(BaseModel):
    access_token: str
    token_type: str

# Self sign-up always gets the plain user role
class UserCreate(BaseModel):
    username: str
    full_name: str
    email: EmailStr
    password: str


def _user_from_row(row) -> User:
    return User(
        username=row["username"],
        email=row["email"],
        full_name=row["full_name"],
        role=row["role"] or USER_ROLE,
    )

async def get_user(username: str):
    query = users.select().where(users.c.username == username)
    return await database.fetch_one(query)

async def registration_conflict(username: str, email: str) -> Optional[str]:
    """Which identifier is already taken, if any."""
    if await get_user(username):
        return "Username already registered."
    if await database.fetch_one(users.select().where(users.c.email == email)):
        return "Email already registered."
    return None

def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)

async def authenticate_user(username: str, password: str) -> Optional[User]:
    row = await get_user(username)
    if row is None or not verify_password(password, row["hashed_password"]):
        return None
    return _user_from_row(row)

def create_access_token(username: str, expires_delta: Optional[timedelta] = None) -> str:
    lifetime = expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {"sub": username, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)

async def create_user(user: UserCreate, role: str = USER_ROLE):
    query = users.insert().values(
        username=user.username,
        full_name=user.full_name,
        email=user.email,
        hashed_password=pwd_context.hash(user.password),
        role=role,
    )
    await database.execute(query)


# Every /api route resolves its caller through the bearer token
async def get_current_active_user(token: str = Depends(oauth2_scheme)) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        username = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM]).get("sub")
    except JWTError:
        raise credentials_exception
    row = await get_user(username) if username else None
    if row is None:
        raise credentials_exception
    return _user_from_row(row)
