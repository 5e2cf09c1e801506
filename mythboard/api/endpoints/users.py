from datetime import datetime, timedelta, UTC
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_, select

from mythboard.api.deps import SessionDep, SettingsDep
from mythboard.core.security import (
    get_password_hash,
    verify_password,
    create_access_token,
    get_current_active_user,
)
from mythboard.models.user import User
from mythboard.schemas.user import UserCreate, UserResponse, Token, UserUpdate, UserLogin

router = APIRouter()

@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_in: UserCreate,
    session: SessionDep
) -> User:
    """Create an account for the identified variant"""
    existing = session.execute(
        select(User).where(or_(User.username == user_in.username, User.email == user_in.email))
    ).scalars().first()
    if existing is not None:
        detail = "Username already exists" if existing.username == user_in.username else "Email already registered"
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

    user = User(
        username=user_in.username,
        email=user_in.email,
        password_hash=get_password_hash(user_in.password),
        bio=user_in.bio
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user

@router.post("/login", response_model=Token)
def login(
    user_in: UserLogin,
    session: SessionDep,
    settings: SettingsDep
) -> dict:
    """Exchange username and password for a bearer token"""
    user = session.execute(
        select(User).where(User.username == user_in.username)
    ).scalar_one_or_none()

    if not user or not verify_password(user_in.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")

    user.last_login = datetime.now(UTC)
    session.commit()

    access_token = create_access_token(
        data={"sub": user.username},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return {"access_token": access_token, "token_type": "bearer"}

@router.get("/me", response_model=UserResponse)
def read_users_me(
    current_user: Annotated[User, Depends(get_current_active_user)]
) -> User:
    """Get the current user"""
    return current_user

@router.put("/me", response_model=UserResponse)
def update_user_me(
    user_update: UserUpdate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    session: SessionDep
) -> User:
    """Update the current user's bio"""
    if user_update.bio is not None:
        current_user.bio = user_update.bio
    session.commit()
    session.refresh(current_user)
    return current_user
