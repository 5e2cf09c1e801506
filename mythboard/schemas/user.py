from datetime import datetime
from pydantic import BaseModel, EmailStr, Field

class UserBase(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    bio: str | None = None

class UserCreate(UserBase):
    password: str = Field(..., min_length=8, max_length=72)

class UserLogin(BaseModel):
    username: str
    password: str

class UserUpdate(BaseModel):
    bio: str | None = None

class UserResponse(UserBase):
    id: str
    created_at: datetime
    last_login: datetime | None = None
    is_active: bool

    class Config:
        from_attributes = True

class Token(BaseModel):
    access_token: str
    token_type: str

class IdentityResponse(BaseModel):
    """The identity reactions and favorites are recorded under"""
    user_identifier: str
    anonymous: bool
    issued: bool = Field(default=False, description="True when the anonymous token was generated by this request")
