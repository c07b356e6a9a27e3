from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str = Field(min_length=1)

# Schema for user registration requests
class UserCreate(UserBase):
    name: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=6)

# Schema for profile edits by the account owner
class ProfileUpdate(UserBase):
    name: str = Field(min_length=1, max_length=100)
    phone: Optional[str] = None

# Output schema for user profile details
class UserResponse(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    phone: Optional[str] = None
    role: str

# Schema for JWT authentication token response
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
