from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from typing import Optional

from core.rbac import Role

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str

# Schema for user registration requests
class UserCreate(UserBase):
    password: str = Field(min_length=8)
    name: str

# Output schema for user profile details
class UserResponse(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    role: Role
    name: Optional[str] = None
    is_active: bool = True

# Schema for JWT authentication token response
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

# Schema for administrative role updates
class RoleUpdate(BaseModel):
    role: Role

# Schema for a signed-in user changing their own password
class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8)
    confirm_password: str = Field(min_length=1)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self
