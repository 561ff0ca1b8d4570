from pydantic import BaseModel, EmailStr
from typing import Optional, List
from datetime import datetime


class UserLogin(BaseModel):
    """Schema for user login"""
    email: EmailStr
    password: str


class Token(BaseModel):
    """Schema for token response"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class CurrentUserResponse(BaseModel):
    """Identity, profile and roles of the caller"""
    id: str
    email: str
    full_name: Optional[str] = None
    roles: List[str] = []
    access: List[str] = []
    is_admin: bool = False
    questionnaire_completed: bool = False
    last_sign_in_at: Optional[datetime] = None
    impersonated_by: Optional[str] = None
