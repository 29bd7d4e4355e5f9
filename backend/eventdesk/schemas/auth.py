"""
Pydantic schemas for admin login.
"""

from pydantic import BaseModel, Field


class AdminLogin(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=100)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    username: str
    role: str = "admin"
