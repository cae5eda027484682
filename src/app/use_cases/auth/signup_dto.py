"""
Signup Use Case DTOs (Data Transfer Objects)

Command/Response pattern for clean architecture separation:
- SignupCommand: Input to use case (validated business intent)
- SignupResponse: Output from use case (structured result)
"""

from typing import Optional

from pydantic import BaseModel


class SignupCommand(BaseModel):
    """
    Signup command - represents validated signup intent

    Created by API layer after request validation passes.
    Contains only business-relevant data (no HTTP concerns).
    """

    email: str
    password: str
    name: Optional[str] = None


class UserInfo(BaseModel):
    """User information in auth responses"""

    id: str
    email: str
    username: Optional[str] = None
    email_verified: bool


class SignupResponse(BaseModel):
    """
    Signup response - structured output from use case

    Contains all data needed for API response.
    Decoupled from HTTP response format.
    """

    user: UserInfo
    access_token: str
