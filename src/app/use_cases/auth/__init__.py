"""
Authentication Use Cases

All authentication-related business logic.
"""

from .signup_use_case import SignupUseCase, SIGNUP_POLICY
from .signup_dto import SignupCommand, SignupResponse, UserInfo
from .login_use_case import LoginUseCase
from .dtos import LoginResponse

__all__ = [
    # Use Cases
    "SignupUseCase",
    "LoginUseCase",
    # Policies
    "SIGNUP_POLICY",
    # DTOs - Commands
    "SignupCommand",
    # DTOs - Responses
    "SignupResponse",
    "LoginResponse",
    # DTOs - Nested Models
    "UserInfo",
]
