"""
Verification Token Payloads

Typed shapes of the pending mutation stored with each token, one per
ChangeType. Stored as JSON; parsed back with ``parse_payload``.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from .enums import ChangeType


class UsernameChangePayload(BaseModel):
    change_type: Literal[ChangeType.USERNAME_CHANGE] = ChangeType.USERNAME_CHANGE
    new_username: str


class EmailChangePayload(BaseModel):
    change_type: Literal[ChangeType.EMAIL_CHANGE] = ChangeType.EMAIL_CHANGE
    new_email: str
    old_email: str


class AccountVerificationPayload(BaseModel):
    change_type: Literal[ChangeType.ACCOUNT_VERIFICATION] = ChangeType.ACCOUNT_VERIFICATION
    email: str


class PasswordResetPayload(BaseModel):
    change_type: Literal[ChangeType.PASSWORD_RESET] = ChangeType.PASSWORD_RESET


TokenPayload = Annotated[
    Union[
        UsernameChangePayload,
        EmailChangePayload,
        AccountVerificationPayload,
        PasswordResetPayload,
    ],
    Field(discriminator="change_type"),
]

_payload_adapter = TypeAdapter(TokenPayload)


class InvalidPayloadError(ValueError):
    """Stored payload does not match the token's change type"""


def parse_payload(change_type: ChangeType, data: dict) -> TokenPayload:
    """
    Parse a stored payload into its typed variant.

    The token's own change_type column wins over anything in ``data``, so a
    payload cannot claim a different variant than the row it belongs to.

    Raises:
        InvalidPayloadError: payload is missing fields for its change type
    """
    try:
        return _payload_adapter.validate_python(
            {**(data or {}), "change_type": ChangeType(change_type)}
        )
    except (ValidationError, ValueError) as exc:
        raise InvalidPayloadError(str(exc)) from exc


def dump_payload(payload: TokenPayload) -> dict:
    return payload.model_dump(mode="json")
