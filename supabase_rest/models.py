from __future__ import annotations
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional
from .exceptions import InvalidResponseError


def _require(data: Dict[str, Any], key: str, kind: type) -> Any:
    if key not in data:
        raise InvalidResponseError(f"token response missing '{key}'")
    value = data[key]
    # bool is an int subclass; expires_in must be a real number of seconds
    if not isinstance(value, kind) or isinstance(value, bool):
        raise InvalidResponseError(f"token response field '{key}' has type {type(value).__name__}")
    return value


@dataclass
class AuthTokenResponse:
    """Body of a successful /auth/v1/token call."""
    access_token: str
    token_type: str
    expires_in: int
    refresh_token: str

    @classmethod
    def from_dict(cls, data: Any) -> 'AuthTokenResponse':
        if not isinstance(data, dict):
            raise InvalidResponseError(f"token response must be a JSON object, got {type(data).__name__}")
        return cls(
            access_token=_require(data, 'access_token', str),
            token_type=_require(data, 'token_type', str),
            expires_in=_require(data, 'expires_in', int),
            refresh_token=_require(data, 'refresh_token', str),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TokenRequestPayload:
    email: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    refresh_token: Optional[str] = None
    grant_type: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        # only the fields relevant to the grant are sent
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class MagicLinkPayload:
    email: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass
class VerifyOTPPayload:
    email: str
    token: str
    type: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass
class PasswordResetPayload:
    token: str
    password: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)
