from dataclasses import dataclass
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    """Outcome of an internal async operation: a value or the error that stopped it."""

    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: BaseException) -> "Result[T]":
        return cls(error=error)


class WalletListData(BaseModel):
    model_config = ConfigDict(extra="allow")

    wallets: List[Any]

class WalletsResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str
    data: WalletListData

class TokenListData(BaseModel):
    model_config = ConfigDict(extra="allow")

    tokens: List[Any]
    total_value_usd: Optional[Any] = None

class TokensResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str
    data: TokenListData

class TokenCacheEntry(BaseModel):
    # last_update == 0 means "never fetched"
    data: Any = None
    last_update: int = 0


class InvalidResponseError(ValueError):
    """Remote payload did not match the expected success envelope."""


def validate_response(model: type, payload: Any) -> Result:
    """Validate a remote payload against a response model.

    Anything other than a ``status == "success"`` envelope carrying the
    expected list is reported as a failed result rather than raised.
    """
    if not isinstance(payload, dict):
        return Result.failure(InvalidResponseError(f"Expected object, got {type(payload).__name__}"))
    try:
        parsed = model.model_validate(payload)
    except ValidationError as e:
        return Result.failure(InvalidResponseError(f"Malformed response: {e.error_count()} error(s)"))
    if parsed.status != "success":
        message = payload.get("message") or f"status={parsed.status!r}"
        return Result.failure(InvalidResponseError(f"Unsuccessful response: {message}"))
    return Result.success(parsed)
