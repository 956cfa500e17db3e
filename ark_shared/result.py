"""
Outcome of a maintenance entry point.

The host trigger never sees an exception: it gets either the workflow payload
or an error code plus an operator-safe message.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from .types import ErrorCode

T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    ok: bool
    data: Optional[T] = None
    error: Optional[str] = None
    code: str = "OK"

    @staticmethod
    def Ok(data: T) -> "Result[T]":
        return Result(ok=True, data=data)

    @staticmethod
    def Err(code: ErrorCode | str, error: str) -> "Result[T]":
        """`code` is an ErrorCode member or its string value."""
        code_value = code.value if isinstance(code, Enum) else code
        return Result(ok=False, error=error, code=str(code_value))
