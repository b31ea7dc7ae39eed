from dataclasses import dataclass

from src.domain.errors import AppError
from src.ports.identity import Identity


@dataclass(frozen=True)
class SignOutInput:
    token: str


@dataclass(frozen=True)
class SessionOutput:
    identity: Identity | None = None
    success: bool = False
    error: AppError | None = None
