"""
Application error taxonomy.

Use cases never raise for expected failures. They return an output carrying
an ``AppError`` whose ``kind`` tells the caller how to render it:

- unauthenticated: no identity for the request
- forbidden: authenticated, but role/ownership is insufficient
- validation: one or more field-addressed ``ValidationIssue``s
- not_found: a referenced id does not resolve
- conflict: duplicate pending invitation, last-admin protection, ...
- repository: opaque storage failure (cause kept for logs only)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

ErrorKind = Literal[
    "unauthenticated",
    "forbidden",
    "validation",
    "not_found",
    "conflict",
    "repository",
]


@dataclass(frozen=True)
class ValidationIssue:
    """Field-level validation failure; ``field`` is a dotted path."""

    field: str
    code: str
    message: str


@dataclass(frozen=True)
class AppError:
    kind: ErrorKind
    message: str
    issues: list[ValidationIssue] = field(default_factory=list)
    resource: str | None = None
    cause: BaseException | None = field(default=None, repr=False, compare=False)

    @classmethod
    def unauthenticated(cls) -> AppError:
        return cls("unauthenticated", "Sign in required")

    @classmethod
    def forbidden(cls, message: str, resource: str | None = None) -> AppError:
        return cls("forbidden", message, resource=resource)

    @classmethod
    def validation(cls, issues: list[ValidationIssue]) -> AppError:
        return cls("validation", "Invalid input", issues=list(issues))

    @classmethod
    def not_found(cls, resource: str, message: str | None = None) -> AppError:
        return cls("not_found", message or f"{resource} not found", resource=resource)

    @classmethod
    def conflict(cls, message: str, resource: str | None = None) -> AppError:
        return cls("conflict", message, resource=resource)

    @classmethod
    def repository(cls, message: str, cause: BaseException | None = None) -> AppError:
        return cls("repository", message, cause=cause)

    def field_messages(self) -> dict[str, str]:
        """First message per field, for form rendering."""
        out: dict[str, str] = {}
        for issue in self.issues:
            out.setdefault(issue.field, issue.message)
        return out
