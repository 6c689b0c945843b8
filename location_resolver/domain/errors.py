"""Typed domain errors for the Location Resolver.

Lower tiers raise these to the facade, which decides whether to recover
(fall through to the next tier) or surface them to the caller.

All errors inherit from LocationResolverError and can optionally
wrap a root cause exception for debugging.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class LocationResolverError(Exception):
    """Base error for the location resolver domain.

    Attributes:
        message: Human-readable error description
        cause: Optional underlying exception that caused this error
    """

    message: str
    cause: Optional[Exception] = field(default=None, repr=False)

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def __post_init__(self) -> None:
        super().__init__(self.message)


@dataclass
class ValidationError(LocationResolverError):
    """The query is empty or not a string. Never retried.

    Attributes:
        query: repr of the rejected input
    """

    query: str = ""


@dataclass
class NotFoundError(LocationResolverError):
    """No tier produced a usable match.

    Attributes:
        query: The original query, echoed back to the caller
    """

    query: str = ""


@dataclass
class TransientError(LocationResolverError):
    """A backing store is unreachable, erroring or timed out.

    Attributes:
        tier: Which tier failed ("repository" or "durable_cache")
        timed_out: Whether the failure was a timeout
    """

    tier: str = ""
    timed_out: bool = False


@dataclass
class LookupCancelledError(LocationResolverError):
    """The caller cancelled an in-flight lookup.

    Attributes:
        query: The query that was being resolved
    """

    query: str = ""


@dataclass
class DatasetError(LocationResolverError):
    """Location dataset loading or integrity error.

    Attributes:
        file_path: Path to the dataset file if relevant
    """

    file_path: Optional[str] = None


@dataclass
class ConfigurationError(LocationResolverError):
    """Invalid or missing configuration.

    Attributes:
        setting_name: Name of the problematic setting
        expected_type: Expected type or format
    """

    setting_name: str = ""
    expected_type: Optional[str] = None
