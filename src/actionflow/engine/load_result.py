"""LoadResult for bundle loading and graph planning.

A small error monad. The loader returns it for YAML bundles and action
catalogs, and ``dag.py`` returns it for topological order and waves, which
fail on cyclic graphs. Validators never use it: they always complete and put
their findings in result models.

Directory discovery succeeds even when some files fail; those failures are
carried as ``(source, error)`` pairs in ``metadata["errors"]`` and exposed
through ``load_errors``.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class LoadStatus(str, Enum):
    """Outcome of a load or planning step."""

    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class LoadResult(Generic[T]):  # noqa: UP046
    """
    Value-or-error result.

    Usage:
        result = load_bundle_from_file(path)
        if result:
            validate(result.unwrap())
        else:
            report(result.error)
    """

    status: LoadStatus
    value: T | None = None
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.status == LoadStatus.SUCCESS and self.value is None:
            raise ValueError("Success result must have a value")
        if self.status == LoadStatus.FAILED and not self.error:
            raise ValueError("Failed result must have an error message")

    @classmethod
    def success(cls, value: T, metadata: dict[str, Any] | None = None) -> "LoadResult[T]":
        return cls(status=LoadStatus.SUCCESS, value=value, metadata=metadata or {})

    @classmethod
    def failure(cls, error: str, metadata: dict[str, Any] | None = None) -> "LoadResult[T]":
        return cls(status=LoadStatus.FAILED, error=error, metadata=metadata or {})

    @property
    def is_success(self) -> bool:
        return self.status == LoadStatus.SUCCESS

    @property
    def is_failure(self) -> bool:
        return self.status == LoadStatus.FAILED

    @property
    def load_errors(self) -> list[tuple[str, str]]:
        """Per-file ``(source, error)`` failures collected during discovery."""
        return list(self.metadata.get("errors", []))

    def __bool__(self) -> bool:
        return self.is_success

    def map(self, fn: Callable[[T], U]) -> "LoadResult[U]":
        """Apply ``fn`` to a success value; failures pass through unchanged."""
        if self.is_failure or self.value is None:
            return LoadResult.failure(self.error or "No value", self.metadata)
        return LoadResult.success(fn(self.value), self.metadata)

    def unwrap(self) -> T:
        """Return the value, raising ValueError for failures."""
        if self.is_failure or self.value is None:
            raise ValueError(f"Cannot unwrap failed result: {self.error}")
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value if self.is_success and self.value is not None else default
