"""Exception types raised by vector stores, storage backends and the tenant cache."""

from __future__ import annotations


class NanoVectorDBError(Exception):
    """Base class for every error raised by this package."""


class DimensionMismatchError(NanoVectorDBError, ValueError):
    """Raised when a vector length disagrees with the store embedding dimension."""

    def __init__(self, expected: int, actual: int, *, context: str = "vector") -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{context.capitalize()} dimension mismatch: expected {expected}, got {actual}"
        )


class StorageCorruptionError(NanoVectorDBError, ValueError):
    """Raised when persisted state exists but cannot be decoded consistently."""


class TenantNotFoundError(NanoVectorDBError, KeyError):
    """Raised when a tenant is neither cached nor persisted."""

    def __init__(self, tenant_id: str) -> None:
        self.tenant_id = tenant_id
        super().__init__(tenant_id)

    def __str__(self) -> str:
        return f"Tenant not found: {self.tenant_id}"


class TenantPersistenceError(NanoVectorDBError, RuntimeError):
    """Raised when saving or evicting a tenant fails."""

    def __init__(self, tenant_id: str, message: str) -> None:
        self.tenant_id = tenant_id
        super().__init__(f"{message} '{tenant_id}'")
