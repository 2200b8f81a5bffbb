"""
Exception tree of the StorageHub end-to-end workflow.

Each workflow step raises a subclass of ``StorageHubE2EError``. The CLI maps
any of them to exit status 1, except ``ConfigurationError`` which is raised
before the run starts and maps to 2.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class StorageHubE2EError(Exception):
    """
    Root of the workflow's exceptions.

    ``code`` is a stable upper-case name for the failed step or condition.
    ``details`` holds loggable context and never secrets. Errors raised
    from a submitted extrinsic also carry its ``tx_hash``.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "STORAGEHUB_E2E_ERROR",
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.tx_hash = tx_hash
        self.details = dict(details or {})

    def __str__(self) -> str:
        if self.tx_hash:
            return f"{self.code}: {self.message} (tx {self.tx_hash})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Structured form for log records; ``tx_hash`` only when set."""
        data: Dict[str, Any] = {
            **self.details,
            "type": type(self).__name__,
            "code": self.code,
            "message": self.message,
        }
        if self.tx_hash:
            data["tx_hash"] = self.tx_hash
        return data


class ConfigurationError(StorageHubE2EError):
    """
    Raised when required settings are missing or invalid.

    Example:
        >>> raise ConfigurationError("PRIVATE_KEY is not set", setting="PRIVATE_KEY")
    """

    def __init__(
        self,
        message: str,
        *,
        setting: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if setting:
            details["setting"] = setting

        super().__init__(message, code="CONFIGURATION_ERROR", details=details)
        self.setting = setting


class PollingTimeoutError(StorageHubE2EError):
    """
    Raised when a poll loop exhausts its attempt budget.

    Example:
        >>> raise PollingTimeoutError("file 0xabc ready in MSP backend", 144, 5000)
    """

    def __init__(
        self,
        description: str,
        max_attempts: int,
        interval_ms: int,
        *,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["max_attempts"] = max_attempts
        details["interval_ms"] = interval_ms
        elapsed_ms = max_attempts * interval_ms
        details["elapsed_ms"] = elapsed_ms

        super().__init__(
            f"Timed out waiting for {description} after {max_attempts} attempts "
            f"({elapsed_ms} ms)",
            code="POLLING_TIMEOUT",
            details=details,
        )
        self.description = description
        self.max_attempts = max_attempts
        self.interval_ms = interval_ms
        self.elapsed_ms = elapsed_ms
