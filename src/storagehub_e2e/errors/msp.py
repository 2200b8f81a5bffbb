"""
Exceptions raised while talking to the Main Storage Provider (MSP) backend.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from storagehub_e2e.errors.base import StorageHubE2EError


class MspError(StorageHubE2EError):
    """
    Base exception for MSP backend operations.

    Example:
        >>> raise MspError("MSP backend unreachable", base_url="http://127.0.0.1:8080")
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "MSP_ERROR",
        base_url: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if base_url:
            details["base_url"] = base_url

        super().__init__(message, code=code, details=details)
        self.base_url = base_url


class MspRequestError(MspError):
    """
    Raised when the MSP backend answers with a non-success HTTP status.

    Example:
        >>> raise MspRequestError("GET", "/info", 500, body={"error": "boom"})
    """

    def __init__(
        self,
        method: str,
        path: str,
        status_code: int,
        *,
        body: Any = None,
        code: str = "MSP_REQUEST_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["method"] = method
        details["path"] = path
        details["status_code"] = status_code
        if body is not None:
            details["body"] = body

        super().__init__(
            f"{method} {path} failed: HTTP {status_code}",
            code=code,
            details=details,
        )
        self.method = method
        self.path = path
        self.status_code = status_code
        self.body = body


class MspNotFoundError(MspRequestError):
    """Raised for 404 responses and "Record not found" bodies."""

    def __init__(
        self,
        method: str,
        path: str,
        status_code: int = 404,
        *,
        body: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            method,
            path,
            status_code,
            body=body,
            code="MSP_NOT_FOUND",
            details=details,
        )


class MspAuthenticationError(MspError):
    """
    Raised when sign-in fails or an authenticated call has no session.

    Example:
        >>> raise MspAuthenticationError("No session token")
    """

    def __init__(
        self,
        message: str = "MSP authentication failed",
        *,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code="MSP_AUTH_ERROR", details=details)


class ProviderCapabilityError(MspError):
    """Base exception for an MSP that lacks something the workflow needs."""


class MultiaddressesMissingError(ProviderCapabilityError):
    """Raised when the MSP reports no libp2p multiaddresses."""

    def __init__(
        self,
        msp_id: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if msp_id:
            details["msp_id"] = msp_id

        super().__init__(
            "MSP multiaddresses are missing",
            code="MULTIADDRESSES_MISSING",
            details=details,
        )
        self.msp_id = msp_id


class PeerIdNotFoundError(ProviderCapabilityError):
    """Raised when no MSP multiaddress carries a /p2p/<peerId> segment."""

    def __init__(
        self,
        multiaddresses: list,
        *,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["multiaddresses"] = list(multiaddresses)

        super().__init__(
            "No peer ID found: MSP multiaddresses had no /p2p/<peerId> segment",
            code="PEER_ID_NOT_FOUND",
            details=details,
        )
        self.multiaddresses = list(multiaddresses)


class NoValuePropositionsError(ProviderCapabilityError):
    """Raised when the MSP offers no value propositions for bucket creation."""

    def __init__(
        self,
        *,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            "No value propositions available from MSP",
            code="NO_VALUE_PROPOSITIONS",
            details=details,
        )


class UploadFailedError(MspError):
    """
    Raised when the MSP does not acknowledge an upload.

    Example:
        >>> raise UploadFailedError("0xfile...", status="upload_failed")
    """

    def __init__(
        self,
        file_key: str,
        *,
        status: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["file_key"] = file_key
        if status:
            details["status"] = status

        message = f"File upload to MSP failed for {file_key}"
        if status:
            message += f" (status: {status})"

        super().__init__(message, code="UPLOAD_FAILED", details=details)
        self.file_key = file_key
        self.status = status


class DownloadFailedError(MspError):
    """
    Raised when a download request does not return HTTP 200.

    Example:
        >>> raise DownloadFailedError("0xfile...", 500)
    """

    def __init__(
        self,
        file_key: str,
        status_code: int,
        *,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["file_key"] = file_key
        details["status_code"] = status_code

        super().__init__(
            f"Download failed with status: {status_code}",
            code="DOWNLOAD_FAILED",
            details=details,
        )
        self.file_key = file_key
        self.status_code = status_code


# ============================================================================
# Terminal file states
# ============================================================================


class TerminalFileStateError(MspError):
    """
    Base exception for file states that will never become ready.

    Raised on the first observation, without spending the remaining poll budget.
    """

    status = "unknown"
    default_message = "File reached a terminal state"
    error_code = "TERMINAL_FILE_STATE"

    def __init__(
        self,
        file_key: str,
        *,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["file_key"] = file_key
        details["status"] = self.status

        super().__init__(
            message or self.default_message,
            code=self.error_code,
            details=details,
        )
        self.file_key = file_key


class FileRevokedError(TerminalFileStateError):
    """Storage request was revoked: the upload was cancelled by the user."""

    status = "revoked"
    default_message = "File upload was cancelled by user"
    error_code = "FILE_REVOKED"


class FileRejectedError(TerminalFileStateError):
    """Storage request was rejected by the MSP."""

    status = "rejected"
    default_message = "File upload was rejected by MSP"
    error_code = "FILE_REJECTED"


class FileExpiredError(TerminalFileStateError):
    """Storage request expired before enough BSPs replicated the file."""

    status = "expired"
    default_message = (
        "Storage request expired: the required number of BSP replicas "
        "was not achieved within the deadline"
    )
    error_code = "FILE_EXPIRED"
