"""
MSP Client - Main Storage Provider backend over HTTP.

Wraps the MSP backend REST API: provider info and health, value
propositions, sign-in, bucket and file status, upload and download.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

import httpx
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from pydantic import BaseModel, ValidationError

from storagehub_e2e.errors import (
    DownloadFailedError,
    MspAuthenticationError,
    MspError,
    MspNotFoundError,
    MspRequestError,
)
from storagehub_e2e.msp.types import (
    BucketInfo,
    DownloadedFile,
    FileInfo,
    HealthStatus,
    InfoResponse,
    MspSession,
    NonceResponse,
    UploadReceipt,
    UserProfile,
    ValueProp,
    VerifyResponse,
)
from storagehub_e2e.utils.logging import get_logger

_logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
DOWNLOAD_CHUNK_SIZE = 64 * 1024

RECORD_NOT_FOUND_MARKERS = ("not found: record", "record not found")

M = TypeVar("M", bound=BaseModel)


def _is_record_not_found(body: Any) -> bool:
    if not isinstance(body, dict):
        return False
    error = body.get("error") or body.get("message")
    return isinstance(error, str) and error.strip().lower() in RECORD_NOT_FOUND_MARKERS


class MspClient:
    """
    HTTP client for one MSP backend.

    The client owns an explicit ``MspSession``: it is created by
    ``authenticate`` and cleared by ``logout``. While a session exists every
    request carries ``Authorization: Bearer <token>``.

    Example:
        ```python
        async with MspClient("https://msp.example") as msp:
            info = await msp.get_info()
            await msp.authenticate(account, chain_id=55931)
            receipt = await msp.upload_file(bucket_id, file_key, "a.txt", account.address, "a.txt")
        ```
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/") + "/"
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )
        self._session: Optional[MspSession] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def session(self) -> Optional[MspSession]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    async def __aenter__(self) -> "MspClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self.logout()
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Provider info
    # ------------------------------------------------------------------

    async def get_health(self) -> HealthStatus:
        return self._parse(HealthStatus, await self._request("GET", "/health"), "/health")

    async def get_info(self) -> InfoResponse:
        info = self._parse(InfoResponse, await self._request("GET", "/info"), "/info")
        _logger.info("MSP info", extra={"msp_id": info.msp_id, "version": info.version})
        return info

    async def get_value_propositions(self) -> List[ValueProp]:
        body = await self._request("GET", "/value-props")
        if not isinstance(body, list):
            return []
        return [self._parse(ValueProp, item, "/value-props") for item in body]

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def authenticate(
        self,
        account: LocalAccount,
        chain_id: int,
        *,
        domain: str = "localhost",
        uri: str = "http://localhost",
    ) -> UserProfile:
        """
        Sign in with an Ethereum account (challenge/response).

        Requests a sign-in message for the account, signs it with EIP-191
        ``personal_sign`` and exchanges the signature for a session token.
        In development domain and uri may be placeholders; in production they
        must match the frontend origin.

        Returns:
            The authenticated user's profile

        Raises:
            MspAuthenticationError: If the backend refuses the challenge or signature
        """
        _logger.info("Authenticating with MSP", extra={"address": account.address})
        try:
            challenge = self._parse(
                NonceResponse,
                await self._request(
                    "POST",
                    "/auth/nonce",
                    json={
                        "address": account.address,
                        "chainId": chain_id,
                        "domain": domain,
                        "uri": uri,
                    },
                ),
                "/auth/nonce",
            )
            signed = account.sign_message(encode_defunct(text=challenge.message))
            verified = self._parse(
                VerifyResponse,
                await self._request(
                    "POST",
                    "/auth/verify",
                    json={
                        "message": challenge.message,
                        "signature": "0x" + bytes(signed.signature).hex(),
                    },
                ),
                "/auth/verify",
            )
        except MspRequestError as e:
            raise MspAuthenticationError(
                f"Sign-in failed: HTTP {e.status_code}",
                details={"path": e.path, "status_code": e.status_code},
            ) from e

        self._session = MspSession(token=verified.token, address=account.address)
        return await self.get_profile()

    async def get_profile(self) -> UserProfile:
        self._require_session()
        path = "/auth/profile"
        return self._parse(UserProfile, await self._request("GET", path), path)

    def logout(self) -> None:
        """Drop the current session, if any."""
        if self._session is not None:
            _logger.debug("MSP session cleared", extra={"address": self._session.address})
        self._session = None

    # ------------------------------------------------------------------
    # Buckets and files
    # ------------------------------------------------------------------

    async def get_bucket(self, bucket_id: str) -> BucketInfo:
        path = f"/buckets/{bucket_id}"
        return self._parse(BucketInfo, await self._request("GET", path), path)

    async def get_file_info(self, bucket_id: str, file_key: str) -> FileInfo:
        path = f"/buckets/{bucket_id}/info/{file_key}"
        return self._parse(FileInfo, await self._request("GET", path), path)

    async def upload_file(
        self,
        bucket_id: str,
        file_key: str,
        path: Union[str, os.PathLike],
        owner: str,
        location: str,
    ) -> UploadReceipt:
        """
        Upload the raw file bytes for an issued storage request.

        The file is streamed from disk as a multipart body.

        Raises:
            MspAuthenticationError: If there is no session
            MspRequestError: If the backend answers with an error status
        """
        self._require_session()
        endpoint = f"/buckets/{bucket_id}/upload/{file_key}"
        with Path(path).open("rb") as fh:
            body = await self._request(
                "PUT",
                endpoint,
                data={"owner": owner, "location": location},
                files={"file": (Path(location).name, fh, "application/octet-stream")},
            )
        return self._parse(UploadReceipt, body, endpoint)

    async def download_file(
        self,
        file_key: str,
        destination: Union[str, os.PathLike],
    ) -> DownloadedFile:
        """
        Stream a file's bytes to ``destination``.

        The destination is fully written and closed before its size is read.

        Raises:
            DownloadFailedError: If the response status is not 200
            OSError: If writing the destination fails
        """
        destination = Path(destination)
        path = f"/download/{file_key}"
        try:
            async with self._http.stream("GET", path, headers=self._headers()) as response:
                if response.status_code != 200:
                    raise DownloadFailedError(file_key, response.status_code)
                mime = response.headers.get("content-type")
                with destination.open("wb") as fh:
                    async for chunk in response.aiter_bytes(DOWNLOAD_CHUNK_SIZE):
                        fh.write(chunk)
        except httpx.TransportError as e:
            raise MspError(
                f"GET {path} failed: {e}",
                code="MSP_UNREACHABLE",
                base_url=self._base_url,
            ) from e

        return DownloadedFile(path=destination, size=destination.stat().st_size, mime=mime)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_session(self) -> MspSession:
        if self._session is None:
            raise MspAuthenticationError("Not authenticated with MSP: call authenticate() first")
        return self._session

    def _parse(self, model: Type[M], body: Any, path: str) -> M:
        try:
            return model.model_validate(body)
        except ValidationError as e:
            fields = sorted({".".join(str(p) for p in err["loc"]) or "<root>" for err in e.errors()})
            raise MspError(
                f"Unexpected response body from {path}",
                code="MSP_BAD_RESPONSE",
                base_url=self._base_url,
                details={"path": path, "fields": fields},
            ) from e

    def _headers(self) -> Dict[str, str]:
        if self._session is None:
            return {}
        return {"Authorization": f"Bearer {self._session.token}"}

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._http.request(method, path, headers=self._headers(), **kwargs)
        except httpx.TransportError as e:
            raise MspError(
                f"{method} {path} failed: {e}",
                code="MSP_UNREACHABLE",
                base_url=self._base_url,
            ) from e

        body: Any = None
        if response.content:
            try:
                body = response.json()
            except ValueError:
                body = response.text

        if response.status_code == 404 or _is_record_not_found(body):
            raise MspNotFoundError(method, path, response.status_code, body=body)
        if not 200 <= response.status_code < 300:
            raise MspRequestError(method, path, response.status_code, body=body)
        return body
