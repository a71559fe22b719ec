"""Clients for the object store holding order attachments."""

from __future__ import annotations

import abc
import logging
import os
from pathlib import Path
from urllib.parse import quote, unquote, urlsplit

import httpx

from ..errors import ConfigurationError, OperationTimeoutError, PersistenceError

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
_DEFAULT_LOCAL_DIR = Path(__file__).resolve().parents[2] / "storage"


class StorageError(PersistenceError):
    """Raised when the object store rejects or fails a request."""


def attachment_key(order_id: str, filename: str) -> str:
    """Return the object key for a file attached to ``order_id``."""

    safe_name = Path(filename.replace("\\", "/")).name
    return f"attachments/{order_id}/{safe_name}"


class ObjectStorageClient(abc.ABC):
    """Interface implemented by object storage backends."""

    @abc.abstractmethod
    def put(self, key: str, content: bytes, content_type: str) -> str:
        """Store ``content`` under ``key`` and return its public URL."""

    @abc.abstractmethod
    def delete(self, key: str) -> None:
        """Remove the object stored under ``key``."""

    @abc.abstractmethod
    def key_from_url(self, url: str) -> str:
        """Recover the object key from a public URL returned by :meth:`put`."""


class HttpObjectStorageClient(ObjectStorageClient):
    """S3-style bucket reached over plain HTTP PUT/DELETE requests."""

    def __init__(
        self,
        *,
        endpoint: str | None,
        bucket: str | None,
        token: str | None,
        public_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not endpoint:
            raise ConfigurationError("OBJECT_STORAGE_ENDPOINT is required for HTTP storage.")
        if not bucket:
            raise ConfigurationError("OBJECT_STORAGE_BUCKET is required for HTTP storage.")
        if not token:
            raise ConfigurationError("OBJECT_STORAGE_TOKEN is required for HTTP storage.")
        self.endpoint = endpoint.rstrip("/")
        self.bucket = bucket
        self.public_url = (public_url or f"{self.endpoint}/{bucket}").rstrip("/")
        self.timeout = timeout
        self._client = httpx.Client(
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    def _object_url(self, key: str) -> str:
        return f"{self.endpoint}/{self.bucket}/{quote(key)}"

    def _send(self, method: str, key: str, **kwargs) -> httpx.Response:
        try:
            response = self._client.request(method, self._object_url(key), **kwargs)
        except httpx.TimeoutException as exc:
            raise OperationTimeoutError(
                "Object storage did not respond in time",
                error=f"{method} {key} exceeded {self.timeout:.0f}s",
            ) from exc
        except httpx.HTTPError as exc:
            raise StorageError("Could not reach object storage", error=str(exc)) from exc
        if response.status_code >= 400:
            raise StorageError(
                "Object storage rejected the request",
                error=f"{method} {key} returned {response.status_code}: {response.text}",
            )
        return response

    def put(self, key: str, content: bytes, content_type: str) -> str:
        self._send(
            "PUT",
            key,
            content=content,
            headers={"Content-Type": content_type, "x-amz-acl": "public-read"},
        )
        return f"{self.public_url}/{quote(key)}"

    def delete(self, key: str) -> None:
        self._send("DELETE", key)

    def key_from_url(self, url: str) -> str:
        prefix = f"{self.public_url}/"
        if url.startswith(prefix):
            return unquote(url[len(prefix):])
        # URLs written before a public_url change still carry the bucket segment.
        parts = unquote(urlsplit(url).path).lstrip("/").split("/")
        if self.bucket in parts:
            parts = parts[parts.index(self.bucket) + 1:]
        return "/".join(parts)

    def close(self) -> None:
        self._client.close()


class LocalObjectStorageClient(ObjectStorageClient):
    """Stores objects on the local disk; used for development and tests."""

    def __init__(self, root: str | os.PathLike[str], *, base_url: str = "/files") -> None:
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise StorageError("Invalid object key", error=f"{key!r} escapes the storage root")
        return path

    def put(self, key: str, content: bytes, content_type: str) -> str:
        path = self._path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as exc:
            raise StorageError("Could not write attachment", error=str(exc)) from exc
        LOGGER.debug("Stored %s (%s, %d bytes)", key, content_type, len(content))
        return f"{self.base_url}/{quote(key)}"

    def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink()
        except FileNotFoundError as exc:
            raise StorageError("Attachment file not found", error=key) from exc
        except OSError as exc:
            raise StorageError("Could not delete attachment", error=str(exc)) from exc

    def key_from_url(self, url: str) -> str:
        prefix = f"{self.base_url}/"
        if url.startswith(prefix):
            return unquote(url[len(prefix):])
        return unquote(urlsplit(url).path).lstrip("/")


def _read_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        LOGGER.warning("Invalid %s=%s; using %.1f", name, raw, default)
        return default
    return value if value > 0 else default


def build_storage_client_from_env(*, fallback_to_local: bool = True) -> ObjectStorageClient:
    """Instantiate the attachment store configured through environment variables."""

    transport = os.getenv("OBJECT_STORAGE_TRANSPORT", "auto").strip().lower()

    def _local(reason: str | None = None) -> ObjectStorageClient:
        if reason:
            LOGGER.warning("%s; attachments will be stored on local disk.", reason)
        return LocalObjectStorageClient(
            os.getenv("LOCAL_STORAGE_DIR", str(_DEFAULT_LOCAL_DIR)),
            base_url=os.getenv("LOCAL_STORAGE_BASE_URL", "/files"),
        )

    if transport in {"auto", "http"}:
        try:
            return HttpObjectStorageClient(
                endpoint=os.getenv("OBJECT_STORAGE_ENDPOINT"),
                bucket=os.getenv("OBJECT_STORAGE_BUCKET"),
                token=os.getenv("OBJECT_STORAGE_TOKEN"),
                public_url=os.getenv("OBJECT_STORAGE_PUBLIC_URL"),
                timeout=_read_float("OBJECT_STORAGE_TIMEOUT", DEFAULT_TIMEOUT),
            )
        except ConfigurationError as exc:
            if transport == "http" and not fallback_to_local:
                raise
            return _local(str(exc))

    return _local()
