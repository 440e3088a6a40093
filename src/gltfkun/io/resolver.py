"""URI resolvers: strategies for fetching the bytes a document references."""

from __future__ import annotations

import base64
import binascii
import inspect
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Awaitable, Callable, Union
from urllib.parse import unquote

from ..errors import E_DATA_URI, E_RESOLVE, ResolverError
from ..utils.paths import safe_file_path

__all__ = [
    "Resolver",
    "DataUriResolver",
    "FileResolver",
    "CallbackResolver",
    "is_data_uri",
    "decode_data_uri",
    "encode_data_uri",
]

_DATA_PREFIX = "data:"


def is_data_uri(uri: str) -> bool:
    return uri.startswith(_DATA_PREFIX)


def decode_data_uri(uri: str) -> bytes:
    """Decode ``data:[mime][;base64],<payload>``.

    Non-base64 payloads are percent-decoded text.
    """
    if not is_data_uri(uri):
        raise ResolverError(
            code=E_DATA_URI,
            message="data URI must start with 'data:'",
            context={"uri": uri[:32]},
        )
    header, sep, payload = uri[len(_DATA_PREFIX) :].partition(",")
    if not sep:
        raise ResolverError(
            code=E_DATA_URI,
            message="data URI has no ',' separator",
            context={"uri": uri[:32]},
        )
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ResolverError(
                code=E_DATA_URI,
                message=f"invalid base64 payload: {exc}",
                context={"uri": uri[:32]},
            ) from exc
    return unquote(payload).encode("utf-8")


def encode_data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


class Resolver(ABC):
    @abstractmethod
    async def resolve(self, uri: str) -> bytes:
        """Return the bytes ``uri`` names, or raise :class:`ResolverError`."""


class DataUriResolver(Resolver):
    async def resolve(self, uri: str) -> bytes:
        return decode_data_uri(uri)


class FileResolver(Resolver):
    """Reads URIs as paths relative to the document's directory.

    Percent-encoded characters are decoded; paths escaping ``base_dir``
    are refused.
    """

    def __init__(self, base_dir: Union[str, Path]) -> None:
        self.base_dir = Path(base_dir)

    def path_for(self, uri: str) -> Path:
        try:
            return safe_file_path(self.base_dir, unquote(uri))
        except ValueError:
            raise ResolverError(
                code=E_RESOLVE,
                message=f"{uri} escapes {self.base_dir}",
                context={"uri": uri},
            ) from None

    def resolve_sync(self, uri: str) -> bytes:
        path = self.path_for(uri)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise ResolverError(
                code=E_RESOLVE,
                message=f"cannot read {path}: {exc.strerror or exc}",
                context={"uri": uri},
            ) from exc

    async def resolve(self, uri: str) -> bytes:
        return self.resolve_sync(uri)


HostCallback = Callable[[str], Union[bytes, Awaitable[bytes]]]


class CallbackResolver(Resolver):
    """Delegates to a host-provided callable (sync or async).

    Exceptions other than :class:`ResolverError` are wrapped so callers see
    one error type.
    """

    def __init__(self, callback: HostCallback) -> None:
        self.callback = callback

    async def resolve(self, uri: str) -> bytes:
        try:
            result: Any = self.callback(uri)
            if inspect.isawaitable(result):
                result = await result
        except ResolverError:
            raise
        except Exception as exc:
            raise ResolverError(
                code=E_RESOLVE,
                message=f"host resolver failed for {uri}: {exc}",
                context={"uri": uri},
            ) from exc
        if not isinstance(result, (bytes, bytearray, memoryview)):
            raise ResolverError(
                code=E_RESOLVE,
                message=f"host resolver returned {type(result).__name__}",
                context={"uri": uri},
            )
        return bytes(result)
