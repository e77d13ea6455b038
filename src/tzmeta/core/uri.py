"""Parsing of metadata URIs (fetching them is someone else's job)."""

import re
from dataclasses import dataclass
from typing import Union
from urllib.parse import quote, unquote, urlsplit

from tzmeta.core.errors import MetadataUriError

KNOWN_SCHEMES = ("tezos-storage", "http", "https", "sha256", "ipfs")

_HEX_HOST_RE = re.compile(r"^0x([0-9a-fA-F]{2})+$")


@dataclass(frozen=True)
class WebUri:
    url: str


@dataclass(frozen=True)
class IpfsUri:
    cid: str
    path: str


@dataclass(frozen=True)
class StorageUri:
    """A key in the ``%metadata`` big-map; ``None`` network/address mean "current"."""

    network: str | None
    address: str | None
    key: str


@dataclass(frozen=True)
class Sha256Uri:
    value: bytes
    target: "MetadataUri"


MetadataUri = Union[WebUri, IpfsUri, StorageUri, Sha256Uri]


def _parse_storage(text: str, host: str, path: str) -> StorageUri:
    network: str | None = None
    address: str | None = None
    if host:
        parts = host.split(".")
        if len(parts) == 1:
            address = parts[0]
        elif len(parts) == 2 and all(parts):
            network, address = parts
        else:
            raise MetadataUriError("wrong_tezos_storage_host", text, host)
    key = path[1:] if path.startswith("/") else path
    if "/" in key:
        raise MetadataUriError("forbidden_slash_in_tezos_storage_path", text, path)
    return StorageUri(network=network, address=address, key=unquote(key))


def parse_metadata_uri(text: str) -> MetadataUri:
    parts = urlsplit(text)
    scheme = parts.scheme
    if scheme in ("http", "https"):
        return WebUri(text)
    if scheme == "ipfs":
        if not parts.netloc:
            raise MetadataUriError("missing_cid_for_ipfs", text)
        return IpfsUri(cid=parts.netloc, path=parts.path)
    if scheme == "tezos-storage":
        return _parse_storage(text, parts.netloc, parts.path)
    if scheme == "sha256":
        if not parts.netloc:
            raise MetadataUriError("missing_host_for_hash_uri", text)
        if not _HEX_HOST_RE.match(parts.netloc):
            raise MetadataUriError("wrong_hex_format_for_hash", text, parts.netloc)
        target = unquote(parts.path[1:] if parts.path.startswith("/") else parts.path)
        return Sha256Uri(value=bytes.fromhex(parts.netloc[2:]), target=parse_metadata_uri(target))
    raise MetadataUriError("wrong_scheme", text, scheme or None)


def to_uri_string(uri: MetadataUri) -> str:
    if isinstance(uri, WebUri):
        return uri.url
    if isinstance(uri, IpfsUri):
        return f"ipfs://{uri.cid}{uri.path}"
    if isinstance(uri, StorageUri):
        host = ".".join(p for p in (uri.network, uri.address) if p)
        if host:
            return f"tezos-storage://{host}/{uri.key}"
        return f"tezos-storage:{uri.key}"
    return f"sha256://0x{uri.value.hex()}/{quote(to_uri_string(uri.target), safe='')}"
