from __future__ import annotations

"""Identifier/address codecs and the per-platform binary field table.

Identifiers are opaque server-scoped strings. Addresses are their shareable
form. The codec is selected per chain (see `make_address_codec`) so the
address grammar is configuration, not a hard-coded format.
"""

import re
from urllib.parse import urlsplit

from .errors import MalformedAddressError, UnsupportedPlatformError, ValidationError

_IDENTIFIER_RE = re.compile(r"^[^/\s]+$")

_BINARY_FIELDS: dict[str, dict[str, str]] = {
    "LINUX": {
        "IX86": "linux_ix86uri",
        "PPC": "linux_ppcuri",
        "AMD64": "linux_amd64uri",
        "X86_64": "linux_x86_64uri",
        "IA64": "linux_ia64uri",
    },
    "WIN32": {
        "IX86": "win32_ix86uri",
        "AMD64": "win32_amd64uri",
        "X86_64": "win32_x86_64uri",
    },
    "MACOSX": {
        "IX86": "macos_ix86uri",
        "X86_64": "macos_x86_64uri",
        "PPC": "macos_ppcuri",
    },
}
_JAVA_FIELD = "javauri"


def binary_field_name(os_name: str | None, cpu: str | None) -> str:
    """Return the app descriptor key holding the binary for a platform."""
    if not os_name or not cpu:
        raise UnsupportedPlatformError(f"os and cpu are required (os={os_name!r}, cpu={cpu!r})")
    os_key = os_name.strip().upper()
    cpu_key = cpu.strip().upper()
    if os_key == "JAVA":
        return _JAVA_FIELD
    field_name = _BINARY_FIELDS.get(os_key, {}).get(cpu_key)
    if field_name is None:
        raise UnsupportedPlatformError(f"unsupported platform {os_key}/{cpu_key}")
    return field_name


def supported_platforms() -> list[tuple[str, str]]:
    """List every (os, cpu) pair with a dedicated binary field."""
    pairs = [(os_key, cpu_key) for os_key, cpus in _BINARY_FIELDS.items() for cpu_key in cpus]
    return sorted(pairs)


class AddressCodec:
    """Reversible mapping between identifiers and shareable addresses."""

    scheme = ""

    def encode(self, identifier: str) -> str:
        raise NotImplementedError

    def decode(self, address: str) -> str:
        raise NotImplementedError


class XWAddressCodec(AddressCodec):
    """`xw://<host>/<uid>` addresses as used by xwhep servers.

    The host part is informational: decoding accepts any host because result
    addresses carry whatever hostname the server knows itself by.
    """

    scheme = "xw"

    def __init__(self, host: str, scheme: str = "xw") -> None:
        if not host:
            raise ValidationError("address codec requires a host")
        self.host = host
        self.scheme = scheme
        self._address_re = re.compile(
            r"^%s://(?P<host>[^/\s]+)/(?P<uid>[^/\s]+)$" % re.escape(scheme)
        )

    def encode(self, identifier: str) -> str:
        if not isinstance(identifier, str) or not _IDENTIFIER_RE.match(identifier):
            raise ValidationError(f"invalid identifier: {identifier!r}")
        return f"{self.scheme}://{self.host}/{identifier}"

    def decode(self, address: str) -> str:
        match = self._address_re.match(address.strip()) if isinstance(address, str) else None
        if match is None:
            raise MalformedAddressError(f"malformed {self.scheme} address: {address!r}")
        return match.group("uid")


_CODECS = {"xw": XWAddressCodec}


def make_address_codec(server_url: str, scheme: str = "xw") -> AddressCodec:
    """Build the codec configured for a server endpoint."""
    codec_cls = _CODECS.get(scheme)
    if codec_cls is None:
        raise ValidationError(f"unknown address scheme {scheme!r}")
    host = urlsplit(server_url).hostname
    if not host:
        raise ValidationError(f"cannot derive address host from server url {server_url!r}")
    return codec_cls(host, scheme=scheme)
