from __future__ import annotations

import uuid

import pytest

from offchainsubmit.addressing import (
    XWAddressCodec,
    binary_field_name,
    make_address_codec,
    supported_platforms,
)
from offchainsubmit.errors import (
    MalformedAddressError,
    UnsupportedPlatformError,
    ValidationError,
)


@pytest.mark.parametrize(
    "uid",
    ["abc123", str(uuid.uuid4()), "0", "a.b-c_d~e", "UPPER-lower-123"],
)
def test_address_round_trip(uid: str) -> None:
    codec = XWAddressCodec("server.test")
    assert codec.decode(codec.encode(uid)) == uid


def test_encode_uses_scheme_and_host() -> None:
    codec = XWAddressCodec("server.test")
    assert codec.encode("abc123") == "xw://server.test/abc123"


def test_decode_accepts_addresses_from_other_hosts() -> None:
    codec = XWAddressCodec("server.test")
    assert codec.decode("xw://internal-name.local/abc123") == "abc123"


@pytest.mark.parametrize(
    "address",
    [
        "",
        "abc123",
        "http://server.test/abc123",
        "xw://server.test/",
        "xw://server.test/a/b",
        "xw:///abc123",
    ],
)
def test_decode_rejects_malformed_addresses(address: str) -> None:
    codec = XWAddressCodec("server.test")
    with pytest.raises(MalformedAddressError):
        codec.decode(address)


@pytest.mark.parametrize("uid", ["", "a/b", "has space"])
def test_encode_rejects_values_outside_identifier_space(uid: str) -> None:
    codec = XWAddressCodec("server.test")
    with pytest.raises(ValidationError):
        codec.encode(uid)


def test_make_address_codec_uses_server_hostname() -> None:
    codec = make_address_codec("https://work.example.org:443/api")
    assert codec.encode("u1") == "xw://work.example.org/u1"


def test_make_address_codec_rejects_unknown_scheme() -> None:
    with pytest.raises(ValidationError, match="unknown address scheme"):
        make_address_codec("https://work.example.org", scheme="ipfs")


@pytest.mark.parametrize("os_name,cpu", supported_platforms())
def test_binary_field_name_is_stable_for_supported_pairs(os_name: str, cpu: str) -> None:
    first = binary_field_name(os_name, cpu)
    assert first == binary_field_name(os_name, cpu)
    assert first == binary_field_name(os_name.lower(), cpu.lower())
    assert first.endswith("uri")


def test_binary_field_name_known_values() -> None:
    assert binary_field_name("LINUX", "AMD64") == "linux_amd64uri"
    assert binary_field_name("macosx", "x86_64") == "macos_x86_64uri"
    assert binary_field_name("JAVA", "anything") == "javauri"


@pytest.mark.parametrize(
    "os_name,cpu",
    [("LINUX", "SPARC"), ("BEOS", "IX86"), ("WIN32", "PPC"), ("", ""), (None, "AMD64")],
)
def test_binary_field_name_rejects_unsupported_pairs(os_name: str, cpu: str) -> None:
    with pytest.raises(UnsupportedPlatformError):
        binary_field_name(os_name, cpu)
