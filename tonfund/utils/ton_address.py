"""TON account address parsing and formatting.

Two textual forms are accepted:

* raw: ``<workchain>:<64 hex chars>``
* user-friendly: 48 base64 (or base64url) chars encoding
  ``tag | workchain (int8) | hash (32 bytes) | crc16-xmodem (2 bytes)``
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass

BOUNCEABLE_TAG = 0x11
NON_BOUNCEABLE_TAG = 0x51
TESTNET_FLAG = 0x80
FRIENDLY_LENGTH = 48


class AddressError(ValueError):
    """Raised when a string is not a valid TON address."""


def crc16(data: bytes) -> bytes:
    """Return the big-endian CRC16-XMODEM checksum used by friendly addresses."""
    return binascii.crc_hqx(data, 0).to_bytes(2, "big")


@dataclass(frozen=True)
class Address:
    """A parsed account address: workchain id plus 32-byte account hash."""

    workchain: int
    hash_part: bytes

    @classmethod
    def parse(cls, value: str) -> Address:
        """Parse either textual form, raising AddressError on bad input."""
        text = (value or "").strip()
        if ":" in text:
            return cls._parse_raw(text)
        return cls._parse_friendly(text)

    @classmethod
    def _parse_raw(cls, text: str) -> Address:
        workchain_text, _, hash_text = text.partition(":")
        try:
            workchain = int(workchain_text)
            hash_part = bytes.fromhex(hash_text)
        except ValueError as exc:
            raise AddressError(f"Invalid raw address: {text}") from exc

        if len(hash_part) != 32:
            raise AddressError("Raw address hash must be 32 bytes")
        if not -(2**31) <= workchain < 2**31:
            raise AddressError("Workchain id out of range")
        return cls(workchain, hash_part)

    @classmethod
    def _parse_friendly(cls, text: str) -> Address:
        if len(text) != FRIENDLY_LENGTH:
            raise AddressError(f"Invalid address length: {len(text)}")

        try:
            data = base64.urlsafe_b64decode(text.replace("+", "-").replace("/", "_"))
        except (binascii.Error, ValueError) as exc:
            raise AddressError("Address is not valid base64") from exc

        if len(data) != 36:
            raise AddressError("Decoded address must be 36 bytes")

        tag = data[0] & ~TESTNET_FLAG
        if tag not in (BOUNCEABLE_TAG, NON_BOUNCEABLE_TAG):
            raise AddressError(f"Unknown address tag: {data[0]:#x}")
        if crc16(data[:34]) != data[34:]:
            raise AddressError("Address checksum mismatch")

        workchain = int.from_bytes(data[1:2], "big", signed=True)
        return cls(workchain, data[2:34])

    @property
    def raw(self) -> str:
        """Canonical ``wc:hex`` form used as the storage key."""
        return f"{self.workchain}:{self.hash_part.hex()}"

    def to_friendly(
        self,
        bounceable: bool = True,
        testnet: bool = False,
        url_safe: bool = True,
    ) -> str:
        """Render the 48-char user-friendly form."""
        tag = BOUNCEABLE_TAG if bounceable else NON_BOUNCEABLE_TAG
        if testnet:
            tag |= TESTNET_FLAG
        body = bytes([tag]) + self.workchain.to_bytes(1, "big", signed=True) + self.hash_part
        data = body + crc16(body)
        encoded = base64.urlsafe_b64encode(data) if url_safe else base64.b64encode(data)
        return encoded.decode("ascii")

    def __str__(self) -> str:
        return self.raw


def normalize_address(value: str) -> str:
    """Return the canonical raw form of any accepted address string."""
    return Address.parse(value).raw


def same_address(left: str | None, right: str | None) -> bool:
    """Compare two address strings regardless of their textual form."""
    if not left or not right:
        return False
    try:
        return Address.parse(left) == Address.parse(right)
    except AddressError:
        return False
