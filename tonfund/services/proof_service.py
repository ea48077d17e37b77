"""TON Connect proof-of-ownership verification.

A client first asks for a payload, has its wallet sign a ``ton_proof`` over
it, then sends the proof back. The payload is self-verifying: 8 random bytes,
an 8-byte big-endian expiry and the first 16 bytes of an HMAC-SHA256 over
those 16 bytes, so nothing is stored between the two calls.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import logging
import secrets
import struct
from dataclasses import dataclass
from typing import Protocol

from nacl.exceptions import BadSignatureError, CryptoError
from nacl.signing import VerifyKey

from tonfund.config import Settings
from tonfund.utils.errors import BadRequestError, ConfigurationError, UnauthorizedError
from tonfund.utils.ton_address import Address, AddressError
from tonfund.utils.time import unix_now

logger = logging.getLogger(__name__)

TON_PROOF_PREFIX = b"ton-proof-item-v2/"
TON_CONNECT_PREFIX = b"ton-connect"
PAYLOAD_LENGTH = 32
PAYLOAD_BODY_LENGTH = 16


@dataclass(frozen=True)
class ProofConfig:
    """Settings the verifier needs, passed in explicitly."""

    secret: str
    domain: str
    payload_ttl_seconds: int = 15 * 60
    proof_ttl_seconds: int = 5 * 60

    def __post_init__(self) -> None:
        if not self.secret:
            raise ConfigurationError("SECRET")
        if not self.domain:
            raise ConfigurationError("PROOF_DOMAIN")

    @classmethod
    def from_settings(cls, config: Settings) -> ProofConfig:
        return cls(
            secret=config.secret,
            domain=config.proof_domain,
            payload_ttl_seconds=config.payload_ttl_seconds,
            proof_ttl_seconds=config.proof_ttl_seconds,
        )


@dataclass(frozen=True)
class TonProofData:
    """The ``ton_proof`` item as sent by the wallet."""

    domain_length_bytes: int
    domain_value: str
    payload: str
    signature: str
    timestamp: int
    state_init: str = ""


class PublicKeyFetcher(Protocol):
    def get_account_public_key(self, account_id: str) -> bytes: ...


def build_proof_message(address: Address, domain: str, timestamp: int, payload: str) -> bytes:
    """Return the message a wallet signs for ``ton_proof``."""
    domain_bytes = domain.encode("utf-8")
    return b"".join(
        [
            TON_PROOF_PREFIX,
            struct.pack(">i", address.workchain),
            address.hash_part,
            struct.pack("<I", len(domain_bytes)),
            domain_bytes,
            struct.pack("<Q", timestamp),
            payload.encode("utf-8"),
        ]
    )


def proof_signing_hash(message: bytes) -> bytes:
    """Wrap the message hash the way TON Connect wallets do before signing."""
    message_hash = hashlib.sha256(message).digest()
    return hashlib.sha256(b"\xff\xff" + TON_CONNECT_PREFIX + message_hash).digest()


class ProofVerifier:
    """Issue payloads and verify wallet proofs over them."""

    def __init__(self, config: ProofConfig, public_keys: PublicKeyFetcher | None = None) -> None:
        self.config = config
        self.public_keys = public_keys

    def _mac(self, body: bytes) -> bytes:
        return hmac.new(self.config.secret.encode("utf-8"), body, hashlib.sha256).digest()

    def generate_payload(self, now: int | None = None) -> str:
        """Return a hex payload valid for the configured payload TTL."""
        issued_at = unix_now() if now is None else now
        body = secrets.token_bytes(8) + struct.pack(
            ">Q", issued_at + self.config.payload_ttl_seconds
        )
        return (body + self._mac(body))[:PAYLOAD_LENGTH].hex()

    def check_payload(self, payload_hex: str, now: int | None = None) -> bytes:
        """Validate a payload issued by :meth:`generate_payload`."""
        try:
            payload = bytes.fromhex(payload_hex)
        except ValueError as exc:
            raise BadRequestError("Payload is not valid hex", code="INVALID_PAYLOAD") from exc

        if len(payload) != PAYLOAD_LENGTH:
            raise BadRequestError(
                f"Invalid payload length, got {len(payload)}, expected {PAYLOAD_LENGTH}",
                code="INVALID_PAYLOAD",
            )

        body = payload[:PAYLOAD_BODY_LENGTH]
        expected = self._mac(body)[:PAYLOAD_BODY_LENGTH]
        if not hmac.compare_digest(payload[PAYLOAD_BODY_LENGTH:], expected):
            raise UnauthorizedError("Invalid payload signature", code="BAD_PAYLOAD_SIGNATURE")

        current = unix_now() if now is None else now
        (expires_at,) = struct.unpack(">Q", payload[8:16])
        if current > expires_at:
            raise UnauthorizedError("Payload expired", code="PAYLOAD_EXPIRED")
        return payload

    def verify(self, address: str, proof: TonProofData, now: int | None = None) -> Address:
        """Verify a wallet proof and return the parsed wallet address."""
        current = unix_now() if now is None else now
        self.check_payload(proof.payload, now=current)

        if current > proof.timestamp + self.config.proof_ttl_seconds:
            raise UnauthorizedError("Ton proof has expired", code="PROOF_EXPIRED")

        if proof.domain_value != self.config.domain:
            raise BadRequestError(
                f"Wrong domain, got {proof.domain_value}, expected {self.config.domain}",
                code="WRONG_DOMAIN",
            )
        if proof.domain_length_bytes != len(proof.domain_value.encode("utf-8")):
            raise BadRequestError(
                "Domain length mismatched against provided length bytes "
                f"of {proof.domain_length_bytes}",
                code="DOMAIN_LENGTH_MISMATCH",
            )

        try:
            parsed = Address.parse(address)
        except AddressError as exc:
            raise BadRequestError(str(exc), code="INVALID_ADDRESS") from exc

        message = build_proof_message(parsed, proof.domain_value, proof.timestamp, proof.payload)
        signed_hash = proof_signing_hash(message)

        if self.public_keys is None:
            raise ConfigurationError("TONAPI_KEY")
        public_key = self.public_keys.get_account_public_key(parsed.raw)

        try:
            signature = base64.b64decode(proof.signature, validate=True)
            VerifyKey(public_key).verify(signed_hash, signature)
        except (binascii.Error, ValueError, BadSignatureError, CryptoError) as exc:
            raise UnauthorizedError("Verification failed", code="SIGNATURE_INVALID") from exc

        logger.info("Verified ton_proof for %s", parsed.raw)
        return parsed
