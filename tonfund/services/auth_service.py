"""Wallet sign-in: proof verification followed by token issuance."""

from __future__ import annotations

import logging

from tonfund.schemas.auth import CheckProofRequest
from tonfund.services.proof_service import ProofVerifier, TonProofData
from tonfund.services.token_service import AccessTokenIssuer
from tonfund.services.user_service import UserService
from tonfund.utils.errors import AppError

logger = logging.getLogger(__name__)


class AuthService:
    """Turn a verified ``ton_proof`` into a session token."""

    def __init__(
        self,
        verifier: ProofVerifier,
        issuer: AccessTokenIssuer,
        users: UserService,
    ) -> None:
        self.verifier = verifier
        self.issuer = issuer
        self.users = users

    def check_proof(self, request: CheckProofRequest, now: int | None = None) -> str:
        """Verify the proof, make sure the user exists, and return a token."""
        proof = request.proof
        data = TonProofData(
            domain_length_bytes=proof.domain.length_bytes,
            domain_value=proof.domain.value,
            payload=proof.payload,
            signature=proof.signature,
            timestamp=proof.timestamp,
            state_init=proof.state_init,
        )
        try:
            address = self.verifier.verify(request.address, data, now=now)
        except AppError as exc:
            logger.info("Rejected ton_proof for %s: %s", request.address, exc.code)
            raise

        self.users.ensure(address.raw)
        return self.issuer.issue(address.raw)
