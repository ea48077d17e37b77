"""Wallet sign-in endpoints."""

from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, Depends, Response

from tonfund.config import settings
from tonfund.dependencies import get_db_client, get_token_issuer, get_tonapi_factory
from tonfund.schemas.auth import CheckProofRequest, CheckProofResponse, GeneratePayloadResponse
from tonfund.services.auth_service import AuthService
from tonfund.services.proof_service import ProofConfig, ProofVerifier
from tonfund.services.token_service import AccessTokenIssuer
from tonfund.services.user_service import UserService
from tonfund.utils.tonapi_client import TonApiClient
from supabase import Client

router = APIRouter()


@router.post("/generate_payload", response_model=GeneratePayloadResponse)
def generate_payload() -> dict:
    """Return a payload for the wallet to sign with ``ton_proof``."""
    verifier = ProofVerifier(ProofConfig.from_settings(settings))
    return {"payload": verifier.generate_payload()}


@router.post("/check_proof", response_model=CheckProofResponse)
def check_proof(
    payload: CheckProofRequest,
    response: Response,
    client: Client = Depends(get_db_client),
    issuer: AccessTokenIssuer = Depends(get_token_issuer),
    tonapi_factory: Callable[[str], TonApiClient] = Depends(get_tonapi_factory),
) -> dict:
    """Verify a signed proof and start a session for the wallet."""
    verifier = ProofVerifier(
        ProofConfig.from_settings(settings), tonapi_factory(payload.network_name)
    )
    service = AuthService(verifier, issuer, UserService(client))
    token = service.check_proof(payload)
    response.set_cookie(
        key=settings.access_cookie_name,
        value=token,
        max_age=issuer.max_age_seconds,
        httponly=True,
        secure=settings.access_cookie_secure,
        samesite="lax",
    )
    return {"token": token}
