"""Service package exports with lazy loading."""

from __future__ import annotations

from importlib import import_module
from typing import Any

_EXPORTS = {
    "AccessTokenIssuer": "tonfund.services.token_service",
    "AuthService": "tonfund.services.auth_service",
    "BurnService": "tonfund.services.burn_service",
    "CharityService": "tonfund.services.charity_service",
    "CompanyService": "tonfund.services.company_service",
    "DonationService": "tonfund.services.donation_service",
    "LedgerService": "tonfund.services.ledger_service",
    "MediaService": "tonfund.services.media_service",
    "ProofVerifier": "tonfund.services.proof_service",
    "SupabaseService": "tonfund.services.common",
    "UserService": "tonfund.services.user_service",
    "VoteService": "tonfund.services.vote_service",
}

__all__ = sorted(_EXPORTS.keys())


def __getattr__(name: str) -> Any:
    if name not in _EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = import_module(_EXPORTS[name])
    return getattr(module, name)
