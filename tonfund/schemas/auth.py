"""Wallet authentication schemas."""

from typing import Literal

from pydantic import BaseModel, Field

NETWORKS = {"-239": "mainnet", "-3": "testnet"}


class GeneratePayloadResponse(BaseModel):
    """A fresh proof payload for the wallet to sign."""

    payload: str


class TonDomain(BaseModel):
    """Domain the proof is bound to, as reported by the wallet."""

    model_config = {"populate_by_name": True}

    length_bytes: int = Field(..., alias="lengthBytes", ge=0)
    value: str


class TonProof(BaseModel):
    """Signed ``ton_proof`` item."""

    domain: TonDomain
    payload: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)
    state_init: str = ""
    timestamp: int = Field(..., ge=0)


class CheckProofRequest(BaseModel):
    """Request body for proof verification."""

    address: str = Field(..., min_length=1)
    network: Literal["-239", "-3"]
    proof: TonProof

    @property
    def network_name(self) -> str:
        """Return ``mainnet`` or ``testnet``."""
        return NETWORKS[self.network]


class CheckProofResponse(BaseModel):
    """Session credential issued after a valid proof."""

    token: str
