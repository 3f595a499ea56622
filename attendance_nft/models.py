"""
Data models for the Attendance NFT relay.
"""
from typing import List
from pydantic import BaseModel, Field


class MintRequest(BaseModel):
    """Body of a mint request. Only presence and type are checked."""
    recipient: str
    metadata: str


class MintResult(BaseModel):
    """Outcome of a confirmed mint"""
    success: bool = True
    tx_hash: str = Field(..., alias="transactionHash")
    token_id: str = Field(..., alias="tokenId")

    class Config:
        populate_by_name = True


class TokenAttribute(BaseModel):
    trait_type: str
    value: str


class TokenDescriptor(BaseModel):
    """Display-oriented description of a token, built from its on-chain metadata"""
    name: str
    description: str
    image: str
    attributes: List[TokenAttribute]


class ErrorResponse(BaseModel):
    """Error body returned by the HTTP relay"""
    success: bool = False
    error: str
    kind: str
