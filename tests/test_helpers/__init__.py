"""
Utilities for building clients against the in-memory chain in tests.
"""
from typing import Optional

from attendance_nft.client import AttendanceClient

from .chain import (
    ALICE, BOB, SIGNER_ADDRESS, TEST_CONTRACT, TEST_PRIV_KEY, TEST_RPC_URL,
    FakeSigner, InMemoryChain, make_approval_log, make_erc20_transfer_log,
    make_transfer_log, offline_contract,
)


def create_test_client(
    chain: Optional[InMemoryChain] = None,
    signer=None,
    account: Optional[str] = None,
    **kwargs
) -> AttendanceClient:
    """
    Create a client wired to an in-memory chain.

    Uses a FakeSigner unless a signer or a provider-managed account is given.
    """
    chain = chain or InMemoryChain()
    if signer is None and account is None:
        signer = FakeSigner()
    return AttendanceClient(
        contract_address=TEST_CONTRACT,
        w3=chain.w3,
        signer=signer,
        account=account,
        **kwargs
    )
