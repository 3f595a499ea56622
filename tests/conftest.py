"""
Pytest fixtures for the Attendance NFT tests.
"""
import pytest
from web3.providers.rpc import HTTPProvider

from attendance_nft.config import Settings
from attendance_nft.server import create_app
from tests.test_helpers import InMemoryChain, TEST_CONTRACT, create_test_client


@pytest.fixture(autouse=True)
def _patch_http_provider(monkeypatch):
    """
    Stub every Web3 HTTP call so no DNS / network traffic is triggered.
    Works for all tests because it is autouse.
    """
    def _dummy(self, method, params=None, _=None):
        if method == "eth_chainId":
            return {"jsonrpc": "2.0", "id": 1, "result": "0x539"}  # ganache
        return {"jsonrpc": "2.0", "id": 1, "result": "0x0"}

    monkeypatch.setattr(HTTPProvider, "make_request", _dummy, raising=True)


@pytest.fixture
def chain():
    return InMemoryChain()


@pytest.fixture
def client(chain):
    return create_test_client(chain)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        rpc_url="http://localhost:7545",
        private_key=None,
        contract_address=TEST_CONTRACT,
        frontend_url="http://localhost:5173",
        static_dir=str(tmp_path),
    )


@pytest.fixture
def app(settings, client):
    app = create_app(settings, client=client)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def http(app):
    return app.test_client()
