"""
Tests for Settings.
"""
import os
from unittest.mock import patch

import pytest

from attendance_nft.config import (
    DEFAULT_CHAIN_TIMEOUT, DEFAULT_FRONTEND_URL, DEFAULT_PORT, DEFAULT_RPC_URL, Settings
)


def test_defaults():
    settings = Settings.from_env({})

    assert settings.rpc_url == DEFAULT_RPC_URL
    assert settings.frontend_url == DEFAULT_FRONTEND_URL
    assert settings.port == DEFAULT_PORT
    assert settings.chain_timeout == DEFAULT_CHAIN_TIMEOUT
    assert settings.private_key is None
    assert settings.contract_address is None
    assert settings.timezone == "Asia/Kolkata"


def test_from_mapping():
    settings = Settings.from_env({
        "GANACHE_URL": "https://rpc.example.com",
        "PRIVATE_KEY": "0xabc",
        "CONTRACT_ADDRESS": "0x1234567890123456789012345678901234567890",
        "FRONTEND_URL": "https://app.example.com",
        "PORT": "8080",
        "CHAIN_TIMEOUT": "12",
        "IMAGE_BASE_URL": "https://img.example.com",
        "ATTENDANCE_TIMEZONE": "UTC",
    })

    assert settings.rpc_url == "https://rpc.example.com"
    assert settings.private_key == "0xabc"
    assert settings.port == 8080
    assert settings.chain_timeout == 12
    assert settings.image_base_url == "https://img.example.com"
    assert settings.timezone == "UTC"


def test_empty_values_fall_back_to_defaults():
    settings = Settings.from_env({"PORT": "", "GANACHE_URL": ""})
    assert settings.port == DEFAULT_PORT
    assert settings.rpc_url == DEFAULT_RPC_URL


def test_invalid_port():
    with pytest.raises(ValueError):
        Settings.from_env({"PORT": "not-a-port"})


def test_from_os_environ(tmp_path, monkeypatch):
    """Without a mapping, settings come from os.environ after loading .env"""
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".env").write_text("CONTRACT_ADDRESS=0xfromdotenv\n")

    with patch.dict(os.environ, {"PORT": "4000"}):
        monkeypatch.delenv("CONTRACT_ADDRESS", raising=False)
        settings = Settings.from_env()

    assert settings.port == 4000
    assert settings.contract_address == "0xfromdotenv"


def test_require_chain():
    with pytest.raises(ValueError, match="PRIVATE_KEY, CONTRACT_ADDRESS"):
        Settings.from_env({}).require_chain()

    Settings(private_key="0xabc", contract_address="0xdef").require_chain()
