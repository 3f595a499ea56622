"""
Runtime configuration for the Attendance NFT relay.

Settings are read from environment variables, after loading a ``.env`` file
from the working directory if one exists.
"""
import os
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field

from .client import DEFAULT_IMAGE_BASE_URL

DEFAULT_RPC_URL = "http://localhost:7545"
DEFAULT_FRONTEND_URL = "http://localhost:5173"
DEFAULT_PORT = 3001
DEFAULT_CHAIN_TIMEOUT = 30
DEFAULT_TIMEZONE = "Asia/Kolkata"


class Settings(BaseModel):
    """Relay configuration"""
    rpc_url: str = Field(DEFAULT_RPC_URL, alias="GANACHE_URL")
    private_key: Optional[str] = Field(None, alias="PRIVATE_KEY")
    contract_address: Optional[str] = Field(None, alias="CONTRACT_ADDRESS")
    frontend_url: str = Field(DEFAULT_FRONTEND_URL, alias="FRONTEND_URL")
    port: int = Field(DEFAULT_PORT, alias="PORT")
    chain_timeout: int = Field(DEFAULT_CHAIN_TIMEOUT, alias="CHAIN_TIMEOUT")
    static_dir: str = Field("client/build", alias="STATIC_DIR")
    image_base_url: str = Field(DEFAULT_IMAGE_BASE_URL, alias="IMAGE_BASE_URL")
    timezone: str = Field(DEFAULT_TIMEZONE, alias="ATTENDANCE_TIMEZONE")

    class Config:
        populate_by_name = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> "Settings":
        """
        Build settings from the environment

        Args:
            environ: Mapping to read instead of ``os.environ``
            dotenv: Whether to load a ``.env`` file first (only with ``os.environ``)

        Returns:
            Settings with unset variables falling back to their defaults
        """
        if environ is None:
            if dotenv:
                load_dotenv(find_dotenv(usecwd=True))
            environ = os.environ

        names = [field.alias for field in cls.model_fields.values() if field.alias]
        values = {name: environ[name] for name in names if environ.get(name)}
        return cls.model_validate(values)

    def require_chain(self) -> None:
        """
        Check that the settings needed to talk to the contract are present

        Raises:
            ValueError: If PRIVATE_KEY or CONTRACT_ADDRESS is missing
        """
        missing = [
            name for name, value in (
                ("PRIVATE_KEY", self.private_key),
                ("CONTRACT_ADDRESS", self.contract_address),
            ) if not value
        ]
        if missing:
            raise ValueError(f"Missing required environment variables: {', '.join(missing)}")
