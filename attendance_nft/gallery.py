"""
Owned-token gallery for a connected wallet.
"""
import logging
from typing import Dict, List, Optional, Set

from .client import AttendanceClient

logger = logging.getLogger(__name__)


class TokenGallery:
    """
    Tokens owned by one address plus lazily fetched, session-cached metadata.

    Ownership is recomputed by a full scan on every :meth:`reload`; metadata
    for a token is fetched the first time it is expanded and kept until the
    gallery is cleared or reloaded.
    """

    def __init__(self, client: AttendanceClient):
        self.client = client
        self._tokens: List[str] = []
        self._metadata: Dict[str, str] = {}
        self._expanded: Set[str] = set()

    @property
    def tokens(self) -> List[str]:
        return list(self._tokens)

    def reload(self, owner: str) -> List[str]:
        """
        Replace the gallery contents with the tokens currently owned by ``owner``

        Raises:
            TokenReadError: If an ownership query fails
        """
        token_ids = self.client.owned_tokens(owner)
        self._tokens = token_ids
        self._metadata.clear()
        self._expanded.clear()
        logger.info(f"Loaded {len(token_ids)} token(s) for {owner}")
        return self.tokens

    def add_minted(self, token_id: str, metadata: str) -> None:
        """Record a token minted in this session along with the metadata used to mint it."""
        if token_id not in self._tokens:
            self._tokens.append(token_id)
        self._metadata[token_id] = metadata
        self._expanded.add(token_id)

    def toggle(self, token_id: str) -> bool:
        """
        Flip whether a token's metadata is shown

        Returns:
            True if the token is now expanded

        Raises:
            TokenReadError: If metadata has to be fetched and the read fails
        """
        if token_id in self._expanded:
            self._expanded.discard(token_id)
            return False

        if token_id not in self._metadata:
            self._metadata[token_id] = self.client.get_token_metadata(token_id)
        self._expanded.add(token_id)
        return True

    def is_expanded(self, token_id: str) -> bool:
        return token_id in self._expanded

    def metadata_for(self, token_id: str) -> Optional[str]:
        return self._metadata.get(token_id)

    def clear(self) -> None:
        self._tokens = []
        self._metadata.clear()
        self._expanded.clear()
