"""Token management for ExactOnline API authentication."""

import asyncio
import json
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

import httpx

from shopify_exact.core.logger import setup_logger

logger = setup_logger(__name__)

# Exact access tokens live 10 minutes
TOKEN_EXPIRATION_DEFAULT = 600

# Refresh this many seconds before the token expires
EXPIRY_BUFFER_SECONDS = 60


def is_token_expired(access_token_expires_at: float) -> bool:
    """Check if token is expired (with buffer)."""
    return time.time() >= (access_token_expires_at - EXPIRY_BUFFER_SECONDS)


class ExactTokenManager:
    """Hands out a valid bearer token, refreshing it through OAuth2 when needed.

    Tokens are cached in memory and persisted to a JSON file so a restart does
    not burn the (single-use) refresh token.
    """

    def __init__(
        self,
        base_url: str,
        client_id: Optional[str],
        client_secret: Optional[str],
        token_file: Union[str, Path],
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_file = Path(token_file)
        self.client = client or httpx.AsyncClient(timeout=30.0)
        self._refresh_lock = asyncio.Lock()

        self._tokens: Optional[Dict[str, Any]] = self.load_tokens()
        if not self._tokens and (access_token or refresh_token):
            # Seed from .env; expiry "now" forces a refresh on first use
            self._tokens = {
                "access_token": access_token,
                "refresh_token": refresh_token,
                "access_token_expires_at": time.time(),
            }
            logger.info("Initialized Exact tokens from environment")

    def load_tokens(self) -> Optional[Dict[str, Any]]:
        """Load tokens from file."""
        try:
            if self.token_file.exists():
                with open(self.token_file, "r") as f:
                    tokens = json.load(f)
                logger.debug("Loaded Exact tokens from file")
                return tokens
            return None
        except Exception as e:
            logger.error(f"Failed to load Exact tokens: {e}")
            return None

    def save_tokens(self, tokens: Dict[str, Any]) -> bool:
        """Save tokens to file and update cache."""
        self._tokens = tokens
        try:
            self.token_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.token_file, "w") as f:
                json.dump(tokens, f, indent=2)
            logger.info("Exact tokens saved and cached")
            return True
        except Exception as e:
            logger.error(f"Failed to save Exact tokens: {e}")
            return False

    async def refresh_access_token(self) -> bool:
        """
        Refresh the access token using the refresh token.

        Returns:
            True if refresh successful, False otherwise
        """
        refresh_token = (self._tokens or {}).get("refresh_token")
        if not refresh_token:
            logger.error("No refresh token available for Exact token refresh")
            return False

        try:
            logger.info("Refreshing Exact access token")
            response = await self.client.post(
                f"{self.base_url}/api/oauth2/token",
                data={
                    "grant_type": "refresh_token",
                    "refresh_token": refresh_token,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                },
            )
            response.raise_for_status()
            data = response.json()

            if "access_token" not in data or "refresh_token" not in data:
                logger.error(f"Token refresh failed, missing tokens in response: {data}")
                return False

            expires_in = int(data.get("expires_in") or TOKEN_EXPIRATION_DEFAULT)
            self.save_tokens({
                "access_token": data["access_token"],
                "refresh_token": data["refresh_token"],
                "access_token_expires_at": time.time() + expires_in,
            })
            logger.info("Exact access token refreshed successfully")
            return True

        except Exception as e:
            logger.error(f"Error refreshing Exact token: {e}", exc_info=True)
            return False

    async def get_access_token(self) -> Optional[str]:
        """Return a valid access token, or None if none can be obtained."""
        async with self._refresh_lock:
            if not self._tokens:
                logger.error("No Exact tokens configured")
                return None

            if is_token_expired(self._tokens.get("access_token_expires_at", 0)):
                logger.info("Exact token expired, refreshing...")
                if not await self.refresh_access_token():
                    return None

            return self._tokens.get("access_token")

    async def close(self) -> None:
        await self.client.aclose()
