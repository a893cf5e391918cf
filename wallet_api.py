import aiohttp
import asyncio
import logging
from typing import Any, Dict, Optional
from aiohttp_retry import RetryClient, ExponentialRetry

from connection_pool import HTTPSessionManager

logger = logging.getLogger(__name__)

CHAIN_PATHS = {
    "sol": "solana",
    "solana": "solana",
    "eth": "evm",
    "evm": "evm",
    "base": "evm",
}


def get_chain_path(chain: Optional[str]) -> str:
    """Map a wallet chain tag to the API path segment, defaulting to evm."""
    return CHAIN_PATHS.get((chain or "").lower(), "evm")


class WalletApiError(Exception):
    """Raised when the wallet service cannot be reached or answers with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class WalletApiClient:
    """Remote wallet service: wallet lists, token balances and transaction status per device."""

    def __init__(self, base_url: str, session_manager: HTTPSessionManager):
        if not base_url:
            raise ValueError("Wallet API base URL must be provided")
        self.base_url = base_url.rstrip("/")
        self.session_manager = session_manager
        self.client: Optional[RetryClient] = None

        self.retry_options = ExponentialRetry(
            attempts=3,
            statuses={429, 500, 502, 503, 504},
            exceptions={aiohttp.ClientError, asyncio.TimeoutError},
            factor=2
        )

    async def __aenter__(self):
        await self.session_manager.start()
        self.client = RetryClient(
            client_session=self.session_manager.session,
            retry_options=self.retry_options
        )
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

        if exc_type and not isinstance(exc, asyncio.CancelledError):
            logger.error(f"WalletApiClient error: {exc}", exc_info=True)

    async def get_wallets(self, device_id: str) -> Dict[str, Any]:
        return await self._get("/wallets/", params={"device_id": device_id})

    async def get_wallet_tokens(self, device_id: str, wallet_id: Any, chain: Optional[str]) -> Dict[str, Any]:
        return await self._get(
            f"/{get_chain_path(chain)}/wallets/{wallet_id}/tokens/",
            params={"device_id": device_id},
            headers={"Device-ID": device_id}
        )

    async def get_transaction_status(self, device_id: str, wallet_id: Any, tx_hash: str) -> Dict[str, Any]:
        """A 404 means the transaction is not indexed yet and is reported as pending."""
        try:
            return await self._get(
                f"/solana/wallets/{wallet_id}/transaction-status/",
                params={"device_id": device_id, "tx_hash": tx_hash}
            )
        except WalletApiError as e:
            if e.status_code == 404:
                return {"status": "pending"}
            raise

    async def _get(self, path: str, params: Optional[Dict[str, str]] = None,
                   headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        if not self.client:
            raise RuntimeError("Client not initialized")

        url = f"{self.base_url}{path}"
        try:
            async with self.client.get(url, params=params, headers=headers) as response:
                if response.status >= 400:
                    raise WalletApiError(
                        f"GET {path} failed with HTTP {response.status}",
                        status_code=response.status
                    )
                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise WalletApiError(f"GET {path} returned invalid JSON", response.status) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise WalletApiError(f"GET {path} failed: {e}") from e

    async def close(self):
        try:
            if self.client:
                await self.client.close()
            await self.session_manager.stop()
        except Exception as e:
            logger.warning(f"Error closing client: {str(e)}")
        finally:
            self.client = None
