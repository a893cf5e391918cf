import aiohttp
from aiohttp import TCPConnector, ClientTimeout
import logging

from config import settings

logger = logging.getLogger(__name__)

class HTTPSessionManager:
    """Owns the single aiohttp session shared by the remote wallet client."""

    def __init__(self, pool_size=None, timeout=None):
        self.pool_size = pool_size or settings.http_pool_size
        self.timeout = timeout or settings.http_timeout
        self._session = None

    @property
    def started(self) -> bool:
        return self._session is not None and not self._session.closed

    async def start(self):
        if self.started:
            return
        self._session = aiohttp.ClientSession(
            connector=TCPConnector(
                limit=self.pool_size,
                enable_cleanup_closed=True
            ),
            timeout=ClientTimeout(total=self.timeout),
            headers={"Content-Type": "application/json"}
        )
        logger.info(f"HTTP connection pool started (size={self.pool_size})")

    async def stop(self):
        if self.started:
            await self._session.close()
            logger.info("HTTP connection pool stopped")
        self._session = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if not self.started:
            raise RuntimeError("Session manager not started")
        return self._session
