import logging
import platform
import uuid
from typing import Optional

from storage import KeyValueStore

logger = logging.getLogger(__name__)

DEVICE_ID_KEY = "@coco_wallet_device_id"
DEVICE_ID_BACKUP_KEY = "@device_id_backup"
LEGACY_DEVICE_ID_KEY = "deviceId"

DEVICE_ID_KEYS = (DEVICE_ID_KEY, DEVICE_ID_BACKUP_KEY, LEGACY_DEVICE_ID_KEY)


def generate_device_id() -> str:
    prefix = platform.system().lower() or "device"
    return f"{prefix}_{uuid.uuid4()}"


class DeviceIdentity:
    """Per-installation identifier scoping the wallets owned on the server.

    The id is mirrored under a primary, a backup and a legacy key so that
    losing any one of them does not orphan the user's wallets.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def _find_existing(self) -> Optional[str]:
        for key in DEVICE_ID_KEYS:
            value = await self.store.get(key)
            if value:
                return value
        return None

    async def _write_all(self, device_id: str) -> None:
        for key in DEVICE_ID_KEYS:
            await self.store.set(key, device_id)

    async def ensure_id(self) -> str:
        """Provision the device id if missing; safe to call repeatedly."""
        device_id = await self._find_existing()
        if device_id:
            await self._write_all(device_id)
            return device_id

        device_id = generate_device_id()
        logger.info(f"Generated new device id: {device_id}")
        await self._write_all(device_id)
        return device_id

    async def get_id(self) -> str:
        device_id = await self.store.get(DEVICE_ID_KEY)
        if device_id:
            return device_id

        logger.warning("Primary device id missing, recovering")
        return await self.ensure_id()
