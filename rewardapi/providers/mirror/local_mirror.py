"""
Redis-backed local mirror of storage rows.
- Never raises exceptions (returns None/False on failure)
- Lazy connection with health checks
- One hash per table: <prefix>:<table> -> {row_key: json}
"""

import json
import logging
from typing import Any, Dict, List, Optional

import redis

from rewardapi.config import Settings

logger = logging.getLogger(__name__)


class LocalMirror:
    def __init__(self, settings: Settings, client: Optional[Any] = None):
        self._settings = settings
        self._client = client
        self._enabled = settings.MIRROR_ENABLED

    def _get_client(self):
        """Lazy connection with health check"""
        if not self._enabled:
            return None
        if self._client is None:
            try:
                redis_kwargs = {
                    "host": self._settings.REDIS_HOST,
                    "port": self._settings.REDIS_PORT,
                    "db": self._settings.REDIS_DB,
                    "decode_responses": True,
                    "socket_connect_timeout": 2,
                    "socket_keepalive": True,
                    "health_check_interval": 30,
                }
                if self._settings.REDIS_PASSWORD:
                    redis_kwargs["password"] = self._settings.REDIS_PASSWORD

                self._client = redis.Redis(**redis_kwargs)
                self._client.ping()
            except Exception as e:
                logger.warning(f"Mirror connection failed: {e}")
                self._client = None
        return self._client

    def _table_key(self, table: str) -> str:
        return f"{self._settings.MIRROR_KEY_PREFIX}:{table}"

    def get(self, table: str, key: str) -> Optional[Dict[str, Any]]:
        """Get mirrored row, returns None if not found or error"""
        try:
            client = self._get_client()
            if client is None:
                return None
            value = client.hget(self._table_key(table), str(key))
            return json.loads(value) if value else None
        except Exception as e:
            logger.warning(f"Mirror GET failed for {table}/{key}: {e}")
            return None

    def put(self, table: str, key: str, row: Dict[str, Any]) -> bool:
        """Overwrite mirrored row, returns success status"""
        try:
            client = self._get_client()
            if client is None:
                return False
            client.hset(self._table_key(table), str(key), json.dumps(row, default=str))
            return True
        except Exception as e:
            logger.warning(f"Mirror PUT failed for {table}/{key}: {e}")
            return False

    def delete(self, table: str, key: str) -> bool:
        try:
            client = self._get_client()
            if client is None:
                return False
            client.hdel(self._table_key(table), str(key))
            return True
        except Exception as e:
            logger.warning(f"Mirror DELETE failed for {table}/{key}: {e}")
            return False

    def all(self, table: str) -> List[Dict[str, Any]]:
        """All mirrored rows of a table, empty on failure"""
        try:
            client = self._get_client()
            if client is None:
                return []
            raw = client.hgetall(self._table_key(table)) or {}
            return [json.loads(v) for v in raw.values()]
        except Exception as e:
            logger.warning(f"Mirror SCAN failed for {table}: {e}")
            return []

    def ping(self) -> bool:
        try:
            client = self._get_client()
            return bool(client is not None and client.ping())
        except Exception as e:
            logger.warning(f"Mirror PING failed: {e}")
            return False

    def close(self):
        """Close connection pool on app shutdown"""
        if self._client is not None and hasattr(self._client, "close"):
            try:
                self._client.close()
            except Exception as e:
                logger.warning(f"Mirror close failed: {e}")
