"""Key-value storage of material records."""

from __future__ import annotations

import json
import logging
import threading
import uuid
from dataclasses import asdict, dataclass
from typing import Any, Optional
from urllib.parse import quote

from redis import Redis
from redis.exceptions import RedisError

from kaerr.errors import MaterialNotFound, MaterialStoreError

logger = logging.getLogger(__name__)

MATERIAL_KEY_PREFIX = "materials"


@dataclass
class Material:
    id: str
    name: Optional[str] = None
    description: Optional[str] = None


class MaterialStore:
    """CRUD over material records stored as JSON values.

    Records live under ``materials/<url-encoded id>`` in Redis. Without a Redis
    client the store keeps records in process memory, which is only suitable
    for development and tests.
    """

    def __init__(self, redis_client: Redis | None = None, *, prefix: str = MATERIAL_KEY_PREFIX) -> None:
        self._redis = redis_client
        self._prefix = prefix
        self._lock = threading.Lock()
        self._local: dict[str, bytes] = {}

    @property
    def persistent(self) -> bool:
        return self._redis is not None

    def _key(self, material_id: str) -> str:
        return f"{self._prefix}/{quote(material_id, safe='')}"

    def _read(self, key: str) -> bytes | None:
        if self._redis is None:
            with self._lock:
                return self._local.get(key)
        try:
            return self._redis.get(key)
        except RedisError as exc:
            raise MaterialStoreError("Error retrieving material") from exc

    def _write(self, key: str, material: Material) -> None:
        payload = json.dumps(asdict(material)).encode("utf-8")
        if self._redis is None:
            with self._lock:
                self._local[key] = payload
            return
        try:
            self._redis.set(key, payload)
        except RedisError as exc:
            raise MaterialStoreError("Failed to save material") from exc

    @staticmethod
    def _decode(payload: bytes | str) -> Material:
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        data: dict[str, Any] = json.loads(payload)
        return Material(
            id=str(data["id"]),
            name=data.get("name"),
            description=data.get("description"),
        )

    def list_all(self) -> list[Material]:
        if self._redis is None:
            with self._lock:
                payloads = [self._local[k] for k in sorted(self._local)]
        else:
            try:
                keys = sorted(self._redis.scan_iter(match=f"{self._prefix}/*"))
                payloads = [p for p in (self._redis.get(k) for k in keys) if p is not None]
            except RedisError as exc:
                raise MaterialStoreError("Error retrieving materials") from exc

        materials = []
        for payload in payloads:
            try:
                materials.append(self._decode(payload))
            except (KeyError, ValueError):
                logger.warning("Skipping unreadable material record")
        return materials

    def get(self, material_id: str) -> Material:
        payload = self._read(self._key(material_id))
        if payload is None:
            raise MaterialNotFound(material_id)
        return self._decode(payload)

    def create(self, name: str | None = None, description: str | None = None) -> Material:
        material = Material(id=str(uuid.uuid4()), name=name, description=description)
        self._write(self._key(material.id), material)
        logger.info("material_created", extra={"material_id": material.id})
        return material

    def update(
        self,
        material_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
    ) -> Material:
        existing = self.get(material_id)
        updated = Material(
            id=existing.id,
            name=name if name is not None else existing.name,
            description=description if description is not None else existing.description,
        )
        self._write(self._key(material_id), updated)
        return updated

    def delete(self, material_id: str) -> None:
        key = self._key(material_id)
        if self._redis is None:
            with self._lock:
                self._local.pop(key, None)
            return
        try:
            self._redis.delete(key)
        except RedisError as exc:
            raise MaterialStoreError("Failed to delete material") from exc
