"""
Capability Mint Authority - Object Store

Keyed object storage with ownership tracking. Every persistent record (capabilities,
collections, configurations, assets, coins) lives here under its object id,
together with its owner: an address, ``SHARED`` (readable and usable by anyone)
or ``IMMUTABLE``.

Writes made while a journal is open can be rolled back, which is how the
transaction boundary guarantees that a failed call leaves no trace. Snapshots
are persisted as JSON with a SHA-256 checksum and written atomically.
"""

import hashlib
import json
import logging
import os
from pathlib import Path
from threading import RLock
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel

from .exceptions import ObjectNotFoundError


SHARED = "@shared"
IMMUTABLE = "@immutable"

_MISSING = object()

M = TypeVar('M', bound=BaseModel)

# Type name -> model class, used to rebuild objects from snapshots
MODEL_TYPES: Dict[str, Type[BaseModel]] = {}

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base storage exception."""
    pass


class IntegrityError(StorageError):
    """Snapshot integrity check failure exception."""
    pass


def register_model(model_cls: Type[M]) -> Type[M]:
    """Make ``model_cls`` restorable from a snapshot."""
    MODEL_TYPES[model_cls.__name__] = model_cls
    return model_cls


class ObjectStore:
    """Thread-safe object store with ownership and rollback journal."""

    def __init__(self):
        self._objects: Dict[str, BaseModel] = {}
        self._owners: Dict[str, str] = {}
        self._lock = RLock()
        self._journal: Optional[Dict[str, Tuple[Any, Any]]] = None

    # Journal

    def begin(self) -> None:
        """Start recording prior state of every touched object."""
        with self._lock:
            if self._journal is not None:
                raise StorageError("Journal already open")
            self._journal = {}

    def commit(self) -> None:
        with self._lock:
            self._journal = None

    def rollback(self) -> int:
        """Restore every touched object and return how many were restored."""
        with self._lock:
            if self._journal is None:
                return 0

            restored = len(self._journal)
            for object_id, (obj, owner) in self._journal.items():
                if obj is _MISSING:
                    self._objects.pop(object_id, None)
                    self._owners.pop(object_id, None)
                else:
                    self._objects[object_id] = obj
                    self._owners[object_id] = owner

            self._journal = None
            return restored

    @property
    def in_journal(self) -> bool:
        return self._journal is not None

    def _record(self, object_id: str) -> None:
        if self._journal is None or object_id in self._journal:
            return
        self._journal[object_id] = (
            self._objects.get(object_id, _MISSING),
            self._owners.get(object_id),
        )

    # Writes

    def add(self, obj: BaseModel, owner: str) -> str:
        """Insert a new object owned by ``owner``."""
        object_id = getattr(obj, 'id')
        with self._lock:
            if object_id in self._objects:
                raise StorageError(f"Object {object_id} already exists")
            self._record(object_id)
            self._objects[object_id] = obj
            self._owners[object_id] = owner
            return object_id

    def update(self, obj: BaseModel) -> None:
        """Replace an existing object with a new version, keeping its owner."""
        object_id = getattr(obj, 'id')
        with self._lock:
            if object_id not in self._objects:
                raise ObjectNotFoundError(f"Object {object_id} not found")
            if self._owners.get(object_id) == IMMUTABLE:
                raise StorageError(f"Object {object_id} is immutable")
            self._record(object_id)
            self._objects[object_id] = obj

    def remove(self, object_id: str) -> BaseModel:
        with self._lock:
            if object_id not in self._objects:
                raise ObjectNotFoundError(f"Object {object_id} not found")
            self._record(object_id)
            self._owners.pop(object_id, None)
            return self._objects.pop(object_id)

    def transfer(self, object_id: str, recipient: str) -> None:
        """Move an address-owned object to ``recipient``."""
        with self._lock:
            owner = self.owner_of(object_id)
            if owner in (SHARED, IMMUTABLE):
                raise StorageError(f"Object {object_id} is {owner} and cannot be transferred")
            self._record(object_id)
            self._owners[object_id] = recipient

    def share(self, object_id: str) -> None:
        with self._lock:
            self.owner_of(object_id)
            self._record(object_id)
            self._owners[object_id] = SHARED

    def freeze(self, object_id: str) -> None:
        with self._lock:
            self.owner_of(object_id)
            self._record(object_id)
            self._owners[object_id] = IMMUTABLE

    # Reads

    def get(self, object_id: str, expected_type: Optional[Type[M]] = None) -> M:
        """Fetch an object, optionally insisting on its type."""
        obj = self._objects.get(object_id)
        if obj is None:
            raise ObjectNotFoundError(f"Object {object_id} not found")
        if expected_type is not None and not isinstance(obj, expected_type):
            raise ObjectNotFoundError(
                f"Object {object_id} is {type(obj).__name__}, expected {expected_type.__name__}"
            )
        return obj

    def find(self, object_id: str) -> Optional[BaseModel]:
        return self._objects.get(object_id)

    def exists(self, object_id: str) -> bool:
        return object_id in self._objects

    def owner_of(self, object_id: str) -> str:
        owner = self._owners.get(object_id)
        if owner is None:
            raise ObjectNotFoundError(f"Object {object_id} not found")
        return owner

    def is_owned_by(self, object_id: str, address: str) -> bool:
        return self._owners.get(object_id) == address

    def owned_by(self, address: str, object_type: Optional[Type[M]] = None) -> List[M]:
        """List objects owned by ``address``, optionally filtered by type."""
        with self._lock:
            return [
                self._objects[object_id]
                for object_id, owner in self._owners.items()
                if owner == address
                and (object_type is None or isinstance(self._objects[object_id], object_type))
            ]

    def list_objects(self, object_type: Type[M]) -> List[M]:
        with self._lock:
            return [obj for obj in self._objects.values() if isinstance(obj, object_type)]

    def __len__(self) -> int:
        return len(self._objects)

    # Persistence

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'objects': {
                    object_id: {
                        'type': type(obj).__name__,
                        'data': obj.model_dump(mode='json'),
                    }
                    for object_id, obj in self._objects.items()
                },
                'owners': dict(self._owners),
            }

    def save(self, path: Union[str, Path]) -> str:
        """Write a checksummed snapshot atomically and return the checksum."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with self._lock:
            if self._journal is not None:
                raise StorageError("Cannot snapshot while a transaction is open")
            body = self.to_dict()

        payload = json.dumps(body, sort_keys=True).encode('utf-8')
        checksum = hashlib.sha256(payload).hexdigest()
        document = json.dumps({'checksum': checksum, 'store': body}, indent=2, sort_keys=True)

        temp_file = path.with_suffix(path.suffix + '.tmp')
        try:
            with open(temp_file, 'w') as f:
                f.write(document)
            os.replace(temp_file, path)
        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise StorageError(f"Failed to write snapshot: {e}")

        logger.info(f"Saved {len(body['objects'])} objects to {path}")
        return checksum

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'ObjectStore':
        """Rebuild a store from a snapshot, verifying its checksum."""
        path = Path(path)
        try:
            with open(path, 'r') as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            raise IntegrityError(f"Invalid JSON snapshot: {e}")
        except OSError as e:
            raise StorageError(f"Failed to read snapshot: {e}")

        body = document.get('store', {})
        payload = json.dumps(body, sort_keys=True).encode('utf-8')
        if hashlib.sha256(payload).hexdigest() != document.get('checksum'):
            raise IntegrityError(f"Checksum mismatch for snapshot {path}")

        store = cls()
        owners = body.get('owners', {})
        for object_id, entry in body.get('objects', {}).items():
            model_cls = MODEL_TYPES.get(entry['type'])
            if model_cls is None:
                raise StorageError(f"Unknown object type in snapshot: {entry['type']}")
            store._objects[object_id] = model_cls.model_validate(entry['data'])
            store._owners[object_id] = owners[object_id]

        logger.info(f"Loaded {len(store)} objects from {path}")
        return store
