"""
Embedding Gallery - the enrolled (identity, 128-d vector) records.
Keeps an in-memory copy for matching and mirrors writes into an optional
durable store (see services.db_manager.DBManager).
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Protocol, Sequence, Tuple

import numpy as np

from engines.facial_recognition.errors import InvalidVectorShape

logger = logging.getLogger(__name__)

EMBEDDING_DIM = 128

# (id, name, vector)
GalleryRow = Tuple[int, str, np.ndarray]


class GalleryStore(Protocol):
    """Durable backing for gallery records."""

    def insert_identity(self, name: str, embedding: Sequence[float]) -> int: ...

    def delete_identities_by_name(self, name: str) -> int: ...

    def get_all_identities(self) -> List[GalleryRow]: ...


@dataclass(frozen=True)
class IdentityRecord:
    """One enrolled face template. Never mutated in place."""
    id: int
    name: str
    embedding: np.ndarray   # float32, shape (128,)

    def as_row(self) -> GalleryRow:
        return self.id, self.name, self.embedding


def validate_embedding(vector) -> np.ndarray:
    """
    Coerce a vector to float32 and check it is exactly 128 finite reals.

    Raises:
        InvalidVectorShape
    """
    try:
        arr = np.asarray(vector, dtype=np.float32)
    except (TypeError, ValueError) as e:
        raise InvalidVectorShape(f"Embedding is not numeric: {e}") from e

    if arr.shape != (EMBEDDING_DIM,):
        raise InvalidVectorShape(
            f"Expected {EMBEDDING_DIM}-d embedding, got shape {arr.shape}"
        )
    if not np.all(np.isfinite(arr)):
        raise InvalidVectorShape("Embedding contains non-finite values")
    return arr


class EmbeddingGallery:
    """
    Ordered collection of IdentityRecords.

    Responsibilities:
        - Validate and append new records (no deduplication at this layer)
        - Delete every record sharing a name
        - Provide a lazy insertion-order scan for the matcher

    Single writer: callers serialize insert/delete against scans
    (see services.access_worker.AccessWorker).
    """

    def __init__(self, store: Optional[GalleryStore] = None):
        self.store = store
        self._records: List[IdentityRecord] = []
        self._next_id = 1
        if store is not None:
            self.reload()

    def __len__(self) -> int:
        return len(self._records)

    def reload(self) -> int:
        """Replace the in-memory records with everything in the store."""
        if self.store is None:
            return len(self._records)

        records = []
        for identity_id, name, vector in self.store.get_all_identities():
            try:
                embedding = validate_embedding(vector)
            except InvalidVectorShape as e:
                logger.warning(f"Skipping stored identity {identity_id} ({name}): {e}")
                continue
            records.append(IdentityRecord(int(identity_id), str(name), embedding))

        self._records = records
        self._next_id = max((r.id for r in records), default=0) + 1
        logger.info(f"Loaded {len(records)} identities into gallery")
        return len(records)

    def insert(self, name: str, vector) -> int:
        """
        Append a new (name, vector) record.

        Returns:
            id of the new record

        Raises:
            InvalidVectorShape: vector is not exactly 128 finite real numbers
        """
        embedding = validate_embedding(vector)

        if self.store is not None:
            identity_id = int(self.store.insert_identity(name, embedding.tolist()))
        else:
            identity_id = self._next_id
        self._next_id = max(self._next_id, identity_id + 1)

        self._records.append(IdentityRecord(identity_id, name, embedding))
        logger.info(f"Gallery: inserted {name} (ID: {identity_id})")
        return identity_id

    def delete_by_name(self, name: str) -> int:
        """Remove every record named `name`. Returns the number removed (0 is fine)."""
        removed = sum(1 for r in self._records if r.name == name)
        if removed == 0:
            return 0

        if self.store is not None:
            stored = self.store.delete_identities_by_name(name)
            if stored != removed:
                logger.warning(
                    f"Gallery: store removed {stored} record(s) for {name}, memory held {removed}"
                )
        self._records = [r for r in self._records if r.name != name]
        logger.info(f"Gallery: removed {removed} record(s) for {name}")
        return removed

    def scan_all(self) -> Iterator[GalleryRow]:
        """Yield (id, name, vector) in insertion order."""
        for record in tuple(self._records):
            yield record.as_row()

    def contains_name(self, name: str) -> bool:
        return any(r.name == name for r in self._records)

    def names(self) -> dict:
        """Map of name -> number of templates enrolled under it."""
        counts = {}
        for record in self._records:
            counts[record.name] = counts.get(record.name, 0) + 1
        return counts

    def get_stats(self) -> dict:
        return {
            'records': len(self._records),
            'identities': len(self.names()),
            'persistent': self.store is not None,
        }
