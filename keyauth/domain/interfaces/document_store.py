"""Interface for the hierarchical document store holding keys and applications.

The store is organized as top-level collections ("keys", "applications"),
each mapping a string identity to a flat record. All methods are network
round-trips and raise `StorageUnavailableError` on transport faults.
"""

import abc
from typing import Any, Dict, Optional

Document = Dict[str, Any]


class DocumentStore(abc.ABC):
    """Abstract Base Class for document storage operations."""

    @abc.abstractmethod
    async def get(self, collection: str, identity: str) -> Optional[Document]:
        """Reads one record.

        Args:
            collection: Top-level collection name.
            identity: Record identity within the collection.

        Returns:
            The record, or None if it does not exist.
        """
        pass

    @abc.abstractmethod
    async def set(self, collection: str, identity: str, document: Document) -> None:
        """Writes a record, replacing any existing one."""
        pass

    @abc.abstractmethod
    async def update(self, collection: str, identity: str, fields: Document) -> None:
        """Merges the given fields into an existing record."""
        pass

    @abc.abstractmethod
    async def delete(self, collection: str, identity: str) -> None:
        """Removes a record."""
        pass

    @abc.abstractmethod
    async def list_all(self, collection: str) -> Dict[str, Document]:
        """Enumerates a whole collection.

        Returns:
            A mapping of identity to record, in store enumeration order.
            Empty if the collection does not exist.
        """
        pass

    @abc.abstractmethod
    async def update_many(self, collection: str, updates: Dict[str, Document]) -> None:
        """Merges fields into several records as a single request.

        Either every update is applied or the call raises.

        Args:
            collection: Top-level collection name.
            updates: Mapping of identity to the fields to merge into it.
        """
        pass
