"""Document service adapters."""

from studio.shared.infrastructure.documents.memory_store import InMemoryDocumentStore

__all__ = ["InMemoryDocumentStore"]
