from .collection_store import CollectionKind, CollectionStore

__all__ = ["CollectionKind", "CollectionStore"]
