# storage/__init__.py
# ============================================================================
# DJTUNEZ BACKEND: STORAGE MODULE
# ============================================================================
# Document store clients (Firebase Realtime Database + in-memory tree)
# ============================================================================

from storage.document_store import (
    IDocumentStore,
    FirebaseDocumentStore,
    InMemoryDocumentStore,
    initialize_firebase_app,
    join_path,
    split_path,
)

__all__ = [
    "IDocumentStore",
    "FirebaseDocumentStore",
    "InMemoryDocumentStore",
    "initialize_firebase_app",
    "join_path",
    "split_path",
]
