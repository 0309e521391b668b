# storage/document_store.py
# ============================================================================
# DJTUNEZ BACKEND: DOCUMENT STORE CLIENT
# ============================================================================
# Typed async accessor over the Firebase Realtime Database tree, plus an
# in-memory tree with the same semantics for local runs and tests
# ============================================================================

import asyncio
import copy
import time
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

import firebase_admin
import structlog
from firebase_admin import db
from firebase_admin import exceptions as firebase_exceptions

from config import config
from errors import UpstreamError

logger = structlog.get_logger(component="document_store")

T = TypeVar("T")


def split_path(path: str) -> List[str]:
    """'/users/abc/stripe' -> ['users', 'abc', 'stripe']"""
    return [segment for segment in path.strip("/").split("/") if segment]


def join_path(*segments: str) -> str:
    return "/" + "/".join(s.strip("/") for s in segments if s and s.strip("/"))


# =============================================================================
# INTERFACE
# =============================================================================

class IDocumentStore(ABC):
    """Hierarchical key-value store addressed by slash-delimited paths."""

    @abstractmethod
    async def get(self, path: str) -> Optional[Any]:
        """Value at path, or None when the node is absent."""
        pass

    @abstractmethod
    async def set(self, path: str, value: Any) -> None:
        pass

    @abstractmethod
    async def push(self, path: str, value: Any) -> str:
        """Create a child under path with a store-generated key; return the key."""
        pass

    @abstractmethod
    async def remove(self, path: str) -> None:
        pass

    @abstractmethod
    async def query_by_child(self, path: str, child_path: str, value: Any) -> Dict[str, Any]:
        """Direct children of path whose nested child_path equals value."""
        pass

    async def exists(self, path: str) -> bool:
        return await self.get(path) is not None


# =============================================================================
# FIREBASE REALTIME DATABASE
# =============================================================================

def initialize_firebase_app(
    database_url: Optional[str] = None,
    project_id: Optional[str] = None,
    app_name: str = config.FIREBASE_APP_NAME,
):
    """Initialize (or reuse) the named Firebase app shared by store and auth."""
    database_url = database_url or config.database_url
    try:
        app = firebase_admin.initialize_app(
            options={
                "databaseURL": database_url,
                "projectId": project_id or config.GOOGLE_CLOUD_PROJECT,
            },
            name=app_name,
        )
        logger.info("firebase_app_initialized", app=app_name, url=database_url)
        return app
    except ValueError:
        # Already initialized in this process
        return firebase_admin.get_app(app_name)


class FirebaseDocumentStore(IDocumentStore):
    """
    Firebase Admin Realtime Database client.

    Runs on a named Firebase app so it stays isolated from any default app.
    The SDK is blocking; every call runs in the default executor under a
    timeout budget.
    """

    def __init__(
        self,
        app=None,
        timeout_seconds: float = config.EXTERNAL_CALL_TIMEOUT_SECONDS,
    ):
        self._app = app
        self.timeout_seconds = timeout_seconds

    @property
    def app(self):
        if self._app is None:
            self._app = initialize_firebase_app()
        return self._app

    def _ref(self, path: str):
        return db.reference(path, app=self.app)

    async def _run(self, operation: str, path: str, fn: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, fn), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.error("store_timeout", operation=operation, path=path,
                         timeout_seconds=self.timeout_seconds)
            raise UpstreamError("Document store timed out")
        except firebase_exceptions.FirebaseError as e:
            logger.error("store_error", operation=operation, path=path, error=str(e))
            raise UpstreamError("Document store unavailable", str(e))

    async def get(self, path: str) -> Optional[Any]:
        return await self._run("get", path, lambda: self._ref(path).get())

    async def set(self, path: str, value: Any) -> None:
        await self._run("set", path, lambda: self._ref(path).set(value))

    async def push(self, path: str, value: Any) -> str:
        new_ref = await self._run("push", path, lambda: self._ref(path).push(value))
        return new_ref.key

    async def remove(self, path: str) -> None:
        await self._run("remove", path, lambda: self._ref(path).delete())

    async def query_by_child(self, path: str, child_path: str, value: Any) -> Dict[str, Any]:
        def query():
            return self._ref(path).order_by_child(child_path).equal_to(value).get()

        result = await self._run("query", path, query)
        return dict(result or {})


# =============================================================================
# IN-MEMORY TREE
# =============================================================================

class InMemoryDocumentStore(IDocumentStore):
    """
    In-memory tree with Realtime Database semantics: absent nodes read as
    None, writing None deletes, empty parents disappear.
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._root: Dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self._lock = asyncio.Lock()
        self._push_counter = 0
        self.writes: List[Tuple[str, str]] = []

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self._root)

    def _read(self, segments: List[str]) -> Optional[Any]:
        node: Any = self._root
        for segment in segments:
            if not isinstance(node, dict) or segment not in node:
                return None
            node = node[segment]
        return node

    def _write(self, segments: List[str], value: Any) -> None:
        if not segments:
            self._root = copy.deepcopy(value) if isinstance(value, dict) else {}
            return

        node = self._root
        trail = []
        for segment in segments[:-1]:
            child = node.get(segment)
            if not isinstance(child, dict):
                if value is None:
                    return
                child = {}
                node[segment] = child
            trail.append((node, segment))
            node = child

        if value is None or value == {}:
            node.pop(segments[-1], None)
        else:
            node[segments[-1]] = copy.deepcopy(value)

        # Prune parents left empty
        for parent, segment in reversed(trail):
            if parent[segment] == {}:
                del parent[segment]
            else:
                break

    def _generate_key(self) -> str:
        self._push_counter += 1
        return f"-{time.time_ns():x}{self._push_counter:04d}{uuid.uuid4().hex[:4]}"

    async def get(self, path: str) -> Optional[Any]:
        async with self._lock:
            return copy.deepcopy(self._read(split_path(path)))

    async def set(self, path: str, value: Any) -> None:
        async with self._lock:
            self.writes.append(("set", path))
            self._write(split_path(path), value)

    async def push(self, path: str, value: Any) -> str:
        async with self._lock:
            key = self._generate_key()
            self.writes.append(("push", join_path(path, key)))
            self._write(split_path(path) + [key], value)
            return key

    async def remove(self, path: str) -> None:
        async with self._lock:
            self.writes.append(("remove", path))
            self._write(split_path(path), None)

    async def query_by_child(self, path: str, child_path: str, value: Any) -> Dict[str, Any]:
        async with self._lock:
            children = self._read(split_path(path))
            if not isinstance(children, dict):
                return {}
            child_segments = split_path(child_path)
            matches = {}
            for key, child in children.items():
                node: Any = child
                for segment in child_segments:
                    node = node.get(segment) if isinstance(node, dict) else None
                if node is not None and node == value:
                    matches[key] = copy.deepcopy(child)
            return matches
