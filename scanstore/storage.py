"""File-backed object storage with watch notifications."""

from __future__ import annotations

import copy
import json
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterator

from .errors import KeyNotFoundError, PreconditionError
from .watch import WatchDispatcher, Watcher

JSON_EXT = ".json"
METADATA_EXT = ".metadata"
DEFAULT_STORAGE_ROOT = "/data"
STORAGE_V1BETA1_API_VERSION = "spdx.softwarecomposition.kubescape.io/v1beta1"

_log = logging.getLogger(__name__)

UpdateFunc = Callable[[dict], dict]


@dataclass(frozen=True)
class APIObjectVersioner:
    """Reads and writes the resource version held in an object's metadata."""

    def object_resource_version(self, obj: dict) -> int:
        """Return the object's resource version, 0 when it is unset."""
        value = (obj.get("metadata") or {}).get("resourceVersion", "")
        if value in ("", None):
            return 0
        try:
            version = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid resource version {value!r}") from exc
        if version < 0:
            raise ValueError(f"invalid resource version {value!r}")
        return version

    def update_object(self, obj: dict, version: int) -> None:
        """Set the object's resource version; 0 clears it."""
        if version < 0:
            raise ValueError(f"invalid resource version {version}")
        if version:
            obj.setdefault("metadata", {})["resourceVersion"] = str(version)
        else:
            meta = obj.get("metadata")
            if isinstance(meta, dict):
                meta.pop("resourceVersion", None)


@dataclass(frozen=True)
class Preconditions:
    """Conditions the stored object must meet before an update."""

    uid: str | None = None
    resource_version: str | None = None

    def check(self, key: str, obj: dict) -> None:
        """Raise PreconditionError if the object does not match."""
        meta = obj.get("metadata") or {}
        if self.uid is not None and self.uid != meta.get("uid", ""):
            raise PreconditionError(
                key,
                f"Precondition failed: UID in precondition: {self.uid}, "
                f"UID in object meta: {meta.get('uid', '')}",
            )
        if self.resource_version is not None and self.resource_version != meta.get(
            "resourceVersion", ""
        ):
            raise PreconditionError(
                key,
                "Precondition failed: ResourceVersion in precondition: "
                f"{self.resource_version}, ResourceVersion in object meta: "
                f"{meta.get('resourceVersion', '')}",
            )


@dataclass
class _ObjState:
    obj: dict
    rev: int
    data: str


def _strip_spec(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _strip_spec(v) for k, v in value.items() if k.lower() != "spec"}
    if isinstance(value, list):
        return [_strip_spec(v) for v in value]
    return value


def remove_spec(data: str | bytes) -> str:
    """Return the JSON document with every "spec" member removed, compacted."""
    return json.dumps(_strip_spec(json.loads(data)), separators=(",", ":"))


def get_namespace_from_key(key: str) -> str:
    """Return the namespace part of a /group/resource/namespace key."""
    parts = key.split("/")
    return parts[3] if len(parts) == 4 else ""


def _walk_files(root: Path) -> Iterator[Path]:
    """Yield files under root in lexical order."""
    if root.is_file():
        yield root
        return
    if not root.is_dir():
        return
    for child in sorted(root.iterdir(), key=lambda p: p.name):
        if child.is_dir():
            yield from _walk_files(child)
        else:
            yield child


def _walk_dirs(root: Path) -> Iterator[Path]:
    """Yield every directory strictly below root in lexical order."""
    if not root.is_dir():
        return
    for child in sorted(root.iterdir(), key=lambda p: p.name):
        if child.is_dir():
            yield child
            yield from _walk_dirs(child)


def _with_ext(path: Path, ext: str) -> Path:
    return Path(str(path) + ext)


class StorageImpl:
    """Stores JSON objects as files under a root directory."""

    def __init__(self, root: str | os.PathLike = DEFAULT_STORAGE_ROOT) -> None:
        self.root = str(root)
        self.versioner = APIObjectVersioner()
        self._dispatcher = WatchDispatcher()
        self._lock = threading.Lock()

    def _path(self, key: str) -> Path:
        if self.root:
            return Path(os.path.normpath(os.path.join(self.root, key.lstrip("/"))))
        return Path(os.path.normpath(key or "."))

    def _write_files(self, key: str, obj: dict) -> dict:
        dup = copy.deepcopy(obj)
        try:
            version = self.versioner.object_resource_version(dup)
        except ValueError:
            version = 0
        if version == 0:
            self.versioner.update_object(dup, 1)
        path = self._path(key)
        with self._lock:
            path.parent.mkdir(parents=True, exist_ok=True)
            json_text = json.dumps(dup, indent=2)
            metadata_text = remove_spec(json_text)
            _with_ext(path, JSON_EXT).write_text(json_text)
            _with_ext(path, METADATA_EXT).write_text(metadata_text)
        return json.loads(json_text)

    def create(self, key: str, obj: dict) -> dict:
        """Store obj at key, overwriting any previous object, and return what was stored."""
        try:
            version = self.versioner.object_resource_version(obj)
        except ValueError:
            version = 0
        if version != 0:
            raise ValueError("resourceVersion should not be set on objects to be created")
        try:
            stored = self._write_files(key, obj)
        except OSError:
            _log.error("write files failed for key %s", key)
            raise
        self._dispatcher.added(key, obj)
        return stored

    def delete(self, key: str) -> dict:
        """Remove the object at key and return it."""
        path = self._path(key)
        with self._lock:
            try:
                content = _with_ext(path, JSON_EXT).read_text()
            except FileNotFoundError:
                raise KeyNotFoundError(key, 0) from None
            for ext in (JSON_EXT, METADATA_EXT):
                try:
                    _with_ext(path, ext).unlink()
                except OSError as exc:
                    _log.error("remove %s file failed for key %s: %s", ext, key, exc)
            obj = json.loads(content)
        self._dispatcher.deleted(key, obj)
        return obj

    def watch(self, key: str) -> Watcher:
        """Return a new watcher for events on key and below."""
        watcher = Watcher()
        self._dispatcher.register(key, watcher)
        return watcher

    def get(self, key: str, ignore_not_found: bool = False) -> dict:
        """Return the object at key; an empty object if missing and ignored."""
        path = self._path(key)
        with self._lock:
            try:
                content = _with_ext(path, JSON_EXT).read_text()
            except FileNotFoundError:
                if ignore_not_found:
                    return {}
                raise KeyNotFoundError(key, 0) from None
        return json.loads(content)

    def get_list(self, key: str) -> list[dict]:
        """Return the metadata of the object at key, or of every object below it."""
        path = self._path(key)
        with self._lock:
            single = _with_ext(path, METADATA_EXT)
            if single.exists():
                files = [single]
            else:
                files = [f for f in _walk_files(path) if f.name.endswith(METADATA_EXT)]
        items = []
        for file in files:
            try:
                content = file.read_text()
            except OSError:
                continue
            try:
                items.append(json.loads(content))
            except ValueError as exc:
                _log.error("unmarshal file %s failed: %s", file, exc)
        return items

    def _state_from_object(self, obj: dict) -> _ObjState:
        rev = self.versioner.object_resource_version(obj)
        data = json.dumps(obj)
        self.versioner.update_object(obj, rev)
        return _ObjState(obj=obj, rev=rev, data=data)

    def guaranteed_update(
        self,
        key: str,
        ignore_not_found: bool = False,
        preconditions: Preconditions | None = None,
        try_update: UpdateFunc | None = None,
        cached_existing_object: dict | None = None,
    ) -> dict:
        """Apply try_update to the current object at key, retrying on stale data."""

        def current_state() -> _ObjState:
            return self._state_from_object(self.get(key, ignore_not_found))

        if cached_existing_object is not None:
            state = self._state_from_object(cached_existing_object)
            is_current = False
        else:
            state = current_state()
            is_current = True

        while True:
            if preconditions is not None:
                try:
                    preconditions.check(key, state.obj)
                except PreconditionError:
                    if is_current:
                        raise
                    state = current_state()
                    is_current = True
                    continue

            if try_update is None:
                raise TypeError("try_update is required")
            update_error: Exception | None = None
            try:
                result = try_update(state.obj)
            except Exception as exc:
                if is_current:
                    raise
                update_error = exc
            if update_error is not None:
                cached_rev = state.rev
                state = current_state()
                is_current = True
                if cached_rev == state.rev:
                    raise update_error
                continue

            written = self._write_files(key, result)
            self._dispatcher.modified(key, result)
            return written

    def count(self, key: str) -> int:
        """Return the number of objects at or below key."""
        _log.debug("custom storage count for key %s", key)
        path = self._path(key)
        with self._lock:
            if _with_ext(path, JSON_EXT).exists():
                return 1
            if not path.exists():
                raise FileNotFoundError(f"no such file or directory: {path}")
            return sum(1 for f in _walk_files(path) if f.name.endswith(JSON_EXT))

    def _load_json_files(self, files: Iterator[Path]) -> list[dict]:
        items = []
        for file in files:
            if not file.name.endswith(JSON_EXT):
                continue
            try:
                items.append(json.loads(file.read_text()))
            except (OSError, ValueError):
                continue
        return items

    def get_by_namespace(self, api_version: str, kind: str, namespace: str) -> list[dict]:
        """Return every object of a kind in a namespace."""
        path = self._path(os.path.join(api_version, kind, namespace))
        with self._lock:
            return self._load_json_files(_walk_files(path))

    def get_by_cluster(self, api_version: str, kind: str) -> list[dict]:
        """Return every object of a kind across all namespaces."""
        path = self._path(os.path.join(api_version, kind))
        with self._lock:
            items: list[dict] = []
            for directory in _walk_dirs(path):
                items.extend(self._load_json_files(_walk_files(directory)))
            return items