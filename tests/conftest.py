"""Shared fixtures: temporary repository/editor paths and fake editor collaborators."""

from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Any

import pytest
import yaml
from profile_sync import ExtensionId
from profile_sync import ExtensionList
from profile_sync import SyncPaths


class FakeHost:
    """In-memory editor host recording every call."""

    def __init__(self, enabled=(), disabled=(), native=True, confirm=True, failing=(), raising=()):
        self.enabled = list(enabled)
        self.disabled = list(disabled)
        self.native = native
        self.confirm = confirm
        self.failing = set(failing)
        self.raising = set(raising)
        self.calls: list[tuple[str, str]] = []
        self.confirm_asked = False
        self.restarted = False
        self.reloaded = False

    def list_extensions(self, ignored: list[str]) -> ExtensionList:
        return ExtensionList(
            disabled=[ExtensionId(ext_id) for ext_id in self.disabled if ext_id not in ignored],
            enabled=[ExtensionId(ext_id) for ext_id in self.enabled if ext_id not in ignored],
        )

    def _call(self, action: str, ext_id: str) -> bool:
        self.calls.append((action, ext_id))
        if ext_id in self.raising:
            raise RuntimeError(f"{action} crashed")
        return ext_id not in self.failing

    def install_extension(self, extension_id: str) -> bool:
        if not self._call("install", extension_id):
            return False
        if extension_id not in self.enabled:
            self.enabled.append(extension_id)
        return True

    def enable_extension(self, extension_id: str) -> bool:
        if not self._call("enable", extension_id):
            return False
        self.disabled.remove(extension_id)
        self.enabled.append(extension_id)
        return True

    def disable_extension(self, extension_id: str) -> bool:
        if not self._call("disable", extension_id):
            return False
        self.enabled.remove(extension_id)
        self.disabled.append(extension_id)
        return True

    def uninstall_extension(self, extension_id: str) -> bool:
        if not self._call("uninstall", extension_id):
            return False
        for partition in (self.enabled, self.disabled):
            if extension_id in partition:
                partition.remove(extension_id)
        return True

    def can_manage_extensions(self) -> bool:
        return self.native

    def confirm_restart(self) -> bool:
        self.confirm_asked = True
        return self.confirm

    def restart(self) -> None:
        self.restarted = True

    def reload(self) -> None:
        self.reloaded = True


class MemoryStore:
    """In-memory key-value store."""

    def __init__(self, items: dict[str, Any] | None = None):
        self.items = dict(items or {})
        self.writes: list[dict[str, Any]] = []

    def read_items(self, keys: list[str], prefixes: list[str]) -> dict[str, Any]:
        return {
            key: value
            for key, value in self.items.items()
            if key in keys or any(key.startswith(prefix) for prefix in prefixes)
        }

    def write_items(self, items: dict[str, Any]) -> None:
        self.writes.append(dict(items))
        self.items.update(items)


@pytest.fixture
def temp_paths():
    """Create temporary repository and editor paths."""
    with TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        home = root / "home"
        yield SyncPaths(
            repository=root / "repo",
            user_data=home / ".config" / "Code" / "User",
            state_db=home / ".config" / "Code" / "User" / "globalStorage" / "state.vscdb",
            extension_data=home / ".vscode" / "extensions",
            home=home,
            platform="linux",
        )


@pytest.fixture
def make_profile(temp_paths):
    """Return a function writing a stored profile's `profile.yml` and `.sync.yml`."""

    def _make(name: str, extends: str | None = None, sync: dict[str, Any] | None = None) -> Path:
        profile_dir = temp_paths.repository / "profiles" / name
        profile_dir.mkdir(parents=True, exist_ok=True)
        if extends:
            (profile_dir / "profile.yml").write_text(yaml.dump({"extends": extends}))
        if sync is not None:
            (profile_dir / ".sync.yml").write_text(yaml.dump(sync))
        return profile_dir

    return _make


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def make_host():
    """Return the FakeHost class, for tests needing a custom live state."""
    return FakeHost


@pytest.fixture
def make_store():
    return MemoryStore
