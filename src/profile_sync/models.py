"""Data models for profile-sync."""

import os
import sys
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from pathlib import Path
from typing import Any

from .exceptions import ProfileDocumentError

NIL_UUID = "00000000-0000-0000-0000-000000000000"


class Resource(Enum):
    """Sync-able resource categories.

    Declaration order is the order in which resources are restored.
    """

    EXTENSIONS = "extensions"
    KEYBINDINGS = "keybindings"
    SETTINGS = "settings"
    SNIPPETS = "snippets"
    UI_STATE = "uiState"

    @classmethod
    def ordered(cls, resources: "list[Resource]") -> "list[Resource]":
        """Return the given resources in declaration order, without duplicates."""
        return [resource for resource in cls if resource in resources]


ALL_RESOURCES = list(Resource)


class ExtensionAction(Enum):
    """Host operation performed while reconciling extensions."""

    INSTALL = "install"
    ENABLE = "enable"
    DISABLE = "disable"
    UNINSTALL = "uninstall"


@dataclass(frozen=True)
class ExtensionId:
    """One installed extension.

    Attributes:
        id: Extension identifier in `publisher.name` form
        uuid: Marketplace identifier, or NIL_UUID when unknown
    """

    id: str
    uuid: str = NIL_UUID

    @property
    def key(self) -> str:
        """Case-insensitive identity used when merging lists."""
        return self.id.lower()

    @classmethod
    def from_raw(cls, raw: Any) -> "ExtensionId":
        """Decode a stored entry, accepting the legacy plain-string form."""
        if isinstance(raw, str):
            return cls(id=raw)
        if isinstance(raw, dict) and isinstance(raw.get("id"), str):
            return cls(id=raw["id"], uuid=raw.get("uuid") or NIL_UUID)
        raise ProfileDocumentError(f"Invalid extension entry: {raw!r}")

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "uuid": self.uuid}


def _as_mapping(data: Any, what: str) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ProfileDocumentError(f"Expected a mapping for {what}, got {type(data).__name__}")
    return data


def _string_list(value: Any, key: str) -> list[str] | None:
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ProfileDocumentError(f"'{key}' must be a list of strings, got {value!r}")
    return list(value)


def _decode_extensions(raw: Any) -> list[ExtensionId]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ProfileDocumentError(f"Expected a list of extensions, got {type(raw).__name__}")
    return [ExtensionId.from_raw(item) for item in raw]


@dataclass
class ExtensionList:
    """Full or delta extension state.

    `uninstall` is only present in diff documents; `builtin_disabled` lists
    built-in extensions the user disabled and is only informational.
    """

    disabled: list[ExtensionId] = field(default_factory=list)
    enabled: list[ExtensionId] = field(default_factory=list)
    uninstall: list[ExtensionId] | None = None
    builtin_disabled: list[str] | None = None

    def ids(self) -> list[str]:
        """Identifiers of every disabled and enabled extension."""
        return [ext.id for ext in [*self.disabled, *self.enabled]]

    def is_empty(self) -> bool:
        return not (self.disabled or self.enabled or self.uninstall)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ExtensionList":
        """Decode a stored document into canonical ExtensionId records."""
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise ProfileDocumentError(f"Expected a mapping for extension list, got {type(data).__name__}")

        uninstall = data.get("uninstall")
        builtin = data.get("builtin") or {}

        return cls(
            disabled=_decode_extensions(data.get("disabled")),
            enabled=_decode_extensions(data.get("enabled")),
            uninstall=_decode_extensions(uninstall) if uninstall is not None else None,
            builtin_disabled=list(builtin.get("disabled") or []) or None,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.builtin_disabled:
            data["builtin"] = {"disabled": list(self.builtin_disabled)}
        data["disabled"] = [ext.to_dict() for ext in self.disabled]
        data["enabled"] = [ext.to_dict() for ext in self.enabled]
        if self.uninstall:
            data["uninstall"] = [ext.to_dict() for ext in self.uninstall]
        return data


@dataclass(frozen=True)
class ProfileSettings:
    """Contents of a profile's `profile.yml`."""

    extends: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ProfileSettings":
        extends = _as_mapping(data, "profile settings").get("extends")
        if extends is not None and not isinstance(extends, str):
            raise ProfileDocumentError(f"'extends' must be a profile name, got {extends!r}")
        return cls(extends=extends or None)


# Stored key -> attribute name
_SYNC_SETTINGS_FIELDS = {
    "keybindingsPerPlatform": "keybindings_per_platform",
    "ignoredExtensions": "ignored_extensions",
    "ignoredSettings": "ignored_settings",
    "resources": "resources",
}


@dataclass(frozen=True)
class SyncSettings:
    """Per-profile sync policy.

    Every field is None when not explicitly set, so that only explicit values
    are persisted and unset values can be inherited from an ancestor.
    Use `resolved()` to fill in defaults.
    """

    keybindings_per_platform: bool | None = None
    ignored_extensions: list[str] | None = None
    ignored_settings: list[str] | None = None
    resources: list[Resource] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "SyncSettings":
        data = _as_mapping(data, "sync settings")
        resources = data.get("resources")
        if resources is not None:
            try:
                resources = [Resource(value) for value in resources]
            except (TypeError, ValueError) as e:
                raise ProfileDocumentError(f"Invalid resources in sync settings: {resources!r}") from e

        return cls(
            keybindings_per_platform=data.get("keybindingsPerPlatform"),
            ignored_extensions=_string_list(data.get("ignoredExtensions"), "ignoredExtensions"),
            ignored_settings=_string_list(data.get("ignoredSettings"), "ignoredSettings"),
            resources=resources,
        )

    def to_dict(self) -> dict[str, Any]:
        """Explicitly set values, in their stored form."""
        data: dict[str, Any] = {}
        for key, value in self.explicit().items():
            data[key] = [r.value for r in value] if key == "resources" else value
        return data

    def explicit(self) -> dict[str, Any]:
        """Explicitly set values keyed by stored name (resources kept as enums)."""
        values = {}
        for key, attr in _SYNC_SETTINGS_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                values[key] = value
        return values

    def overlay(self, other: "SyncSettings") -> "SyncSettings":
        """Return these settings with every value explicitly set in `other` applied on top."""
        updates = {attr: getattr(other, attr) for attr in _SYNC_SETTINGS_FIELDS.values() if getattr(other, attr) is not None}
        return SyncSettings(**{**{attr: getattr(self, attr) for attr in _SYNC_SETTINGS_FIELDS.values()}, **updates})

    def resolved(self) -> "SyncSettings":
        """Return a copy with defaults filled in for unset values."""
        return SyncSettings(
            keybindings_per_platform=True if self.keybindings_per_platform is None else self.keybindings_per_platform,
            ignored_extensions=list(self.ignored_extensions or []),
            ignored_settings=list(self.ignored_settings or []),
            resources=list(ALL_RESOURCES) if self.resources is None else list(self.resources),
        )


@dataclass
class SnippetsDiff:
    """Snippet files an inheriting profile removed from its ancestor's set."""

    removed: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.removed

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "SnippetsDiff":
        removed = _string_list(_as_mapping(data, "snippets diff").get("removed"), "removed")
        return cls(removed=removed or [])

    def to_dict(self) -> dict[str, Any]:
        return {"removed": list(self.removed)}


@dataclass
class UIStateDiff:
    """UI-state changes of an inheriting profile relative to its ancestor."""

    modified: dict[str, Any] = field(default_factory=dict)
    removed: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.modified or self.removed)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "UIStateDiff":
        data = _as_mapping(data, "UI state diff")
        return cls(modified=dict(data.get("modified") or {}), removed=list(data.get("removed") or []))

    def to_dict(self) -> dict[str, Any]:
        return {"modified": dict(self.modified), "removed": list(self.removed)}


@dataclass(frozen=True)
class ProfileContext:
    """The profile an operation runs against.

    Obtained from `FileRepository.initialize`; passed explicitly to every
    operation instead of being held as repository state.
    """

    name: str
    initialized: bool = False


def _default_user_data_path(home: Path, platform: str, editor: str) -> Path:
    if platform == "darwin":
        return home / "Library" / "Application Support" / editor / "User"
    if platform == "win32":
        appdata = os.environ.get("APPDATA")
        return (Path(appdata) if appdata else home / "AppData" / "Roaming") / editor / "User"
    return home / ".config" / editor / "User"


@dataclass(frozen=True)
class SyncPaths:
    """Locations the library reads and writes.

    Applications inject these paths to bind the library to one editor
    installation and one profile repository.

    Attributes:
        repository: Root of the profile repository (contains `profiles/`)
        user_data: Editor user data directory (settings.json, keybindings.json, snippets/)
        state_db: Editor key-value state database
        extension_data: Directory holding installed extensions
        home: User home directory; UI-state values containing it are never stored
        platform: `sys.platform` value used to pick per-platform key bindings
        own_extension_id: Extension running this library; left out of stored
            extension lists and never touched by a restore
    """

    repository: Path
    user_data: Path
    state_db: Path
    extension_data: Path
    home: Path
    platform: str = sys.platform
    own_extension_id: str | None = None

    @classmethod
    def default(cls, repository: Path, editor: str = "Code", own_extension_id: str | None = None) -> "SyncPaths":
        """Build paths for a standard editor installation of the current user."""
        home = Path.home()
        user_data = _default_user_data_path(home, sys.platform, editor)
        return cls(
            repository=Path(repository).expanduser(),
            user_data=user_data,
            state_db=user_data / "globalStorage" / "state.vscdb",
            extension_data=home / ".vscode" / "extensions",
            home=home,
            own_extension_id=own_extension_id,
        )


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one host operation during extension reconciliation."""

    extension_id: str
    action: ExtensionAction
    succeeded: bool
    reason: str | None = None


@dataclass
class RestoreReport:
    """Outcome of restoring a profile."""

    profile: str
    resources: list[Resource] = field(default_factory=list)
    extension_results: list[OperationResult] = field(default_factory=list)
    restart_required: bool = False
    cancelled: bool = False
    restarted: bool = False
    reloaded: bool = False

    @property
    def failures(self) -> list[OperationResult]:
        return [result for result in self.extension_results if not result.succeeded]

    @property
    def succeeded(self) -> bool:
        return not self.cancelled and not self.failures
