"""UI state of the editor: capture, redaction and diffing across a profile chain."""

import logging
from pathlib import Path
from typing import Any

from .chain import ProfileChainResolver
from .documents import read_yaml
from .documents import remove_path
from .documents import write_yaml
from .exceptions import ProfileDocumentError
from .host import KeyValueStore
from .layout import ProfileLayout
from .models import ExtensionList
from .models import UIStateDiff

logger = logging.getLogger(__name__)

EXTENSION_DATA_PLACEHOLDER = "%%EXTENSION_DATA_PATH%%"

# Window and workbench state keys; per-extension keys are added from the extension list
UI_STATE_PREFIXES = ["workbench."]

_MISSING = object()


def redact_properties(rows: dict[str, Any], extension_data_path: str, home: str) -> dict[str, Any]:
    """Make captured state portable.

    The extension data path is replaced by a placeholder; values still
    containing the home directory afterwards are dropped.
    """
    properties = {}
    for key, value in rows.items():
        if isinstance(value, str):
            if extension_data_path:
                value = value.replace(extension_data_path, EXTENSION_DATA_PLACEHOLDER)
            if home and home in value:
                continue
        properties[key] = value
    return properties


def restore_placeholders(properties: dict[str, Any], extension_data_path: str) -> dict[str, Any]:
    """Substitute the live extension data path back into stored values."""
    return {
        key: value.replace(EXTENSION_DATA_PLACEHOLDER, extension_data_path) if isinstance(value, str) else value
        for key, value in properties.items()
    }


def compute_ui_state_diff(live: dict[str, Any], inherited: dict[str, Any]) -> UIStateDiff:
    """Keys removed from, and values changed relative to, the inherited state."""
    removed = [key for key in inherited if key not in live]
    modified = {key: value for key, value in live.items() if inherited.get(key, _MISSING) != value}
    return UIStateDiff(modified=modified, removed=removed)


def apply_ui_state_diff(properties: dict[str, Any], diff: UIStateDiff) -> dict[str, Any]:
    """Return `properties` with the diff's modifications and removals applied."""
    result = dict(properties)
    result.update(diff.modified)
    for key in diff.removed:
        result.pop(key, None)
    return result


def ui_state_differs(effective: dict[str, Any], live: dict[str, Any]) -> bool:
    """Whether restoring `effective` would change any live value."""
    return any(live.get(key, _MISSING) != value for key, value in effective.items())


def _as_mapping(data: Any, path: Path) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ProfileDocumentError(f"Expected a mapping in {path}")
    return data


class UIStateStore:
    """Stored UI state of a profile chain.

    The root profile stores a full `ui-state.yml`; inheriting profiles store a
    `ui-state.diff.yml` only when they differ from their parent.

    Args:
        layout: Layout of the profile repository
        chain: Resolver for the profiles' `extends` links
    """

    def __init__(self, layout: ProfileLayout, chain: ProfileChainResolver):
        self.layout = layout
        self.chain = chain

    def load_diff(self, profile: str) -> UIStateDiff | None:
        path = self.layout.ui_state_diff_file(profile)
        data = read_yaml(path)
        return UIStateDiff.from_dict(_as_mapping(data, path)) if data is not None else None

    def load_baseline(self, profile: str) -> dict[str, Any]:
        path = self.layout.ui_state_file(profile)
        data = read_yaml(path)
        return dict(_as_mapping(data, path)) if data is not None else {}

    def load_effective(self, profile: str) -> dict[str, Any]:
        """Replay the chain's UI state documents, oldest ancestor first."""
        lineage = self.chain.lineage(profile)

        properties = self.load_baseline(lineage[0])
        for name in lineage[1:]:
            diff = self.load_diff(name)
            if diff is not None:
                properties = apply_ui_state_diff(properties, diff)

        return properties

    def save(self, profile: str, live: dict[str, Any], parent: str | None) -> UIStateDiff | None:
        """Store captured (already redacted) state into `profile`.

        Returns:
            The diff computed for an inheriting profile, or None
        """
        if not parent:
            write_yaml(self.layout.ui_state_file(profile), live, private=True)
            return None

        diff = compute_ui_state_diff(live, self.load_effective(parent))
        path = self.layout.ui_state_diff_file(profile)

        if diff.is_empty():
            remove_path(path)
        else:
            write_yaml(path, diff.to_dict(), private=True)

        return diff


class UIStateCapture:
    """Reads and writes UI state in the editor's key-value store.

    Args:
        store: The editor's key-value state
        extension_data: Directory holding installed extensions
        home: User home directory
    """

    def __init__(self, store: KeyValueStore, extension_data: Path, home: Path):
        self.store = store
        self.extension_data = str(extension_data)
        self.home = str(home)

    def capture(self, extensions: ExtensionList) -> dict[str, Any]:
        """Read the live UI state, redacted for storage."""
        rows = self.store.read_items(extensions.ids(), UI_STATE_PREFIXES)
        return redact_properties(rows, self.extension_data, self.home)

    def apply(self, properties: dict[str, Any]) -> None:
        """Write stored UI state back into the editor."""
        if properties:
            self.store.write_items(restore_placeholders(properties, self.extension_data))
