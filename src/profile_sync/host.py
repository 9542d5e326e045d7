"""Interfaces of the editor-side collaborators.

The library never talks to the editor directly. Applications provide an
`EditorHost` for extension management and restarts, and a `KeyValueStore`
for the editor's internal state database.
"""

from typing import Any
from typing import Protocol

from .models import ExtensionList


class EditorHost(Protocol):
    """Extension management and session control of the running editor."""

    def list_extensions(self, ignored: list[str]) -> ExtensionList:
        """List installed extensions, skipping the ids in `ignored`."""
        ...

    def install_extension(self, extension_id: str) -> bool: ...

    def enable_extension(self, extension_id: str) -> bool: ...

    def disable_extension(self, extension_id: str) -> bool: ...

    def uninstall_extension(self, extension_id: str) -> bool: ...

    def can_manage_extensions(self) -> bool:
        """Whether the editor exposes native enable/disable commands."""
        ...

    def confirm_restart(self) -> bool:
        """Ask the user whether the editor may be restarted."""
        ...

    def restart(self) -> None: ...

    def reload(self) -> None: ...


class KeyValueStore(Protocol):
    """The editor's internal key-value state."""

    def read_items(self, keys: list[str], prefixes: list[str]) -> dict[str, Any]:
        """Read the rows whose key is in `keys` or starts with one of `prefixes`."""
        ...

    def write_items(self, items: dict[str, Any]) -> None:
        """Insert or replace rows."""
        ...
