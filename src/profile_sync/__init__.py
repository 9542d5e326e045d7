"""profile-sync: Inheritable, file-based profiles for editor configuration.

This library synchronizes an editor's live configuration (extensions, key
bindings, settings, snippets and UI state) with profiles stored as files.
A profile can extend another one; inheriting profiles store only what differs
from their parent, and restoring replays the chain from the root ancestor.

Applications inject paths and the editor-side collaborators. The library
provides the diff/merge mechanism.

Public API:
    FileRepository: Restore and serialize profiles
    SyncPaths: Dataclass defining repository and editor locations
    SyncSettings: Per-profile sync policy
    Resource: Enum of sync-able resources
    EditorHost, KeyValueStore: Collaborator protocols
    SQLiteStateStore: KeyValueStore backed by the editor's state database
    compute_extensions_diff, apply_extensions_diff: Extension list diff/merge
    ProfileSyncError and subclasses: Exception types

Example:
    ```python
    from pathlib import Path
    from profile_sync import FileRepository, SyncPaths, SyncSettings

    # Application injects paths and its editor binding
    paths = SyncPaths.default(Path("~/profiles"))
    repository = FileRepository(paths, host=MyEditorHost())

    context = repository.initialize("work")

    # Capture the live editor into the profile
    repository.serialize_profile(context, SyncSettings(ignored_settings=["window.zoomLevel"]))

    # Apply the profile to the live editor
    report = repository.restore_profile(context)
    ```
"""

from .exceptions import CyclicInheritanceError
from .exceptions import ProfileConfigurationError
from .exceptions import ProfileDocumentError
from .exceptions import ProfileNotFoundError
from .exceptions import ProfileNotInitializedError
from .exceptions import ProfileSyncError
from .exceptions import SyncSettingsNotFoundError
from .extensions import apply_extensions_diff
from .extensions import compute_extensions_diff
from .host import EditorHost
from .host import KeyValueStore
from .models import NIL_UUID
from .models import ExtensionId
from .models import ExtensionList
from .models import OperationResult
from .models import ProfileContext
from .models import Resource
from .models import RestoreReport
from .models import SnippetsDiff
from .models import SyncPaths
from .models import SyncSettings
from .models import UIStateDiff
from .repository import FileRepository
from .state_db import SQLiteStateStore

__version__ = "0.1.0"

__all__ = [
    "FileRepository",
    "SyncPaths",
    "SyncSettings",
    "Resource",
    "ProfileContext",
    "RestoreReport",
    "OperationResult",
    "ExtensionId",
    "ExtensionList",
    "SnippetsDiff",
    "UIStateDiff",
    "NIL_UUID",
    "EditorHost",
    "KeyValueStore",
    "SQLiteStateStore",
    "compute_extensions_diff",
    "apply_extensions_diff",
    "ProfileSyncError",
    "ProfileConfigurationError",
    "SyncSettingsNotFoundError",
    "ProfileNotFoundError",
    "CyclicInheritanceError",
    "ProfileNotInitializedError",
    "ProfileDocumentError",
]
