"""File-based profile repository: restore and serialize of editor profiles."""

import logging
import shutil

from .chain import ProfileChainResolver
from .documents import read_text
from .documents import remove_path
from .documents import write_text
from .documents import write_yaml
from .exceptions import ProfileDocumentError
from .exceptions import ProfileNotFoundError
from .exceptions import ProfileNotInitializedError
from .extensions import ExtensionReconciler
from .extensions import ExtensionStore
from .host import EditorHost
from .host import KeyValueStore
from .jsonc import extract_properties
from .jsonc import filter_ignored_settings
from .jsonc import insert_properties
from .jsonc import normalize
from .jsonc import remove_properties
from .jsonc import strip_bom
from .jsonc import strip_comments
from .layout import EditorLayout
from .layout import ProfileLayout
from .models import ExtensionList
from .models import OperationResult
from .models import ProfileContext
from .models import Resource
from .models import RestoreReport
from .models import SyncPaths
from .models import SyncSettings
from .snippets import SnippetStore
from .state_db import SQLiteStateStore
from .sync_settings import SyncSettingsResolver
from .ui_state import UIStateCapture
from .ui_state import UIStateStore
from .ui_state import ui_state_differs

logger = logging.getLogger(__name__)


class FileRepository:
    """Profiles stored as files under `<repository>/profiles/`.

    Restoring replays a profile's inheritance chain into the live editor;
    serializing captures the live editor into a profile, as diffs against the
    parent when the profile inherits. Key bindings and settings are only
    stored by non-inheriting profiles and always restored from the root
    ancestor.

    Operations run sequentially and take no locks; running two of them
    against the same profile at once is not supported.

    Args:
        paths: Locations of the repository and of the live editor data
        host: The running editor
        store: The editor's key-value state (default: SQLite at `paths.state_db`)
    """

    def __init__(self, paths: SyncPaths, host: EditorHost, store: KeyValueStore | None = None):
        self.paths = paths
        self.host = host
        self.store = store if store is not None else SQLiteStateStore(paths.state_db)

        self.layout = ProfileLayout(paths.repository)
        self.editor = EditorLayout(paths.user_data)
        self.chain = ProfileChainResolver(self.layout)
        self.sync_settings = SyncSettingsResolver(self.layout, self.chain)
        self.extensions = ExtensionStore(self.layout, self.chain)
        self.snippets = SnippetStore(self.layout, self.chain)
        self.ui_state = UIStateStore(self.layout, self.chain)
        self.capture = UIStateCapture(self.store, paths.extension_data, paths.home)
        self.reconciler = ExtensionReconciler(host, self.store)

    # ===== Profile Management =====

    def initialize(self, profile: str) -> ProfileContext:
        """Prepare `profile` for restore or serialize.

        Args:
            profile: Profile name (a directory name under `profiles/`)

        Returns:
            Context to pass to the other operations
        """
        self.layout.profile_dir(profile).mkdir(parents=True, exist_ok=True)
        logger.debug(f"Initialized profile '{profile}' in {self.layout.profiles}")
        return ProfileContext(name=profile, initialized=True)

    def list_profiles(self) -> list[str]:
        """Names of all stored profiles."""
        if not self.layout.profiles.is_dir():
            return []
        return sorted(path.name for path in self.layout.profiles.iterdir() if path.is_dir())

    def duplicate_profile_to(self, original: str, new: str) -> None:
        """Copy every document of `original` into `new`."""
        source = self.layout.profile_dir(original)
        if not source.is_dir():
            raise ProfileNotFoundError(f"Profile '{original}' not found in {self.layout.profiles}")

        try:
            shutil.copytree(source, self.layout.profile_dir(new), dirs_exist_ok=True)
        except OSError as e:
            raise ProfileDocumentError(f"Failed to copy profile '{original}' to '{new}': {e}") from e
        logger.info(f"Duplicated profile '{original}' to '{new}'")

    def extend_profile_to(self, original: str, new: str) -> None:
        """Create `new` as a profile inheriting from `original`."""
        if not self.layout.profile_dir(original).is_dir():
            raise ProfileNotFoundError(f"Profile '{original}' not found in {self.layout.profiles}")

        write_yaml(self.layout.settings_file(new), {"extends": original})
        logger.info(f"Created profile '{new}' extending '{original}'")

    # ===== Restore =====

    def restore_profile(self, context: ProfileContext) -> RestoreReport:
        """Apply the effective state of a profile to the live editor.

        The need for a restart is decided before anything is changed; if the
        user declines it, nothing is applied. Resources are restored in
        declaration order. Failed extension operations don't stop the restore;
        they trigger a window reload at the end.

        Args:
            context: Initialized profile context

        Returns:
            Report of what was done

        Raises:
            ProfileNotInitializedError: If the context wasn't initialized
            ProfileConfigurationError: If the profile chain is inconsistent
        """
        self._check_initialized(context)

        profile = context.name
        logger.info(f"Restore profile '{profile}' from {self.paths.repository}")

        settings = self.sync_settings.resolve(profile)
        ancestor = self.chain.ancestor(profile)
        resources = Resource.ordered(settings.resources or [])

        report = RestoreReport(profile=profile, resources=resources)
        report.restart_required = self.should_restart(context, resources)

        if report.restart_required and not self.host.confirm_restart():
            logger.info("Restore cancelled, restart declined")
            report.cancelled = True
            return report

        for resource in resources:
            if resource is Resource.EXTENSIONS:
                report.extension_results = self._restore_extensions(profile, settings)
            elif resource is Resource.KEYBINDINGS:
                self._restore_keybindings(ancestor)
            elif resource is Resource.SETTINGS:
                self._restore_user_settings(ancestor, settings)
            elif resource is Resource.SNIPPETS:
                self._restore_snippets(profile)
            elif resource is Resource.UI_STATE:
                self._restore_ui_state(profile)

        logger.info("Restore done")

        if report.restart_required:
            self.host.restart()
            report.restarted = True
        elif report.failures:
            logger.warning(f"{len(report.failures)} extension operations failed, reloading window")
            self.host.reload()
            report.reloaded = True

        return report

    def download(self, context: ProfileContext) -> RestoreReport:
        """Restore the profile; the file repository has nothing to fetch."""
        return self.restore_profile(context)

    def should_restart(self, context: ProfileContext, resources: list[Resource] | None = None) -> bool:
        """Whether restoring would leave the running editor out of sync.

        True when a disabled extension can't be disabled through native
        commands, or when a stored UI state value differs from the live one.
        Reads only.
        """
        self._check_initialized(context)

        if resources is None:
            resources = self.sync_settings.resolve(context.name).resources or []

        if Resource.EXTENSIONS not in resources and Resource.UI_STATE not in resources:
            return False

        extensions = self.extensions.load_effective(context.name)

        if Resource.EXTENSIONS in resources and extensions.disabled and not self.host.can_manage_extensions():
            return True

        if Resource.UI_STATE in resources:
            live = self.capture.capture(extensions)
            return ui_state_differs(self.ui_state.load_effective(context.name), live)

        return False

    def _restore_extensions(self, profile: str, settings: SyncSettings) -> list[OperationResult]:
        logger.info("Restore extensions")
        target = self.extensions.load_effective(profile)
        return self.reconciler.reconcile(target, self._ignored_extensions(settings))

    def _restore_keybindings(self, ancestor: str) -> None:
        logger.info("Restore keybindings")

        per_platform = self.sync_settings.resolve(ancestor).keybindings_per_platform
        stored = read_text(self.layout.keybindings_file(ancestor, bool(per_platform), self.paths.platform))

        data = normalize(stored) if stored and stored.strip() else "[]"
        write_text(self.editor.keybindings_file, data)

    def _restore_user_settings(self, ancestor: str, settings: SyncSettings) -> None:
        logger.info("Restore settings")

        ignored = filter_ignored_settings(settings.ignored_settings or [])
        live = strip_bom(read_text(self.editor.settings_file) or "")
        extracted = extract_properties(live, ignored) if live.strip() else ""

        stored = read_text(self.layout.user_settings_file(ancestor))
        data = normalize(stored) if stored and stored.strip() else "{}"

        # ignored settings always come from the live editor
        data = remove_properties(data, ignored)
        if extracted:
            data = insert_properties(data, extracted)

        write_text(self.editor.settings_file, data)

    def _restore_snippets(self, profile: str) -> None:
        logger.info("Restore snippets")
        self.snippets.restore(profile, self.editor.snippets_dir)

    def _restore_ui_state(self, profile: str) -> None:
        logger.info("Restore UI state")
        self.capture.apply(self.ui_state.load_effective(profile))

    # ===== Serialize =====

    def serialize_profile(self, context: ProfileContext, live_settings: SyncSettings) -> None:
        """Capture the live editor into a profile.

        Extensions are captured first since the UI state capture needs the
        extension list. Key bindings and settings are only stored for
        non-inheriting profiles.

        Args:
            context: Initialized profile context
            live_settings: Sync policy set in the editor (unset values None)

        Raises:
            ProfileNotInitializedError: If the context wasn't initialized
            ProfileConfigurationError: If the profile chain is inconsistent
        """
        self._check_initialized(context)

        profile = context.name
        logger.info(f"Serialize profile '{profile}' to {self.paths.repository}")

        # fail on a broken chain before anything is written
        chain = self.chain.chain(profile)
        parent = chain[1] if len(chain) > 1 else None
        if parent:
            self.sync_settings.load(parent)

        settings = live_settings.resolved()
        resources = settings.resources or []

        self.layout.data_dir(profile).mkdir(parents=True, exist_ok=True)

        extensions = None
        if Resource.EXTENSIONS in resources:
            extensions = self._serialize_extensions(profile, parent, settings)

        if Resource.SNIPPETS in resources:
            logger.info("Serialize snippets")
            self.snippets.serialize(profile, self.editor.snippets_dir, parent)

        if Resource.UI_STATE in resources:
            self._serialize_ui_state(profile, parent, extensions)

        if not parent:
            if Resource.KEYBINDINGS in resources:
                self._serialize_keybindings(profile, settings)
            if Resource.SETTINGS in resources:
                self._serialize_user_settings(profile, settings)

        self.sync_settings.save(profile, live_settings, parent)

        logger.info("Serialize done")

    def upload(self, context: ProfileContext, live_settings: SyncSettings) -> None:
        """Serialize the profile; the file repository has nothing to send."""
        self.serialize_profile(context, live_settings)

    def _serialize_extensions(self, profile: str, parent: str | None, settings: SyncSettings) -> ExtensionList:
        logger.info("Serialize extensions")
        live = self.host.list_extensions(self._ignored_extensions(settings))
        self.extensions.save(profile, live, parent)
        return live

    def _serialize_ui_state(self, profile: str, parent: str | None, extensions: ExtensionList | None) -> None:
        logger.info("Serialize UI state")
        if extensions is None:
            extensions = self.host.list_extensions([])
        self.ui_state.save(profile, self.capture.capture(extensions), parent)

    def _serialize_keybindings(self, profile: str, settings: SyncSettings) -> None:
        logger.info("Serialize keybindings")

        path = self.layout.keybindings_file(profile, bool(settings.keybindings_per_platform), self.paths.platform)
        live = read_text(self.editor.keybindings_file)

        if live is not None:
            write_text(path, strip_comments(strip_bom(live)), private=True)
        else:
            remove_path(path)

    def _serialize_user_settings(self, profile: str, settings: SyncSettings) -> None:
        logger.info("Serialize settings")

        path = self.layout.user_settings_file(profile)
        live = read_text(self.editor.settings_file)

        if live:
            ignored = filter_ignored_settings(settings.ignored_settings or [])
            write_text(path, strip_comments(remove_properties(strip_bom(live), ignored)), private=True)
        else:
            remove_path(path)

    # ===== Private Helpers =====

    def _ignored_extensions(self, settings: SyncSettings) -> list[str]:
        ignored = list(settings.ignored_extensions or [])
        if self.paths.own_extension_id:
            ignored.append(self.paths.own_extension_id)
        return ignored

    def _check_initialized(self, context: ProfileContext) -> None:
        if not context.initialized:
            raise ProfileNotInitializedError(
                f"Profile '{context.name}' wasn't initialized, so the current operation can't continue"
            )
