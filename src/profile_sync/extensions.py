"""Extension list diffing, merging and restore-time reconciliation."""

import json
import logging
from collections.abc import Callable
from collections.abc import Iterable

from .chain import ProfileChainResolver
from .documents import read_yaml
from .documents import remove_path
from .documents import write_yaml
from .host import EditorHost
from .host import KeyValueStore
from .layout import ProfileLayout
from .models import ExtensionAction
from .models import ExtensionId
from .models import ExtensionList
from .models import OperationResult

logger = logging.getLogger(__name__)

# Key-value store record the editor reads its disabled extensions from
DISABLED_EXTENSIONS_KEY = "extensionsIdentifiers/disabled"


def _unique(extensions: Iterable[ExtensionId]) -> list[ExtensionId]:
    seen = set()
    result = []
    for ext in extensions:
        if ext.key not in seen:
            seen.add(ext.key)
            result.append(ext)
    return result


def _without(extensions: Iterable[ExtensionId], keys: set[str]) -> list[ExtensionId]:
    return [ext for ext in extensions if ext.key not in keys]


def compute_extensions_diff(live: ExtensionList, baseline: ExtensionList) -> ExtensionList:
    """Compute what changed between a baseline extension list and the live one.

    Args:
        live: Extensions currently installed in the editor
        baseline: Effective extension list inherited from the ancestor

    Returns:
        Diff with newly disabled, newly enabled and uninstalled extensions;
        `uninstall` is None when nothing was uninstalled
    """
    baseline_disabled = {ext.key for ext in baseline.disabled}
    baseline_enabled = {ext.key for ext in baseline.enabled}
    live_keys = {ext.key for ext in [*live.disabled, *live.enabled]}

    disabled = _unique(_without(live.disabled, baseline_disabled))
    enabled = _unique(_without(live.enabled, baseline_enabled))
    uninstall = _unique(_without([*baseline.disabled, *baseline.enabled], live_keys))

    return ExtensionList(disabled=disabled, enabled=enabled, uninstall=uninstall or None)


def apply_extensions_diff(base: ExtensionList, diff: ExtensionList) -> ExtensionList:
    """Apply an extension diff to a base list.

    Applying the same diff twice gives the same result as applying it once.
    Neither argument is modified.

    Args:
        base: Effective list of the ancestor
        diff: Diff stored by the inheriting profile

    Returns:
        Merged extension list
    """
    disabled = list(base.disabled)
    enabled = list(base.enabled)

    for ext in diff.disabled:
        enabled = _without(enabled, {ext.key})
        if not any(item.key == ext.key for item in disabled):
            disabled.append(ext)

    for ext in diff.enabled:
        disabled = _without(disabled, {ext.key})
        if not any(item.key == ext.key for item in enabled):
            enabled.append(ext)

    if diff.uninstall:
        removed = {ext.key for ext in diff.uninstall}
        disabled = _without(disabled, removed)
        enabled = _without(enabled, removed)

    return ExtensionList(disabled=disabled, enabled=enabled, builtin_disabled=base.builtin_disabled)


class ExtensionStore:
    """Stored extension documents of a profile chain.

    Non-inheriting profiles store the full list, inheriting profiles store a
    diff against their parent's effective list.
    """

    def __init__(self, layout: ProfileLayout, chain: ProfileChainResolver):
        self.layout = layout
        self.chain = chain

    def load_document(self, profile: str) -> ExtensionList | None:
        """Load the profile's own document (current or legacy path), or None."""
        data = read_yaml(self.layout.extensions_file(profile))
        if data is None:
            data = read_yaml(self.layout.legacy_extensions_file(profile))
        if data is None:
            return None
        return ExtensionList.from_dict(data)

    def load_effective(self, profile: str) -> ExtensionList:
        """Replay the chain's extension documents, oldest ancestor first."""
        lineage = self.chain.lineage(profile)

        extensions = self.load_document(lineage[0]) or ExtensionList()
        extensions = ExtensionList(
            disabled=extensions.disabled,
            enabled=extensions.enabled,
            builtin_disabled=extensions.builtin_disabled,
        )

        for name in lineage[1:]:
            diff = self.load_document(name)
            if diff is not None:
                extensions = apply_extensions_diff(extensions, diff)

        return extensions

    def save(self, profile: str, live: ExtensionList, parent: str | None) -> None:
        """Store the live list, as a diff when the profile inherits."""
        if parent:
            diff = compute_extensions_diff(live, self.load_effective(parent))
            data = diff.to_dict()
        else:
            data = live.to_dict()

        write_yaml(self.layout.extensions_file(profile), data, private=True)
        remove_path(self.layout.legacy_extensions_file(profile))


class ExtensionReconciler:
    """Bring the editor's installed extensions in line with a target list.

    Every operation is attempted even when earlier ones fail; the caller
    decides what to do with the failures.
    """

    def __init__(self, host: EditorHost, store: KeyValueStore):
        self.host = host
        self.store = store

    def reconcile(self, target: ExtensionList, ignored: list[str]) -> list[OperationResult]:
        """Install, enable, disable and uninstall extensions to match `target`.

        Args:
            target: Effective extension list of the profile
            ignored: Extension ids left alone

        Returns:
            One result per host operation, in execution order
        """
        live = self.host.list_extensions(ignored)
        native = self.host.can_manage_extensions()
        skipped = {ext_id.lower() for ext_id in ignored}

        installed = {ext.key for ext in [*live.disabled, *live.enabled]}
        currently_disabled = {ext.key for ext in live.disabled}
        currently_enabled = {ext.key for ext in live.enabled}
        # installed extensions not (yet) claimed by the target list
        pending = {ext.key: ext.id for ext in [*live.disabled, *live.enabled]}

        results: list[OperationResult] = []

        for ext in target.disabled:
            if ext.key in skipped:
                continue
            if ext.key not in installed:
                if self._run(results, ExtensionAction.INSTALL, ext.id) and native:
                    self._run(results, ExtensionAction.DISABLE, ext.id)
            elif native and ext.key in currently_enabled:
                self._run(results, ExtensionAction.DISABLE, ext.id)
            pending.pop(ext.key, None)

        for ext in target.enabled:
            if ext.key in skipped:
                continue
            if ext.key not in installed:
                self._run(results, ExtensionAction.INSTALL, ext.id)
            elif ext.key in currently_disabled:
                if native:
                    self._run(results, ExtensionAction.ENABLE, ext.id)
                # without native commands an extension is re-enabled by reinstalling it
                elif self._run(results, ExtensionAction.UNINSTALL, ext.id):
                    self._run(results, ExtensionAction.INSTALL, ext.id)
            pending.pop(ext.key, None)

        for ext_id in pending.values():
            self._run(results, ExtensionAction.UNINSTALL, ext_id)

        if not native and target.disabled:
            value = json.dumps([ext.to_dict() for ext in target.disabled])
            self.store.write_items({DISABLED_EXTENSIONS_KEY: value})

        failed = sum(1 for result in results if not result.succeeded)
        logger.info(f"Reconciled extensions: {len(results)} operations, {failed} failed")
        return results

    def _run(self, results: list[OperationResult], action: ExtensionAction, ext_id: str) -> bool:
        operations: dict[ExtensionAction, Callable[[str], bool]] = {
            ExtensionAction.INSTALL: self.host.install_extension,
            ExtensionAction.ENABLE: self.host.enable_extension,
            ExtensionAction.DISABLE: self.host.disable_extension,
            ExtensionAction.UNINSTALL: self.host.uninstall_extension,
        }

        reason = None
        try:
            succeeded = bool(operations[action](ext_id))
        except Exception as e:
            succeeded = False
            reason = str(e)

        if not succeeded:
            detail = f": {reason}" if reason else ""
            logger.warning(f"Failed to {action.value} extension '{ext_id}'{detail}")

        results.append(OperationResult(extension_id=ext_id, action=action, succeeded=succeeded, reason=reason))
        return succeeded
