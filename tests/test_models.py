"""Tests for profile-sync data models."""

from pathlib import Path

import pytest
from profile_sync import NIL_UUID
from profile_sync import ExtensionId
from profile_sync import ExtensionList
from profile_sync import OperationResult
from profile_sync import ProfileDocumentError
from profile_sync import Resource
from profile_sync import RestoreReport
from profile_sync import SnippetsDiff
from profile_sync import SyncPaths
from profile_sync import SyncSettings
from profile_sync import UIStateDiff
from profile_sync.models import ExtensionAction
from profile_sync.models import ProfileSettings


class TestExtensionId:
    """Test ExtensionId decoding."""

    def test_legacy_string_entry(self):
        """Test plain-string entries decode with the nil UUID."""
        ext = ExtensionId.from_raw("ms-python.python")
        assert ext == ExtensionId(id="ms-python.python", uuid=NIL_UUID)

    def test_record_entry(self):
        """Test record entries keep their UUID."""
        ext = ExtensionId.from_raw({"id": "a.b", "uuid": "1234"})
        assert ext.uuid == "1234"
        assert ext.to_dict() == {"id": "a.b", "uuid": "1234"}

    def test_record_without_uuid(self):
        """Test a missing UUID falls back to the nil UUID."""
        assert ExtensionId.from_raw({"id": "a.b"}).uuid == NIL_UUID

    def test_invalid_entry_raises(self):
        """Test entries that are neither strings nor records are rejected."""
        with pytest.raises(ProfileDocumentError):
            ExtensionId.from_raw(42)

    def test_key_is_case_insensitive(self):
        """Test identity ignores case."""
        assert ExtensionId("MS-Python.Python").key == ExtensionId("ms-python.python").key


class TestExtensionList:
    """Test ExtensionList serialization."""

    def test_mixed_legacy_entries(self):
        """Test each entry is decoded on its own."""
        extensions = ExtensionList.from_dict({"enabled": ["a.one", {"id": "b.two", "uuid": "u"}], "disabled": None})
        assert extensions.enabled == [ExtensionId("a.one"), ExtensionId("b.two", "u")]
        assert extensions.disabled == []
        assert extensions.uninstall is None

    def test_empty_document(self):
        """Test an empty document decodes to an empty list."""
        assert ExtensionList.from_dict(None).is_empty()

    def test_non_mapping_raises(self):
        """Test a document that is not a mapping is rejected."""
        with pytest.raises(ProfileDocumentError):
            ExtensionList.from_dict(["a.one"])

    def test_to_dict_omits_empty_uninstall(self):
        """Test uninstall is only written when non-empty."""
        data = ExtensionList(enabled=[ExtensionId("a.one")], uninstall=[]).to_dict()
        assert "uninstall" not in data
        assert data["enabled"] == [{"id": "a.one", "uuid": NIL_UUID}]

    def test_builtin_disabled_round_trip(self):
        """Test built-in disabled extensions are carried."""
        extensions = ExtensionList.from_dict({"builtin": {"disabled": ["vscode.git"]}})
        assert extensions.builtin_disabled == ["vscode.git"]
        assert extensions.to_dict()["builtin"] == {"disabled": ["vscode.git"]}

    def test_ids(self):
        """Test ids lists disabled then enabled extensions."""
        extensions = ExtensionList(disabled=[ExtensionId("c")], enabled=[ExtensionId("a")])
        assert extensions.ids() == ["c", "a"]


class TestSyncSettings:
    """Test SyncSettings."""

    def test_from_dict_camel_case(self):
        """Test stored keys are camelCase."""
        settings = SyncSettings.from_dict(
            {"keybindingsPerPlatform": False, "ignoredSettings": ["window.zoomLevel"], "resources": ["settings", "uiState"]}
        )
        assert settings.keybindings_per_platform is False
        assert settings.ignored_settings == ["window.zoomLevel"]
        assert settings.ignored_extensions is None
        assert settings.resources == [Resource.SETTINGS, Resource.UI_STATE]

    def test_invalid_resource_raises(self):
        """Test unknown resource names are rejected."""
        with pytest.raises(ProfileDocumentError):
            SyncSettings.from_dict({"resources": ["themes"]})

    def test_to_dict_only_explicit(self):
        """Test only explicitly set values are written."""
        assert SyncSettings().to_dict() == {}
        assert SyncSettings(resources=[Resource.SNIPPETS]).to_dict() == {"resources": ["snippets"]}

    def test_resolved_defaults(self):
        """Test defaults fill unset values."""
        settings = SyncSettings().resolved()
        assert settings.keybindings_per_platform is True
        assert settings.ignored_extensions == []
        assert settings.ignored_settings == []
        assert settings.resources == list(Resource)

    def test_overlay(self):
        """Test explicit values of the overlay win."""
        base = SyncSettings(keybindings_per_platform=False, ignored_settings=["a"])
        merged = base.overlay(SyncSettings(ignored_settings=["b"]))
        assert merged.keybindings_per_platform is False
        assert merged.ignored_settings == ["b"]

    def test_explicit_empty_list_is_kept(self):
        """Test an explicit empty list differs from unset."""
        assert SyncSettings(ignored_settings=[]).to_dict() == {"ignoredSettings": []}


class TestResource:
    """Test Resource ordering."""

    def test_ordered(self):
        """Test resources are put in declaration order without duplicates."""
        ordered = Resource.ordered([Resource.UI_STATE, Resource.EXTENSIONS, Resource.UI_STATE])
        assert ordered == [Resource.EXTENSIONS, Resource.UI_STATE]


class TestDiffModels:
    """Test snippet and UI-state diff documents."""

    def test_snippets_diff(self):
        """Test SnippetsDiff uses the 'removed' key."""
        diff = SnippetsDiff.from_dict({"removed": ["go.json"]})
        assert diff.to_dict() == {"removed": ["go.json"]}
        assert SnippetsDiff.from_dict(None).is_empty()

    def test_snippets_diff_not_a_mapping(self):
        """Test a removal document holding a list is rejected."""
        with pytest.raises(ProfileDocumentError):
            SnippetsDiff.from_dict(["go.json"])

    def test_ui_state_diff_not_a_mapping(self):
        with pytest.raises(ProfileDocumentError):
            UIStateDiff.from_dict("modified")

    def test_ui_state_diff(self):
        """Test UIStateDiff decoding."""
        diff = UIStateDiff.from_dict({"modified": {"k": "v"}})
        assert diff.modified == {"k": "v"}
        assert diff.removed == []
        assert not diff.is_empty()


class TestProfileSettings:
    """Test ProfileSettings."""

    def test_extends(self):
        assert ProfileSettings.from_dict({"extends": "base"}).extends == "base"
        assert ProfileSettings.from_dict(None).extends is None

    def test_invalid_extends(self):
        """Test a non-string parent is rejected."""
        with pytest.raises(ProfileDocumentError):
            ProfileSettings.from_dict({"extends": ["a", "b"]})


class TestRestoreReport:
    """Test RestoreReport status."""

    def test_failures(self):
        """Test failed operations make the report unsuccessful."""
        report = RestoreReport(profile="p")
        assert report.succeeded

        report.extension_results.append(OperationResult("a.b", ExtensionAction.INSTALL, False, "offline"))
        assert report.failures[0].reason == "offline"
        assert not report.succeeded

    def test_cancelled(self):
        assert not RestoreReport(profile="p", cancelled=True).succeeded


class TestSyncPaths:
    """Test SyncPaths defaults."""

    def test_default(self):
        """Test default paths derive from the user data directory."""
        paths = SyncPaths.default(Path("/tmp/profiles"))
        assert paths.repository == Path("/tmp/profiles")
        assert paths.state_db == paths.user_data / "globalStorage" / "state.vscdb"
        assert paths.user_data.name == "User"
