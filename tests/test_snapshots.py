"""
Snapshot manager test suite.

Covers the snapshot lifecycle (create, list, restore, delete), the
pre-restore backup and metadata handling.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import write_component
from nixdeck.engine.snapshots import SnapshotManager
from nixdeck.engine.store import CaptureStore
from nixdeck.errors import (
    AlreadyExistsError,
    InvalidNameError,
    IOFailureError,
    NotFoundError,
    ParseFailureError,
    UnknownComponentError,
)


@pytest.fixture
def manager(nixdeck_root, config_home) -> SnapshotManager:
    return SnapshotManager(nixdeck_root / "snapshots", config_home)


def tree_contents(root):
    """Map of relative path -> bytes for every file under root."""
    return {
        str(path.relative_to(root)): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


class TestSnapshotCreate:
    """Capturing the critical component subset."""

    def test_create_captures_present_components_only(self, manager, rice_setup, nixdeck_root):
        metadata = manager.create("s1")

        # dunst and gtk-3.0 exist but are not critical components
        assert metadata.files == ["waybar", "kitty", "picom"]
        snapshot_dir = nixdeck_root / "snapshots" / "s1"
        assert (snapshot_dir / "kitty" / "kitty.conf").read_text() == "font=Mono"
        assert (snapshot_dir / "kitty" / "themes" / "dark.conf").exists()
        assert not (snapshot_dir / "dunst").exists()
        assert not (snapshot_dir / "polybar").exists()

    def test_metadata_file_is_written(self, manager, rice_setup, nixdeck_root):
        manager.create("s1")

        data = json.loads((nixdeck_root / "snapshots" / "s1" / "metadata.json").read_text())
        assert data["name"] == "s1"
        assert data["description"] == ""
        assert data["files"] == ["waybar", "kitty", "picom"]
        # ISO-8601 local time with offset
        assert "T" in data["created"]
        assert data["created"][-6] in "+-" or data["created"].endswith("Z")

    def test_create_with_no_live_components(self, manager, nixdeck_root):
        metadata = manager.create("empty")

        assert metadata.files == []
        assert (nixdeck_root / "snapshots" / "empty" / "metadata.json").exists()

    def test_duplicate_create_fails_and_leaves_first_snapshot(self, manager, rice_setup, nixdeck_root):
        manager.create("s1")
        snapshot_dir = nixdeck_root / "snapshots" / "s1"
        before = tree_contents(snapshot_dir)

        (rice_setup / "kitty" / "kitty.conf").write_text("font=Changed")
        with pytest.raises(AlreadyExistsError) as exc_info:
            manager.create("s1")

        assert exc_info.value.message == "Snapshot 's1' already exists"
        assert tree_contents(snapshot_dir) == before

    def test_failed_capture_leaves_nothing_behind(self, manager, rice_setup, nixdeck_root):
        with patch("nixdeck.engine.store.copy_tree", side_effect=IOFailureError("copy file", "disk full")):
            with pytest.raises(IOFailureError):
                manager.create("broken")

        snapshots_dir = nixdeck_root / "snapshots"
        assert list(snapshots_dir.iterdir()) == []
        assert manager.list() == []

    @pytest.mark.parametrize("name", ["", "a/b", "..", ".hidden", "back\\slash", "--exclude=kitty", "-v"])
    def test_rejects_unusable_names(self, manager, name):
        with pytest.raises(InvalidNameError):
            manager.create(name)


class TestSnapshotList:
    """Listing snapshot names."""

    def test_list_on_missing_root_is_empty(self, manager):
        assert manager.list() == []

    def test_list_includes_each_name_once(self, manager, rice_setup):
        manager.create("b")
        manager.create("a")

        assert manager.list() == ["a", "b"]

    def test_list_skips_staging_and_files(self, manager, nixdeck_root):
        snapshots_dir = nixdeck_root / "snapshots"
        (snapshots_dir / ".s1.staging-abc").mkdir(parents=True)
        (snapshots_dir / "stray.txt").write_text("x")
        (snapshots_dir / "real").mkdir()

        assert manager.list() == ["real"]


class TestSnapshotRestore:
    """Copying captured state back over live configuration."""

    def test_restores_deleted_file(self, manager, config_home):
        write_component(config_home, "kitty", {"kitty.conf": "font=Mono"})
        manager.create("s1")

        (config_home / "kitty" / "kitty.conf").unlink()
        restored = manager.restore("s1")

        assert restored == ["kitty"]
        assert (config_home / "kitty" / "kitty.conf").read_text() == "font=Mono"

    def test_round_trip_is_byte_identical(self, manager, rice_setup):
        captured = {
            component: tree_contents(rice_setup / component)
            for component in ("waybar", "kitty", "picom")
        }
        manager.create("s1")

        (rice_setup / "waybar" / "config").write_text("broken")
        (rice_setup / "kitty" / "extra.conf").write_text("new file")
        manager.restore("s1")

        for component, contents in captured.items():
            assert tree_contents(rice_setup / component) == contents

    def test_backs_up_live_directory_before_overwrite(self, manager, rice_setup):
        manager.create("s1")
        (rice_setup / "kitty" / "kitty.conf").write_text("font=Experiment")

        manager.restore("s1")

        backup = rice_setup / "kitty.pre-restore-backup"
        assert (backup / "kitty.conf").read_text() == "font=Experiment"
        assert (rice_setup / "kitty" / "kitty.conf").read_text() == "font=Mono"

    def test_second_restore_replaces_previous_backup(self, manager, rice_setup):
        manager.create("s1")
        (rice_setup / "kitty" / "kitty.conf").write_text("first")
        manager.restore("s1")
        (rice_setup / "kitty" / "kitty.conf").write_text("second")
        manager.restore("s1")

        backup = rice_setup / "kitty.pre-restore-backup"
        assert (backup / "kitty.conf").read_text() == "second"

    def test_no_backup_when_live_component_is_absent(self, manager, config_home):
        write_component(config_home, "picom", {"picom.conf": "shadow = true;"})
        manager.create("s1")
        (config_home / "picom" / "picom.conf").unlink()
        (config_home / "picom").rmdir()

        manager.restore("s1")

        assert (config_home / "picom" / "picom.conf").read_text() == "shadow = true;"
        assert not (config_home / "picom.pre-restore-backup").exists()

    def test_live_components_without_capture_are_untouched(self, manager, config_home):
        write_component(config_home, "kitty", {"kitty.conf": "font=Mono"})
        manager.create("s1")
        write_component(config_home, "eww", {"eww.yuck": "(defwindow bar)"})

        manager.restore("s1")

        assert (config_home / "eww" / "eww.yuck").read_text() == "(defwindow bar)"
        assert not (config_home / "eww.pre-restore-backup").exists()

    def test_component_listed_but_not_captured_is_skipped(self, manager, config_home, nixdeck_root):
        write_component(config_home, "kitty", {"kitty.conf": "font=Mono"})
        manager.create("s1")
        metadata_path = nixdeck_root / "snapshots" / "s1" / "metadata.json"
        data = json.loads(metadata_path.read_text())
        data["files"].append("waybar")
        metadata_path.write_text(json.dumps(data))

        assert manager.restore("s1") == ["kitty"]
        assert not (config_home / "waybar").exists()

    def test_restore_missing_snapshot_fails(self, manager):
        with pytest.raises(NotFoundError) as exc_info:
            manager.restore("nope")

        assert exc_info.value.message == "Snapshot 'nope' not found"

    def test_snapshot_without_metadata_is_incomplete(self, manager, nixdeck_root):
        (nixdeck_root / "snapshots" / "partial" / "kitty").mkdir(parents=True)

        with pytest.raises(ParseFailureError):
            manager.restore("partial")

    def test_missing_files_field_is_a_parse_failure(self, manager, nixdeck_root):
        snapshot_dir = nixdeck_root / "snapshots" / "old"
        snapshot_dir.mkdir(parents=True)
        (snapshot_dir / "metadata.json").write_text(json.dumps({
            "name": "old", "created": "2026-01-01T10:00:00+01:00", "description": ""
        }))

        with pytest.raises(ParseFailureError):
            manager.restore("old")

    def test_unknown_metadata_fields_are_ignored(self, manager, config_home, nixdeck_root):
        write_component(config_home, "kitty", {"kitty.conf": "font=Mono"})
        manager.create("s1")
        metadata_path = nixdeck_root / "snapshots" / "s1" / "metadata.json"
        data = json.loads(metadata_path.read_text())
        data["schema_version"] = 7
        metadata_path.write_text(json.dumps(data))

        (config_home / "kitty" / "kitty.conf").write_text("changed")
        assert manager.restore("s1") == ["kitty"]

    def test_metadata_cannot_point_outside_config_home(self, manager, nixdeck_root):
        snapshot_dir = nixdeck_root / "snapshots" / "evil"
        snapshot_dir.mkdir(parents=True)
        (snapshot_dir / "metadata.json").write_text(json.dumps({
            "name": "evil", "created": "2026-01-01T10:00:00+01:00", "description": "", "files": [".."]
        }))

        with pytest.raises(UnknownComponentError):
            manager.restore("evil")

    def test_container_only_component_is_rejected_before_any_change(self, manager, config_home, nixdeck_root):
        write_component(config_home, "kitty", {"kitty.conf": "font=Mono"})
        manager.create("s1")
        metadata_path = nixdeck_root / "snapshots" / "s1" / "metadata.json"
        data = json.loads(metadata_path.read_text())
        data["files"].append("dunst")
        metadata_path.write_text(json.dumps(data))
        (config_home / "kitty" / "kitty.conf").write_text("changed")

        with pytest.raises(UnknownComponentError):
            manager.restore("s1")

        assert (config_home / "kitty" / "kitty.conf").read_text() == "changed"
        assert not (config_home / "kitty.pre-restore-backup").exists()


class TestSnapshotDelete:
    """Removing snapshots."""

    def test_delete_removes_from_list(self, manager, rice_setup, nixdeck_root):
        manager.create("s1")
        manager.create("s2")

        manager.delete("s1")

        assert manager.list() == ["s2"]
        assert not (nixdeck_root / "snapshots" / "s1").exists()

    def test_delete_missing_snapshot_fails(self, manager):
        with pytest.raises(NotFoundError):
            manager.delete("ghost")

    def test_name_is_reusable_after_delete(self, manager, rice_setup):
        manager.create("s1")
        manager.delete("s1")

        assert manager.create("s1").name == "s1"


class TestSnapshotGet:
    """Reading a snapshot's metadata."""

    def test_get_returns_recorded_metadata(self, manager, rice_setup):
        created = manager.create("s1")

        assert manager.get("s1") == created

    def test_get_missing_snapshot_fails(self, manager):
        with pytest.raises(NotFoundError):
            manager.get("ghost")

    def test_store_hooks_are_abstract(self, nixdeck_root, config_home):
        with pytest.raises(TypeError):
            CaptureStore(nixdeck_root, config_home)


def failing_rename(should_fail):
    """Path.rename replacement that raises OSError when should_fail(source, target) is true."""
    real_rename = Path.rename

    def rename(self, target):
        if should_fail(self, Path(target)):
            raise OSError(13, "Permission denied")
        return real_rename(self, target)

    return rename


class TestSnapshotRestoreFailures:
    """A failed restore step leaves live config and the previous backup as they were."""

    @pytest.fixture
    def restored_once(self, manager, config_home):
        """kitty restored once (backup holds "first"), then edited to "second"."""
        write_component(config_home, "kitty", {"kitty.conf": "font=Mono"})
        manager.create("s1")
        (config_home / "kitty" / "kitty.conf").write_text("first")
        manager.restore("s1")
        (config_home / "kitty" / "kitty.conf").write_text("second")
        return config_home

    def assert_untouched(self, config_home):
        assert (config_home / "kitty" / "kitty.conf").read_text() == "second"
        assert (config_home / "kitty.pre-restore-backup" / "kitty.conf").read_text() == "first"
        leftovers = [entry.name for entry in config_home.iterdir() if entry.name.startswith(".")]
        assert leftovers == []

    def test_copy_failure(self, manager, restored_once):
        with patch("nixdeck.engine.store.copy_tree", side_effect=IOFailureError("copy file", "disk full")):
            with pytest.raises(IOFailureError):
                manager.restore("s1")

        self.assert_untouched(restored_once)

    def test_backup_rename_failure_keeps_previous_backup(self, manager, restored_once):
        rename = failing_rename(lambda source, target: source.name == "kitty")

        with patch.object(Path, "rename", autospec=True, side_effect=rename):
            with pytest.raises(IOFailureError) as exc_info:
                manager.restore("s1")

        assert "backup current config" in exc_info.value.message
        self.assert_untouched(restored_once)

    def test_move_into_place_failure_rolls_back(self, manager, restored_once):
        rename = failing_rename(lambda source, target: source.name == ".kitty.nixdeck-incoming")

        with patch.object(Path, "rename", autospec=True, side_effect=rename):
            with pytest.raises(IOFailureError) as exc_info:
                manager.restore("s1")

        assert "move restored config into place" in exc_info.value.message
        self.assert_untouched(restored_once)

    def test_successful_restore_leaves_no_hidden_entries(self, manager, restored_once):
        manager.restore("s1")

        assert (restored_once / "kitty.pre-restore-backup" / "kitty.conf").read_text() == "second"
        assert [entry.name for entry in restored_once.iterdir() if entry.name.startswith(".")] == []
