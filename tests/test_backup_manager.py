"""
Integration tests for sync/backup_manager.py using the in-memory storage client.
"""
import logging
from unittest.mock import MagicMock

import pytest

from mirror_backup.config.settings import BackupConfig, LookupScope
from mirror_backup.exceptions import FilesystemError, RemoteApiError
from mirror_backup.sync.backup_manager import BackupManager


@pytest.fixture
def manager(fake_client):
    return BackupManager(BackupConfig(), client=fake_client)


def test_backup_photo_scenario(manager, fake_client, photo_tree):
    """An empty drive gets the root, one folder per directory and every file."""
    result = manager.backup(photo_tree)

    root_id, = fake_client.folder_ids("Videos Backup")
    photos_id, = fake_client.folder_ids("photos")
    year_id, = fake_client.folder_ids("2020")
    mutations = fake_client.mutations()
    assert mutations[:3] == [
        ("create_folder", "Videos Backup", None),
        ("create_folder", "photos", root_id),
        ("create_folder", "2020", photos_id),
    ]
    assert sorted(mutations[3:]) == [
        ("upload_file", "a.jpg", year_id),
        ("upload_file", "b.jpg", year_id),
    ]
    assert result.root_folder_id == root_id
    assert result.files_found == 2
    assert result.files_uploaded == 2
    assert result.folders_created == 2


def test_backup_looks_up_shared_ancestors_once(manager, fake_client, photo_tree):
    manager.backup(photo_tree)

    assert fake_client.calls_to("search_by_name").count(("search_by_name", "photos")) == 1
    assert fake_client.calls_to("search_by_name").count(("search_by_name", "2020")) == 1


def test_backup_mirrors_hierarchy(manager, fake_client, tmp_path):
    """a/b/c/file.txt ends up as a -> b -> c -> file.txt below the root."""
    deep = tmp_path / "a" / "b" / "c"
    deep.mkdir(parents=True)
    (deep / "file.txt").write_text("content")

    manager.backup(tmp_path)

    root_id, = fake_client.folder_ids("Videos Backup")
    a_id, = fake_client.folder_ids("a")
    b_id, = fake_client.folder_ids("b")
    c_id, = fake_client.folder_ids("c")
    assert fake_client.children(root_id) == ["a"]
    assert fake_client.children(a_id) == ["b"]
    assert fake_client.children(b_id) == ["c"]
    assert fake_client.children(c_id) == ["file.txt"]


def test_backup_twice_creates_nothing_new(fake_client, photo_tree):
    """A second run against unchanged trees only performs lookups."""
    BackupManager(BackupConfig(), client=fake_client).backup(photo_tree)
    fake_client.calls.clear()

    result = BackupManager(BackupConfig(), client=fake_client).backup(photo_tree)

    assert fake_client.mutations() == []
    assert result.files_skipped == 2
    assert result.files_uploaded == 0
    assert result.folders_reused == 2


def test_backup_reuses_existing_root_folder(manager, fake_client, photo_tree, caplog):
    root_id = fake_client.add_folder("Videos Backup")

    with caplog.at_level(logging.INFO, logger="mirror_backup"):
        result = manager.backup(photo_tree)

    assert result.root_folder_id == root_id
    assert ("create_folder", "Videos Backup", None) not in fake_client.calls
    assert f"preexisting root folder: {root_id}" in caplog.text


def test_backup_reuses_folder_with_same_name_elsewhere(manager, fake_client, photo_tree):
    """A pre-existing "photos" folder is reused wherever it lives."""
    elsewhere = fake_client.add_folder("photos", parent_id="unrelated-parent")

    manager.backup(photo_tree)

    assert fake_client.folder_ids("photos") == [elsewhere]
    year_id, = fake_client.folder_ids("2020")
    assert fake_client.items[year_id].parent_id == elsewhere


def test_backup_uses_configured_root_name(fake_client, photo_tree):
    manager = BackupManager(BackupConfig(root_folder_name="Archive"), client=fake_client)

    manager.backup(photo_tree)

    assert fake_client.mutations()[0] == ("create_folder", "Archive", None)


def test_backup_parent_scope(fake_client, photo_tree):
    elsewhere = fake_client.add_folder("photos", parent_id="unrelated-parent")
    config = BackupConfig(lookup_scope=LookupScope.PARENT)

    BackupManager(config, client=fake_client).backup(photo_tree)

    root_id, = fake_client.folder_ids("Videos Backup")
    photo_ids = fake_client.folder_ids("photos")
    assert len(photo_ids) == 2
    assert elsewhere in photo_ids
    assert fake_client.children(root_id) == ["photos"]


def test_backup_resolves_root_before_scanning(manager, fake_client, tmp_path):
    with pytest.raises(FilesystemError):
        manager.backup(tmp_path / "missing")

    assert fake_client.calls_to("search_by_name") == [("search_by_name", "Videos Backup")]


def test_backup_requires_client():
    with pytest.raises(RuntimeError):
        BackupManager(BackupConfig()).backup(".")


def test_backup_shows_progress(fake_client, photo_tree):
    progress = MagicMock()
    manager = BackupManager(BackupConfig(), client=fake_client, progress=progress)

    manager.backup(photo_tree)

    progress.__enter__.assert_called_once()
    progress.__exit__.assert_called_once()
    assert sorted(call.args[0] for call in progress.observer.call_args_list) == [
        "photos/2020/a.jpg",
        "photos/2020/b.jpg",
    ]


def test_run_returns_zero_on_success(manager, photo_tree):
    assert manager.run(photo_tree) == 0
    assert manager.result.files_uploaded == 2


def test_run_returns_one_for_missing_root(manager, tmp_path, caplog):
    with caplog.at_level(logging.ERROR, logger="mirror_backup"):
        assert manager.run(tmp_path / "missing") == 1

    assert "aborted" in caplog.text


def test_run_stops_at_first_failed_upload(manager, fake_client, tmp_path):
    """One failing file aborts the whole run."""
    for name in ("one.txt", "two.txt", "three.txt"):
        (tmp_path / name).write_text(name)

    def fail(local_path, file_name, parent_id=None, progress_callback=None):
        fake_client.calls.append(("upload_file", file_name, parent_id))
        raise RemoteApiError("connection reset")

    fake_client.upload_file = fail

    assert manager.run(tmp_path) == 1
    assert len(fake_client.calls_to("upload_file")) == 1


def test_backup_closes_client(manager, fake_client, photo_tree):
    manager.backup(photo_tree)

    assert fake_client.closed


def test_failed_backup_closes_client(manager, fake_client, tmp_path):
    assert manager.run(tmp_path / "missing") == 1
    assert fake_client.closed
