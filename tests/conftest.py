"""
Shared fixtures for the mirror backup tests.
"""
import pytest

# tests/ has no __init__.py, so pytest puts it on sys.path and the fixtures package resolves
from fixtures.fake_storage_client import FakeStorageClient


@pytest.fixture
def fake_client():
    """Create an empty in-memory storage client."""
    return FakeStorageClient()


@pytest.fixture
def photo_tree(tmp_path):
    """Create root/photos/2020/{a,b}.jpg."""
    root = tmp_path / "root"
    year_dir = root / "photos" / "2020"
    year_dir.mkdir(parents=True)
    (year_dir / "a.jpg").write_bytes(b"image a")
    (year_dir / "b.jpg").write_bytes(b"image b")
    return root
