import logging

import pytest

from sitesync.config import SyncConfig
from sitesync.remote import InMemoryRemoteStore


@pytest.fixture
def site(tmp_path):
    """Local tree {a.txt, b/c.txt} plus an empty directory."""
    root = tmp_path / "public"
    (root / "b").mkdir(parents=True)
    (root / "empty").mkdir()
    (root / "a.txt").write_text("alpha")
    (root / "b" / "c.txt").write_text("charlie")
    return root


@pytest.fixture
def memory_store():
    return InMemoryRemoteStore()


@pytest.fixture
def test_config(site):
    return SyncConfig(
        bucket="test-bucket",
        source=str(site),
        target="site",
        max_concurrency=4,
    )


@pytest.fixture(autouse=True)
def reset_sitesync_logger():
    # setup_logging() detaches the logger from root; restore it for caplog
    yield
    logger = logging.getLogger("sitesync")
    logger.handlers = []
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
