"""Root pytest configuration for remote-fs tests."""
import pytest

from remote_fs.settings import Settings
from remote_fs.storage.s3_backend import S3Backend

from tests.storage.fakes import FakeObjectTransport

TEST_BUCKET = "test-bucket"


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow (may take significant time)"
    )


# Keep the developer's environment out of settings-driven tests
@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Automatically clear REMOTE_FS_* environment variables."""
    for name in (
        "REMOTE_FS_S3_REGION",
        "REMOTE_FS_S3_PROFILE",
        "REMOTE_FS_S3_ACCESS_KEY_ID",
        "REMOTE_FS_S3_SECRET_ACCESS_KEY",
        "REMOTE_FS_S3_SESSION_TOKEN",
        "REMOTE_FS_S3_ENDPOINT_URL",
        "REMOTE_FS_S3_ADDRESSING_STYLE",
        "REMOTE_FS_HTTP_TIMEOUT",
        "REMOTE_FS_HTTP_RETRY",
        "REMOTE_FS_PART_SIZE",
        "REMOTE_FS_CHUNK_SIZE",
    ):
        monkeypatch.delenv(name, raising=False)


# Standardized test fixtures
@pytest.fixture
def settings():
    """Standard test settings: minimum part size, small read chunks."""
    return Settings(chunk_size=1024)


@pytest.fixture
def transport():
    """In-memory object transport."""
    return FakeObjectTransport()


@pytest.fixture
def backend(settings, transport):
    """S3 backend over the fake transport."""
    return S3Backend(bucket=TEST_BUCKET, transport=transport, settings=settings)
