"""Pytest configuration and fixtures."""

import os
import shutil
import subprocess
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

# Set test environment before importing app modules
_TEST_ROOT = Path(tempfile.mkdtemp(prefix="history-talks-tests-"))
UPLOAD_DIR = _TEST_ROOT / "uploads"
DATA_DIR = _TEST_ROOT / "data"

os.environ["UPLOAD_DIR"] = str(UPLOAD_DIR)
os.environ["DATA_DIR"] = str(DATA_DIR)
os.environ["DATABASE_URL"] = f"sqlite:///{DATA_DIR / 'test.db'}"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["LLM_PROVIDER"] = "stub"
os.environ["VOICEOVER_PROVIDER"] = "stub"
# Spawning this fails fast, so uploads exercise the fail-open path unless a
# test patches subprocess.run
os.environ["FFMPEG_PATH"] = "ffmpeg-not-installed-for-tests"
os.environ["LOG_LEVEL"] = "WARNING"


@pytest.fixture(autouse=True)
def clean_state() -> Generator[None, None, None]:
    """Fresh database tables, content root and video URL map for every test."""
    from history_talks.config import settings
    from history_talks.db.models import Base
    from history_talks.db.session import engine

    DATA_DIR.mkdir(parents=True, exist_ok=True)
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    shutil.rmtree(UPLOAD_DIR, ignore_errors=True)
    settings.video_url_map_path.unlink(missing_ok=True)
    yield


@pytest.fixture
def test_client() -> Generator[TestClient, None, None]:
    """Test client; entering it runs startup, which seeds the catalog."""
    from history_talks.main import app

    with TestClient(app) as client:
        yield client


@pytest.fixture
def session() -> Generator[Any, None, None]:
    from history_talks.db.session import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def media_root(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def storage(media_root: Path):
    """Media storage rooted in a per-test directory."""
    from history_talks.services.storage import MediaStorage

    return MediaStorage(root=media_root)


@pytest.fixture
def url_map(tmp_path: Path):
    from history_talks.services.url_map import VideoUrlMap

    return VideoUrlMap(tmp_path / "data" / "video-urls.json")


@pytest.fixture
def catalog(session, url_map):
    """Catalog over the test database with a per-test video URL map."""
    from history_talks.services.catalog import PersonaCatalog

    return PersonaCatalog(session, url_map=url_map, large_asset_threshold=1000)


@pytest.fixture
def persona_data() -> dict[str, Any]:
    return {
        "name": "Hypatia",
        "title": "Mathematician of Alexandria",
        "bio": "Taught mathematics and astronomy in 4th-century Alexandria.",
        "prompt": "You are Hypatia, a mathematician and philosopher of Alexandria.",
        "bg_color": "#7c3aed",
    }


@pytest.fixture
def fake_ffmpeg() -> Callable[..., Any]:
    """Build a subprocess.run replacement that writes a small output file.

    Use with patch("history_talks.services.optimizer.subprocess.run").
    """

    def factory(returncode: int = 0, output: bytes = b"optimized") -> Callable[..., Any]:
        def run(args: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
            if returncode == 0:
                Path(args[-1]).write_bytes(output)
            return subprocess.CompletedProcess(
                args,
                returncode,
                stdout="",
                stderr="" if returncode == 0 else "Invalid data found when processing input",
            )

        return run

    return factory


@pytest.fixture
def voiceover_provider():
    """Get a stub voiceover provider."""
    from history_talks.adapters.voiceover.stub import StubVoiceoverProvider

    return StubVoiceoverProvider()


@pytest.fixture
def llm_provider():
    """Get a stub LLM provider."""
    from history_talks.adapters.llm.stub import StubLLMProvider

    return StubLLMProvider()
