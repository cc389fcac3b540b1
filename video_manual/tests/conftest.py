import pytest

import video_manual.main as main_module
from video_manual.app.services.search_session import SessionRegistry
from video_manual.app.services.youtube_search import YouTubeSearchClient
from video_manual.tests.helpers import FakeYouTube


@pytest.fixture
def fake_youtube():
    return FakeYouTube()


@pytest.fixture
def client(fake_youtube):
    return YouTubeSearchClient(api_key="TEST_KEY", session=fake_youtube)


@pytest.fixture
def app_state(monkeypatch, client):
    registry = SessionRegistry()
    monkeypatch.setattr(main_module, "SESSIONS", registry)
    monkeypatch.setattr(main_module, "search_client", client)
    return registry
