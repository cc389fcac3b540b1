import json

import requests
from starlette.requests import Request

from video_manual.app.services.youtube_search import YOUTUBE_SEARCH_LIST, YOUTUBE_VIDEOS_LIST

SESSION_COOKIE = "vm_session"


def make_request(session_id: str | None = None, ip: str = "127.0.0.1") -> Request:
    headers = []
    if session_id:
        headers.append((b"cookie", f"{SESSION_COOKIE}={session_id}".encode("latin-1")))
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/",
            "headers": headers,
            "client": (ip, 8000),
            "query_string": b"",
            "server": ("test", 80),
            "scheme": "http",
            "http_version": "1.1",
        }
    )


def session_cookie(response) -> str | None:
    raw = response.headers.get("set-cookie")
    if not raw:
        return None
    name, _, value = raw.split(";")[0].partition("=")
    return value if name == SESSION_COOKIE else None


class FakeResponse:
    def __init__(self, payload=None, status_code: int = 200, text: str | None = None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("not json")
        return self._payload


class FakeYouTube:
    """Stands in for requests.Session; answers search.list and videos.list from fixtures."""

    def __init__(self, videos: list[dict] | None = None, details_order: list[str] | None = None):
        self.videos = videos or []
        self.details_order = details_order
        self.calls: list[tuple[str, dict]] = []
        self.search_response: FakeResponse | None = None
        self.details_response: FakeResponse | None = None
        self.raise_on: str | None = None

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, dict(params or {})))
        if self.raise_on == url:
            raise requests.ConnectionError("offline")
        if url == YOUTUBE_SEARCH_LIST:
            if self.search_response is not None:
                return self.search_response
            return FakeResponse({"items": [search_item(v) for v in self.videos]})
        if url == YOUTUBE_VIDEOS_LIST:
            if self.details_response is not None:
                return self.details_response
            requested = params["id"].split(",")
            by_id = {v["id"]: v for v in self.videos if not v.get("deleted")}
            order = self.details_order or requested
            items = [detail_item(by_id[vid]) for vid in order if vid in by_id and vid in requested]
            return FakeResponse({"items": items})
        raise AssertionError(f"unexpected url {url}")


def make_video(video_id, views, duration="PT3M", title=None, deleted=False):
    return {
        "id": video_id,
        "title": title if title is not None else f"Video {video_id}",
        "views": views,
        "duration": duration,
        "deleted": deleted,
    }


def search_item(video: dict) -> dict:
    return {
        "kind": "youtube#searchResult",
        "id": {"kind": "youtube#video", "videoId": video["id"]},
        "snippet": {
            "title": video["title"],
            "thumbnails": {
                "default": {"url": f"https://img/{video['id']}/default.jpg"},
                "medium": {"url": f"https://img/{video['id']}/mqdefault.jpg"},
            },
        },
    }


def detail_item(video: dict) -> dict:
    return {
        "id": video["id"],
        "statistics": {"viewCount": str(video["views"])},
        "contentDetails": {"duration": video["duration"]},
    }
