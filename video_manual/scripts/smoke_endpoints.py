from __future__ import annotations

import json
import sys
from pathlib import Path
from unittest.mock import patch

from starlette.requests import Request

ROOT_DIR = Path(__file__).resolve().parents[2]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import video_manual.main as main_module
from video_manual.app.services.search_session import SessionRegistry
from video_manual.app.services.youtube_search import YouTubeUnavailableError


def make_request(session_id: str | None = None, ip: str = "127.0.0.1") -> Request:
    headers = []
    if session_id:
        headers.append((b"cookie", f"{main_module.SESSION_COOKIE}={session_id}".encode("latin-1")))
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


def session_id_from(response) -> str | None:
    raw = response.headers.get("set-cookie") or ""
    name, _, value = raw.split(";")[0].partition("=")
    return value if name == main_module.SESSION_COOKIE else None


def make_search_item(video_id: str, title: str) -> dict:
    return {
        "id": {"kind": "youtube#video", "videoId": video_id},
        "snippet": {
            "title": title,
            "thumbnails": {
                "medium": {"url": f"https://img/{video_id}.jpg", "width": 320, "height": 180},
            },
        },
    }


def make_detail_item(video_id: str, views: int, duration: str) -> dict:
    return {
        "id": video_id,
        "statistics": {"viewCount": str(views)},
        "contentDetails": {"duration": duration},
    }


def assert_true(condition: bool, message: str) -> None:
    if not condition:
        raise AssertionError(message)


def reset_state() -> None:
    main_module.SESSIONS = SessionRegistry()


def test_health() -> None:
    payload = main_module.health()
    assert_true(payload.get("ok") is True, "/health should return ok=true")


def test_search_ranks_by_views() -> None:
    reset_state()
    call_count = {"search": 0, "details": 0}

    def fake_search(keyword: str) -> list[dict]:
        _ = keyword
        call_count["search"] += 1
        return [make_search_item("low", "Low views"), make_search_item("high", "High views")]

    def fake_details(video_ids: list[str]) -> list[dict]:
        _ = video_ids
        call_count["details"] += 1
        # videos.list answers in its own order
        return [make_detail_item("high", 50000, "PT4M2S"), make_detail_item("low", 100, "PT45S")]

    with (
        patch.object(main_module.search_client, "search_video_ids_and_snippets", side_effect=fake_search),
        patch.object(main_module.search_client, "fetch_video_details", side_effect=fake_details),
    ):
        response = main_module.api_search(make_request(), q="test")

    payload = json.loads(response.body)
    ids = [item["id"] for item in payload.get("items", [])]
    assert_true(ids == ["high", "low"], "/api/search should rank by view count descending")
    assert_true(payload["items"][1]["duration"] == "00:45", "/api/search should format durations")
    assert_true(call_count == {"search": 1, "details": 1}, "/api/search should call each endpoint once")
    assert_true(session_id_from(response) is not None, "/api/search should issue a session cookie")


def test_export_matches_table() -> None:
    reset_state()
    with (
        patch.object(
            main_module.search_client,
            "search_video_ids_and_snippets",
            return_value=[make_search_item("a", "A <b>bold</b>"), make_search_item("b", "B")],
        ),
        patch.object(
            main_module.search_client,
            "fetch_video_details",
            return_value=[make_detail_item("a", 5, "PT1M"), make_detail_item("b", 9, "PT2M")],
        ),
    ):
        response = main_module.index(make_request(), q="test")

    page = response.body.decode("utf-8")
    session_id = session_id_from(response)
    document = main_module.export_manual(make_request(session_id), generation=None).body.decode("utf-8")
    assert_true(page.index("watch?v=b") < page.index("watch?v=a"), "page should list b before a")
    assert_true(document.index("watch?v=b") < document.index("watch?v=a"), "export should list b before a")
    assert_true("<b>bold</b>" not in document, "export should escape titles")


def test_failure_is_not_raised() -> None:
    reset_state()
    with patch.object(
        main_module.search_client,
        "search_video_ids_and_snippets",
        side_effect=YouTubeUnavailableError("offline"),
    ):
        payload = json.loads(main_module.api_search(make_request(), q="test").body)

    assert_true(payload.get("state") == "idle", "failed search should leave the session idle")
    assert_true(payload.get("items") == [], "failed search should produce no items")


def run() -> int:
    checks = [
        ("health", test_health),
        ("search ranks by views", test_search_ranks_by_views),
        ("export matches table", test_export_matches_table),
        ("failure is not raised", test_failure_is_not_raised),
    ]
    failures = []

    for check_name, check_fn in checks:
        try:
            check_fn()
            print(f"[PASS] {check_name}")
        except Exception as exc:  # pragma: no cover - smoke script output path
            failures.append((check_name, str(exc)))
            print(f"[FAIL] {check_name}: {exc}")

    if failures:
        print(f"\nSmoke checks failed: {len(failures)}")
        for check_name, message in failures:
            print(f"- {check_name}: {message}")
        return 1

    print("\nAll smoke checks passed.")
    return 0


if __name__ == "__main__":
    sys.exit(run())
