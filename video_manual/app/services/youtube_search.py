from typing import Any

import requests
from pydantic import BaseModel, computed_field

try:
    from video_manual.app.services.formatting import format_duration, format_view_count, parse_view_count
    from video_manual.settings import logger
except ModuleNotFoundError:
    from app.services.formatting import format_duration, format_view_count, parse_view_count
    from settings import logger


YOUTUBE_SEARCH_LIST = "https://www.googleapis.com/youtube/v3/search"
YOUTUBE_VIDEOS_LIST = "https://www.googleapis.com/youtube/v3/videos"
YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

THUMBNAIL_PREFERENCE = ("medium", "high", "default", "standard", "maxres")


class YouTubeSearchError(Exception):
    pass


class YouTubeQuotaExceededError(YouTubeSearchError):
    pass


class YouTubeUnavailableError(YouTubeSearchError):
    pass


class YouTubeResponseError(YouTubeSearchError):
    pass


class VideoSummary(BaseModel):
    id: str
    title: str
    view_count: int = 0
    duration: str = "00:00"
    thumbnail: str | None = None

    @computed_field
    @property
    def watch_url(self) -> str:
        return watch_url(self.id)

    @computed_field
    @property
    def view_count_display(self) -> str:
        return format_view_count(self.view_count)


def watch_url(video_id: str) -> str:
    return YOUTUBE_WATCH_URL.format(video_id=video_id)


def pick_thumbnail_url(thumbnails: dict) -> str | None:
    for key in THUMBNAIL_PREFERENCE:
        t = thumbnails.get(key)
        if t and t.get("url"):
            return t["url"]
    return None


def merge_search_results(search_items: list[dict], detail_items: list[dict]) -> list[VideoSummary]:
    """
    Join search.list snippets with videos.list statistics/contentDetails.

    Items are paired by video id, not by position: videos.list does not
    promise to echo ids back in request order, and drops ids that were
    deleted or made private between the two calls. Those search items are
    skipped. The result keeps the search order.
    """
    details_by_id: dict[str, dict] = {}
    for item in detail_items:
        vid = item.get("id")
        if isinstance(vid, str) and vid:
            details_by_id.setdefault(vid, item)

    merged: list[VideoSummary] = []
    seen_ids: set[str] = set()
    skipped: list[str] = []
    for item in search_items:
        vid = (item.get("id") or {}).get("videoId")
        if not vid or vid in seen_ids:
            continue
        seen_ids.add(vid)

        details = details_by_id.get(vid)
        if details is None:
            skipped.append(vid)
            continue

        snip = item.get("snippet") or {}
        stats = details.get("statistics") or {}
        content = details.get("contentDetails") or {}
        merged.append(
            VideoSummary(
                id=vid,
                title=str(snip.get("title") or ""),
                view_count=parse_view_count(stats.get("viewCount")),
                duration=format_duration(content.get("duration", "")),
                thumbnail=pick_thumbnail_url(snip.get("thumbnails") or {}),
            )
        )

    if skipped:
        logger.warning(f"Skipped {len(skipped)} search results with no video details: {', '.join(skipped)}")
    return merged


def rank_videos(videos: list[VideoSummary]) -> list[VideoSummary]:
    # sorted() is stable, so equal view counts keep their search order
    return sorted(videos, key=lambda v: v.view_count, reverse=True)


class YouTubeSearchClient:
    """Keyword search against the YouTube Data API v3 (search.list + videos.list)."""

    def __init__(
        self,
        api_key: str,
        relevance_language: str = "ja",
        max_results: int = 50,
        timeout: int = 15,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.relevance_language = relevance_language
        self.max_results = max(1, min(max_results, 50))
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        params = {**params, "key": self.api_key}
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise YouTubeUnavailableError(f"YouTube request failed: {exc}") from exc

        if response.status_code != 200:
            lowered = response.text.lower()
            if response.status_code in {403, 429} and (
                "quotaexceeded" in lowered or "quota exceeded" in lowered or "youtube.quota" in lowered
            ):
                raise YouTubeQuotaExceededError("YouTube API quota exceeded")
            raise YouTubeUnavailableError(f"YouTube returned HTTP {response.status_code} for {url}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise YouTubeResponseError(f"YouTube returned a non-JSON body for {url}") from exc
        if not isinstance(payload, dict) or not isinstance(payload.get("items", []), list):
            raise YouTubeResponseError(f"Unexpected response shape from {url}")
        return payload

    def search_video_ids_and_snippets(self, keyword: str) -> list[dict]:
        payload = self._get(
            YOUTUBE_SEARCH_LIST,
            {
                "part": "snippet",
                "q": keyword,
                "type": "video",
                "maxResults": self.max_results,
                "relevanceLanguage": self.relevance_language,
            },
        )
        items = [it for it in payload.get("items", []) if isinstance(it, dict)]
        logger.info(f"search.list returned {len(items)} items for '{keyword}'")
        return items

    def fetch_video_details(self, video_ids: list[str]) -> list[dict]:
        if not video_ids:
            return []
        payload = self._get(
            YOUTUBE_VIDEOS_LIST,
            {
                "part": "statistics,contentDetails",
                "id": ",".join(video_ids),
            },
        )
        items = [it for it in payload.get("items", []) if isinstance(it, dict)]
        logger.info(f"videos.list returned {len(items)} of {len(video_ids)} requested items")
        return items

    def search(self, keyword: str) -> list[VideoSummary]:
        """
        Run both lookups for `keyword` and return the merged, unranked results.
        Raises YouTubeSearchError on any transport or response problem.
        """
        search_items = self.search_video_ids_and_snippets(keyword)
        try:
            video_ids = []
            for item in search_items:
                vid = (item.get("id") or {}).get("videoId")
                if vid and vid not in video_ids:
                    video_ids.append(vid)

            detail_items = self.fetch_video_details(video_ids)
            return merge_search_results(search_items, detail_items)
        except (AttributeError, TypeError, KeyError, ValueError) as exc:
            raise YouTubeResponseError(f"Malformed YouTube response: {exc}") from exc
