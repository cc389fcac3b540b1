import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field

try:
    from video_manual.app.services.youtube_search import (
        VideoSummary,
        YouTubeQuotaExceededError,
        YouTubeSearchClient,
        YouTubeSearchError,
        rank_videos,
    )
    from video_manual.settings import logger
except ModuleNotFoundError:
    from app.services.youtube_search import (
        VideoSummary,
        YouTubeQuotaExceededError,
        YouTubeSearchClient,
        YouTubeSearchError,
        rank_videos,
    )
    from settings import logger


STATE_IDLE = "idle"
STATE_LOADING = "loading"
STATE_RESULTS = "results"


@dataclass(frozen=True)
class SessionSnapshot:
    state: str
    keyword: str
    videos: list[VideoSummary] = field(default_factory=list)
    generation: int = 0

    def to_dict(self) -> dict:
        return {
            "state": self.state,
            "keyword": self.keyword,
            "generation": self.generation,
            "items": [v.model_dump() for v in self.videos],
        }


class SearchSession:
    """
    In-memory result list plus the idle/loading/results state of one client.

    Every begin() starts a new generation. Only the newest generation may
    publish results or clear the loading flag, so a slow search that
    finishes after a newer one cannot overwrite it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._generation = 0
        self._loading_generation: int | None = None
        self._videos: list[VideoSummary] = []
        self._keyword = ""
        self._results_generation = 0

    def _state_locked(self) -> str:
        if self._loading_generation is not None and self._loading_generation == self._generation:
            return STATE_LOADING
        return STATE_RESULTS if self._videos else STATE_IDLE

    @property
    def state(self) -> str:
        with self._lock:
            return self._state_locked()

    def begin(self) -> int:
        with self._lock:
            self._generation += 1
            self._loading_generation = self._generation
            return self._generation

    def complete(self, token: int, keyword: str, videos: list[VideoSummary]) -> bool:
        ranked = rank_videos(videos)
        with self._lock:
            if token != self._generation:
                logger.info(f"Discarding stale search results (generation {token}, current {self._generation})")
                return False
            self._videos = ranked
            self._keyword = keyword
            self._results_generation = token
            self._loading_generation = None
            return True

    def fail(self, token: int, exc: Exception) -> None:
        if isinstance(exc, YouTubeQuotaExceededError):
            logger.error(f"YouTube API quota exhausted during search (generation {token})")
        else:
            logger.error(f"Error fetching videos (generation {token}): {exc}", exc_info=exc)
        with self._lock:
            if token == self._generation:
                self._loading_generation = None

    def reset(self) -> None:
        with self._lock:
            self._generation += 1
            self._loading_generation = None
            self._videos = []
            self._keyword = ""
            self._results_generation = self._generation

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                state=self._state_locked(),
                keyword=self._keyword,
                videos=list(self._videos),
                generation=self._results_generation,
            )


class SessionRegistry:
    """One SearchSession per browser, keyed by the session cookie value."""

    def __init__(self, max_sessions: int = 1000):
        self._lock = threading.Lock()
        self._sessions: OrderedDict[str, SearchSession] = OrderedDict()
        self.max_sessions = max_sessions

    def get(self, client_id: str | None) -> tuple[str, SearchSession, bool]:
        """Returns (client_id, session, created). Unknown or missing ids get a fresh session."""
        with self._lock:
            if client_id and client_id in self._sessions:
                self._sessions.move_to_end(client_id)
                return client_id, self._sessions[client_id], False

            client_id = uuid.uuid4().hex
            session = SearchSession()
            self._sessions[client_id] = session
            while len(self._sessions) > self.max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.debug(f"Evicted search session {evicted}")
            return client_id, session, True

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


def run_search(session: SearchSession, client: YouTubeSearchClient, keyword: str) -> SessionSnapshot:
    """
    The single boundary for a search: failures are logged here and never
    raised. On failure the previous results stay in place.
    """
    keyword = (keyword or "").strip()
    if not keyword:
        session.reset()
        return session.snapshot()

    token = session.begin()
    logger.info(f"Searching videos for '{keyword}' (generation {token})")
    try:
        videos = client.search(keyword)
    except YouTubeSearchError as exc:
        session.fail(token, exc)
        return session.snapshot()
    except Exception as exc:
        logger.error(f"Unexpected error during search for '{keyword}'")
        session.fail(token, exc)
        return session.snapshot()

    if session.complete(token, keyword, videos):
        logger.info(f"Search for '{keyword}' produced {len(videos)} results")
    return session.snapshot()
