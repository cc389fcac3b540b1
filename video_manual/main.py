import os
import time
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
try:
    from video_manual.settings import (
        logger,
        DEBUG_LOGGING,
        MANUAL_FILENAME,
        MANUAL_TITLE,
        YOUTUBE_API_KEY,
        YOUTUBE_MAX_RESULTS,
        YOUTUBE_RELEVANCE_LANGUAGE,
        YOUTUBE_TIMEOUT_SECONDS,
    )
    from video_manual.app.services.youtube_search import YouTubeSearchClient
    from video_manual.app.services.search_session import SessionRegistry, run_search
    from video_manual.app.services.rendering import (
        manual_content_disposition,
        render_manual_document,
        render_search_page,
    )
except ModuleNotFoundError:
    from settings import (
        logger,
        DEBUG_LOGGING,
        MANUAL_FILENAME,
        MANUAL_TITLE,
        YOUTUBE_API_KEY,
        YOUTUBE_MAX_RESULTS,
        YOUTUBE_RELEVANCE_LANGUAGE,
        YOUTUBE_TIMEOUT_SECONDS,
    )
    from app.services.youtube_search import YouTubeSearchClient
    from app.services.search_session import SessionRegistry, run_search
    from app.services.rendering import manual_content_disposition, render_manual_document, render_search_page


MAX_KEYWORD_LENGTH = 200
SESSION_COOKIE = "vm_session"


# ---------------------------
# App setup
# ---------------------------

search_client = YouTubeSearchClient(
    api_key=YOUTUBE_API_KEY,
    relevance_language=YOUTUBE_RELEVANCE_LANGUAGE,
    max_results=YOUTUBE_MAX_RESULTS,
    timeout=YOUTUBE_TIMEOUT_SECONDS,
)
SESSIONS = SessionRegistry()


def parse_cors_origins() -> tuple[list[str], bool]:
    raw = (os.getenv("CORS_ALLOWED_ORIGINS") or "").strip()
    if not raw:
        return ["http://localhost:8000"], True
    if raw == "*":
        return ["*"], False
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    if not origins:
        return ["http://localhost:8000"], True
    return origins, True

app = FastAPI(title="Video Manual Creator", version="0.1.0")

cors_origins, cors_credentials = parse_cors_origins()

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=cors_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    logger.info(f"Request: {request.method} {request.url.path}")
    if DEBUG_LOGGING:
        logger.debug(f"Query params: {dict(request.query_params)}")

    response = await call_next(request)

    process_time = time.time() - start_time
    logger.info(f"Response: {request.method} {request.url.path} - Status: {response.status_code} - Time: {process_time:.3f}s")
    return response


def validate_keyword(q: str | None) -> str | None:
    if q is None:
        return None
    if len(q) > MAX_KEYWORD_LENGTH:
        raise HTTPException(status_code=400, detail=f"q must be at most {MAX_KEYWORD_LENGTH} characters")
    return q


def client_session(request: Request):
    return SESSIONS.get(request.cookies.get(SESSION_COOKIE))


def with_session_cookie(response: Response, client_id: str, created: bool) -> Response:
    if created:
        response.set_cookie(SESSION_COOKIE, client_id, httponly=True, samesite="lax")
    return response


# ---------------------------
# Routes
# ---------------------------

@app.get("/health")
def health():
    return {"ok": True}


@app.get("/", response_class=HTMLResponse)
def index(request: Request, q: str | None = Query(None, description="Search keyword")):
    """
    Search page. With `q` the search runs before the page is rendered;
    without it the page shows whatever this browser's last search left behind.
    """
    keyword = validate_keyword(q)
    client_id, session, created = client_session(request)
    if keyword is None:
        snapshot = session.snapshot()
    else:
        snapshot = run_search(session, search_client, keyword)
    return with_session_cookie(HTMLResponse(render_search_page(snapshot)), client_id, created)


@app.get("/api/search")
def api_search(request: Request, q: str = Query("", description="Search keyword")):
    keyword = validate_keyword(q)
    client_id, session, created = client_session(request)
    snapshot = run_search(session, search_client, keyword)
    return with_session_cookie(JSONResponse(snapshot.to_dict()), client_id, created)


@app.get("/api/state")
def api_state(request: Request):
    client_id, session, created = client_session(request)
    return with_session_cookie(JSONResponse(session.snapshot().to_dict()), client_id, created)


@app.get("/export")
def export_manual(request: Request, generation: int | None = Query(None, description="Search generation shown on the page")):
    _, session, _ = client_session(request)
    snapshot = session.snapshot()
    if not snapshot.videos:
        raise HTTPException(status_code=404, detail="No search results to export.")
    if generation is not None and generation != snapshot.generation:
        raise HTTPException(status_code=409, detail="Search results changed since this page was rendered.")

    document = render_manual_document(snapshot.videos, title=MANUAL_TITLE)
    body = document.encode("utf-8")
    logger.info(f"Exporting {len(snapshot.videos)} videos ({len(body)} bytes) as {MANUAL_FILENAME}")
    return Response(
        content=body,
        media_type="text/html; charset=utf-8",
        headers={"Content-Disposition": manual_content_disposition(MANUAL_FILENAME)},
    )
