"""
HTML for the search page and the exported video manual.

Every value that comes from YouTube or from the user goes through
html.escape before it is interpolated; titles routinely contain "<", "&"
and quotes.
"""

import html
from urllib.parse import quote

try:
    from video_manual.app.services.search_session import STATE_LOADING, STATE_RESULTS, SessionSnapshot
    from video_manual.app.services.youtube_search import VideoSummary
except ModuleNotFoundError:
    from app.services.search_session import STATE_LOADING, STATE_RESULTS, SessionSnapshot
    from app.services.youtube_search import VideoSummary


COLUMN_TITLE = "タイトル"
COLUMN_VIEWS = "視聴回数"
COLUMN_DURATION = "再生時間"
PAGE_TITLE = "動画マニュアル作成ツール"
SEARCH_LABEL = "検索"
SEARCHING_LABEL = "検索中..."
DOWNLOAD_LABEL = "HTMLでダウンロード"
KEYWORD_PLACEHOLDER = "キーワードを入力"
ASCII_FALLBACK_FILENAME = "video-manual.html"

MANUAL_STYLE = """\
    body { font-family: Arial, sans-serif; line-height: 1.6; margin: 0; padding: 20px; }
    table { width: 100%; border-collapse: collapse; }
    th, td { border: 1px solid #ddd; padding: 12px; text-align: left; }
    th { background-color: #f2f2f2; }
    tr:nth-child(even) { background-color: #f9f9f9; }
    a { color: #1a73e8; text-decoration: none; }
    a:hover { text-decoration: underline; }"""

PAGE_STYLE = MANUAL_STYLE + """
    .container { max-width: 1100px; margin: 0 auto; }
    h1 { text-align: center; }
    form { display: flex; gap: 16px; margin-bottom: 24px; }
    form input { flex-grow: 1; padding: 8px; }
    .preview { position: relative; display: inline-block; }
    .preview .thumb { display: none; position: absolute; left: 0; top: 100%; z-index: 10;
      background: #fff; border: 1px solid #ddd; padding: 4px; }
    .preview:hover .thumb { display: block; }
    .preview .thumb img { max-width: 320px; display: block; }
    .export { margin-top: 24px; text-align: center; }"""


def e(value) -> str:
    return html.escape(str(value), quote=True)


def _table_rows(videos: list[VideoSummary], with_preview: bool) -> str:
    rows = []
    for video in videos:
        link = (
            f'<a href="{e(video.watch_url)}" target="_blank" rel="noopener noreferrer">'
            f"{e(video.title)}</a>"
        )
        if with_preview and video.thumbnail:
            link = (
                f'<span class="preview">{link}'
                f'<span class="thumb"><img src="{e(video.thumbnail)}" alt="{e(video.title)}"></span>'
                f"</span>"
            )
        rows.append(
            "      <tr>\n"
            f"        <td>{link}</td>\n"
            f"        <td>{e(video.view_count_display)}</td>\n"
            f"        <td>{e(video.duration)}</td>\n"
            "      </tr>"
        )
    return "\n".join(rows)


def _table(videos: list[VideoSummary], with_preview: bool) -> str:
    return (
        "  <table>\n"
        "    <thead>\n"
        "      <tr>\n"
        f"        <th>{COLUMN_TITLE}</th>\n"
        f"        <th>{COLUMN_VIEWS}</th>\n"
        f"        <th>{COLUMN_DURATION}</th>\n"
        "      </tr>\n"
        "    </thead>\n"
        "    <tbody>\n"
        f"{_table_rows(videos, with_preview)}\n"
        "    </tbody>\n"
        "  </table>"
    )


def render_manual_document(videos: list[VideoSummary], title: str = "動画マニュアル") -> str:
    """Standalone manual: inline styles, a heading and the ranked table. Deterministic for a given list."""
    return (
        "<!DOCTYPE html>\n"
        '<html lang="ja">\n'
        "<head>\n"
        '  <meta charset="UTF-8">\n'
        '  <meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        f"  <title>{e(title)}</title>\n"
        f"  <style>\n{MANUAL_STYLE}\n  </style>\n"
        "</head>\n"
        "<body>\n"
        f"  <h1>{e(title)}</h1>\n"
        f"{_table(videos, with_preview=False)}\n"
        "</body>\n"
        "</html>\n"
    )


def render_search_page(snapshot: SessionSnapshot) -> str:
    keyword = snapshot.keyword
    loading = snapshot.state == STATE_LOADING
    button_label = SEARCHING_LABEL if loading else SEARCH_LABEL
    disabled = " disabled" if loading else ""

    body = [
        f"  <h1>{PAGE_TITLE}</h1>",
        '  <form method="get" action="/" '
        "onsubmit=\"var b=this.querySelector('button');b.disabled=true;"
        f"b.textContent='{SEARCHING_LABEL}';\">",
        f'    <input type="text" name="q" value="{e(keyword)}" placeholder="{KEYWORD_PLACEHOLDER}">',
        f'    <button type="submit"{disabled}>{button_label}</button>',
        "  </form>",
    ]
    if snapshot.state == STATE_RESULTS and snapshot.videos:
        body.append(_table(snapshot.videos, with_preview=True))
        export_href = f"/export?generation={snapshot.generation}"
        body.append(f'  <div class="export"><a href="{e(export_href)}" download>{DOWNLOAD_LABEL}</a></div>')

    return (
        "<!DOCTYPE html>\n"
        '<html lang="ja">\n'
        "<head>\n"
        '  <meta charset="UTF-8">\n'
        '  <meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        f"  <title>{PAGE_TITLE}</title>\n"
        f"  <style>\n{PAGE_STYLE}\n  </style>\n"
        "</head>\n"
        "<body>\n"
        '<div class="container">\n'
        + "\n".join(body)
        + "\n</div>\n"
        "</body>\n"
        "</html>\n"
    )


def manual_content_disposition(filename: str) -> str:
    # RFC 6266/5987: ASCII fallback plus the UTF-8 name for browsers that support it
    try:
        filename.encode("ascii")
        fallback = filename.replace('"', "")
    except UnicodeEncodeError:
        fallback = ASCII_FALLBACK_FILENAME
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"
