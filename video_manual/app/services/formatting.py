import re


DURATION_RE = re.compile(r"P(?:(\d+)D)?T?(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")


def _duration_parts(duration: str) -> tuple[int, int, int, bool] | None:
    # last item: whether an hour (or day) component was present, even "0H"
    match = DURATION_RE.fullmatch((duration or "").strip())
    if not match or not any(match.groups()):
        return None
    days = int(match.group(1) or 0)
    hours = int(match.group(2) or 0) + days * 24
    minutes = int(match.group(3) or 0)
    seconds = int(match.group(4) or 0)
    has_hours = match.group(1) is not None or match.group(2) is not None
    return hours, minutes, seconds, has_hours


def format_duration(duration: str) -> str:
    """
    YouTube contentDetails.duration ("PT1H2M3S") -> "1:02:03".
    Without an hour component the result is "MM:SS" ("PT45S" -> "00:45").
    Unparseable input renders as "00:00".
    """
    parts = _duration_parts(duration)
    if parts is None:
        return "00:00"
    hours, minutes, seconds, has_hours = parts
    if has_hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def parse_view_count(value) -> int:
    # statistics.viewCount arrives as a string and is absent when hidden
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        return 0


def format_view_count(value) -> str:
    return f"{parse_view_count(value):,}"
