import json
import math
import re
from datetime import datetime, timezone, timedelta

DAY_ABBREVS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_FRACTION_RE = re.compile(r"(\.\d{6})\d+")

def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)

def _iso(dt):
    if dt is None:
        return None
    return dt.isoformat(timespec="milliseconds") + "Z"

def _parse_dt(value):
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        s = value.strip()
        if s[-1] in "zZ":
            s = s[:-1] + "+00:00"
        s = _FRACTION_RE.sub(r"\1", s)
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt

def _created(record):
    # Records with a missing or broken timestamp sort first.
    return _parse_dt(record.get("createdAt")) or datetime.min

def _day_abbrev(d):
    return DAY_ABBREVS[d.weekday()]

def _format_long_date(dt):
    return f"{dt.strftime('%b')} {dt.day}, {dt.year}"

def _last_n_days(today, n=7):
    return [today - timedelta(days=n - 1 - i) for i in range(n)]

def _to_int(value, default=None):
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    number = _to_float(value)
    if number is None:
        return default
    return int(number)

def _to_float(value, default=None):
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    # NaN and infinity can't be written back out as JSON.
    return number if math.isfinite(number) else default

def _opt_str(data, key):
    """String field from a request body; None when absent, ValueError when not a string."""
    value = data.get(key)
    if value is None or isinstance(value, str):
        return value
    raise ValueError(f"{key} must be a string")

def _mean(values, default=0.0):
    values = list(values)
    if not values:
        return default
    return sum(values) / len(values)

def _signed(value, digits=0):
    return f"{'+' if value >= 0 else ''}{value:.{digits}f}"

def _clamp(v, lo, hi):
    return max(lo, min(hi, v))

# LLM reply scraping

def _json_from_text(text):
    text = (text or "").replace("```json", "").replace("```ts", "").replace("```", "")
    text = text.replace("\\r\\n", "\n").replace("\r\n", "\n").strip()
    start = text.find("{")
    end = text.rfind("}")
    if start >= 0 and end > start:
        return text[start:end + 1]
    return "{}"

def _unwrap_completion(text):
    if '"choices"' not in (text or ""):
        return text
    try:
        envelope = json.loads(text)
        return envelope["choices"][0]["message"]["content"] or ""
    except (ValueError, KeyError, IndexError, TypeError):
        return text

def _extract_json_text(text):
    text = _unwrap_completion(text or "")
    lowered = text.lower()
    if lowered.lstrip().startswith("<think"):
        open_at = lowered.find("<think")
        close_at = lowered.find("</think>")
        if close_at < 0:
            return "{}"
        before = text[:open_at]
        after = text[close_at + len("</think>"):]
        middle = text[text.find(">", open_at) + 1:close_at]
        for section in (after, before, middle):
            found = _json_from_text(section)
            if found != "{}":
                return found
        return "{}"
    return _json_from_text(text)

def _parse_json_object(text):
    try:
        parsed = json.loads(_extract_json_text(text))
    except ValueError:
        return {}
    return parsed if isinstance(parsed, dict) else {}

# Field getters with defaults

def _get_str(data, key, default=""):
    value = data.get(key) if isinstance(data, dict) else None
    if isinstance(value, str) and value.strip():
        return value
    return default

def _get_int(data, key, default):
    value = data.get(key) if isinstance(data, dict) else None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return _to_int(value, default)

def _get_float(data, key, default):
    value = data.get(key) if isinstance(data, dict) else None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return _to_float(value, default)

def _get_bool(data, key, default):
    value = data.get(key) if isinstance(data, dict) else None
    return value if isinstance(value, bool) else default

def _get_str_list(data, key):
    value = data.get(key) if isinstance(data, dict) else None
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str) and v]
