from __future__ import annotations

import logging
import os
import re
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd
import requests

from core.filters import ChangeType, DashboardFilters, apply_filters, normalize_filters, year_month_label


logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1]
DEFAULT_CSV_NAME = "github_releases_data.csv"
SOURCE_ENV_VAR = "RELEASES_CSV_SOURCE"
REQUEST_TIMEOUT = 30
LOCAL_TZ = "Asia/Seoul"

RAW_COLUMNS = [
    "id",
    "repo_name",
    "package",
    "version",
    "author",
    "published_at_kst",
    "is_prerelease",
    "is_draft",
    "major_changes",
    "minor_changes",
    "patch_changes",
    "other_changes",
    "working_days",
    "year",
    "month",
]
LIST_COLUMNS = ("major_changes", "minor_changes", "patch_changes", "other_changes")
COUNT_COLUMNS = {
    "major_changes": "num_major_changes",
    "minor_changes": "num_minor_changes",
    "patch_changes": "num_patch_changes",
    "other_changes": "num_other_changes",
}
CHANGE_TAGS = {
    "major_changes": ChangeType.MAJOR.value,
    "minor_changes": ChangeType.MINOR.value,
    "patch_changes": ChangeType.PATCH.value,
    "other_changes": ChangeType.OTHER_CHANGE.value,
}
ENRICHED_COLUMNS = RAW_COLUMNS + ["published_date", "year_month", "change_types"] + list(COUNT_COLUMNS.values())

_TRUE_TOKENS = {"true", "1", "yes", "y", "t"}
_RELATIVE_DATE_TOKENS = {"now", "today"}
_LIST_SPLIT = re.compile(r"',\s*'")
_EDGE_QUOTES = re.compile(r"^['\"]|['\"]$")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class DataLoadError(RuntimeError):
    """The release export could not be read or fetched."""


# ---------------- Field helpers ----------------
def parse_string_list(value: object) -> List[str]:
    """Decode a bracketed list cell such as ``['fix a', 'fix b']``.

    Malformed content is split on a best-effort basis; nothing here raises.
    """
    if not value or not isinstance(value, str):
        return []
    content = value.strip()
    if content in ("", "[]"):
        return []
    if content.startswith("[") and content.endswith("]"):
        content = content[1:-1].strip()
    if not content:
        return []
    items = [_EDGE_QUOTES.sub("", item.strip()) for item in _LIST_SPLIT.split(content)]
    return [item for item in items if item]


def parse_int(value: object) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else 0


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUE_TOKENS


def parse_published(value: object) -> pd.Timestamp:
    """Parse a KST publish time; tz-aware inputs are converted to naive KST."""
    if value is None or not str(value).strip():
        return pd.NaT
    # pandas resolves these to the current clock time
    if str(value).strip().lower() in _RELATIVE_DATE_TOKENS:
        return pd.NaT
    try:
        ts = pd.to_datetime(str(value).strip(), errors="coerce")
    except (ValueError, OverflowError):
        return pd.NaT
    if pd.isna(ts):
        return pd.NaT
    if ts.tzinfo is not None:
        ts = ts.tz_convert(LOCAL_TZ).tz_localize(None)
    return ts


def derive_change_types(is_prerelease: bool, changes: Mapping[str, List[str]]) -> Tuple[str, ...]:
    tags = [ChangeType.PRERELEASE.value if is_prerelease else ChangeType.STABLE.value]
    for col in LIST_COLUMNS:
        if changes.get(col):
            tags.append(CHANGE_TAGS[col])
    if len(tags) == 1:
        tags.append(ChangeType.GENERAL_OTHER.value)
    return tuple(tags)


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


# ---------------- Parser ----------------
def parse_release_csv(text: str) -> List[Dict[str, object]]:
    """Split the export into one dict per non-blank data line.

    Cells are split on bare commas (no quoting). Missing trailing cells become
    empty strings and the four change columns are decoded into lists.
    """
    lines = [line for line in re.split(r"\r\n|\n", text or "") if line.strip()]
    if len(lines) < 2:
        return []
    header_line = lines[0][1:] if lines[0].startswith("\ufeff") else lines[0]
    headers = [h.strip() for h in header_line.split(",")]

    records: List[Dict[str, object]] = []
    for line in lines[1:]:
        values = line.split(",")
        entry: Dict[str, object] = {}
        for idx, header in enumerate(headers):
            value = values[idx].strip() if idx < len(values) else ""
            entry[header] = parse_string_list(value) if header in LIST_COLUMNS else value
        records.append(entry)
    return records


def _format_cell(value: object) -> str:
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(f"'{item}'" for item in value) + "]" if value else "[]"
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    return str(value)


def serialize_release_csv(records: Iterable[Mapping[str, object]], columns: Optional[List[str]] = None) -> str:
    """Write records back out in the export's own format."""
    columns = columns or RAW_COLUMNS
    lines = [",".join(columns)]
    for record in records:
        lines.append(",".join(_format_cell(record.get(col)) for col in columns))
    return "\n".join(lines) + "\n"


# ---------------- Enricher ----------------
def enrich_releases(records: Iterable[Mapping[str, object]]) -> pd.DataFrame:
    """Turn parsed rows into the release frame used by every page.

    Rows without ``published_at_kst`` are dropped. The result is ordered newest
    first; rows whose publish time did not parse sort last.
    """
    rows: List[Dict[str, object]] = []
    for record in records:
        published_raw = str(record.get("published_at_kst") or "").strip()
        if not published_raw:
            continue
        changes = {}
        for col in LIST_COLUMNS:
            value = record.get(col)
            changes[col] = parse_string_list(value) if isinstance(value, str) else list(value or [])
        is_prerelease = parse_bool(record.get("is_prerelease"))
        published_date = parse_published(published_raw)

        row: Dict[str, object] = {
            "id": parse_int(record.get("id")),
            "repo_name": str(record.get("repo_name") or ""),
            "package": str(record.get("package") or ""),
            "version": str(record.get("version") or ""),
            "author": str(record.get("author") or ""),
            "published_at_kst": published_raw,
            "is_prerelease": is_prerelease,
            "is_draft": parse_bool(record.get("is_draft")),
            "working_days": parse_int(record.get("working_days")),
            "year": parse_int(record.get("year")),
            "month": parse_int(record.get("month")),
            "published_date": published_date,
            "year_month": year_month_label(published_date),
            "change_types": derive_change_types(is_prerelease, changes),
        }
        row.update(changes)
        for col, count_col in COUNT_COLUMNS.items():
            row[count_col] = len(changes[col])
        rows.append(row)

    df = pd.DataFrame(rows, columns=ENRICHED_COLUMNS)
    if df.empty:
        return df
    df["published_date"] = pd.to_datetime(df["published_date"])
    df = df.sort_values("published_date", ascending=False, na_position="last", kind="mergesort")
    return df.reset_index(drop=True)


# ---------------- Loaders ----------------
def get_source() -> str:
    return os.environ.get(SOURCE_ENV_VAR) or str(DATA_DIR / DEFAULT_CSV_NAME)


def is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def source_signature(source: str) -> Tuple[str, float]:
    if is_url(source):
        return source, 0.0
    path = Path(source)
    try:
        return str(path.resolve()), path.stat().st_mtime
    except OSError:
        return str(path), 0.0


def fetch_csv_text(source: str) -> str:
    if is_url(source):
        try:
            response = requests.get(source, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise DataLoadError(f"Network response was not ok: {exc}") from exc
        try:
            return response.content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DataLoadError(f"Release data is not valid UTF-8: {exc}") from exc

    try:
        return Path(source).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DataLoadError(f"Could not read release data from {source}: {exc}") from exc


def _sorted_options(series: pd.Series) -> List[str]:
    return sorted(str(v) for v in series.dropna().unique() if str(v))


# ---------------- Public API (Streamlit parity + FastAPI use) ----------------
@lru_cache(maxsize=4)
def _load_dashboard_data_cached(signature: Tuple[str, float]) -> Dict[str, object]:
    source = signature[0]
    logger.info("Loading release data from %s", source)
    raw = parse_release_csv(fetch_csv_text(source))
    releases = enrich_releases(raw)

    dropped = len(raw) - len(releases)
    unparsed = int(releases["published_date"].isna().sum()) if not releases.empty else 0
    logger.info("Loaded %d releases (%d rows read)", len(releases), len(raw))
    if dropped or unparsed:
        logger.debug("Dropped %d rows without publish time; %d publish times did not parse", dropped, unparsed)

    return {
        "source": source,
        "releases": releases,
        "raw_rows": len(raw),
        "dropped_unpublished": dropped,
        "unparsed_dates": unparsed,
        "repos": _sorted_options(releases["repo_name"]),
        "packages": _sorted_options(releases["package"]),
        "authors": _sorted_options(releases["author"]),
        "months": _sorted_options(releases["year_month"]),
    }


def load_dashboard_data(source: Optional[str] = None) -> Dict[str, object]:
    """Load and enrich the release export; raises DataLoadError on failure."""
    return _load_dashboard_data_cached(source_signature(source or get_source()))


def reload_dashboard_data() -> None:
    _load_dashboard_data_cached.cache_clear()


def prepare_context(filters: dict | DashboardFilters, data_ctx: Dict[str, object]) -> Dict[str, object]:
    releases = data_ctx.get("releases")
    if releases is None:
        releases = pd.DataFrame(columns=ENRICHED_COLUMNS)
    filt = filters if isinstance(filters, DashboardFilters) else normalize_filters(filters)
    return {
        "filters": filt,
        "releases": releases,
        "filtered_releases": apply_filters(releases, filt),
        "data_ctx": data_ctx,
    }
