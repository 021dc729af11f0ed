"""Tests for parsing, enrichment and loading of the release export."""

from pathlib import Path

import pandas as pd
import pytest
import requests

from core import data
from core.data import (
    DataLoadError,
    enrich_releases,
    load_dashboard_data,
    parse_int,
    parse_published,
    parse_release_csv,
    parse_string_list,
    serialize_release_csv,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("", []),
        ("[]", []),
        ("  [] ", []),
        ("['fix']", ["fix"]),
        ("['fix a', 'fix b']", ["fix a", "fix b"]),
        ("['a','b']", ["a", "b"]),
        ("[ 'x' ]", ["x"]),
        ("plain text", ["plain text"]),
        ("[   ]", []),
    ],
)
def test_parse_string_list(raw, expected):
    assert parse_string_list(raw) == expected


def test_parse_release_csv_strips_bom_and_skips_blank_lines(sample_csv_text: str) -> None:
    records = parse_release_csv(sample_csv_text)
    assert len(records) == 6
    assert "id" in records[0]
    assert records[0]["repo_name"] == "app"
    assert records[0]["major_changes"] == ["fix"]
    assert records[0]["minor_changes"] == []
    assert records[0]["is_prerelease"] == "false"
    assert records[5]["published_at_kst"] == ""


def test_parse_release_csv_fills_missing_trailing_cells() -> None:
    text = "id,repo_name,author,major_changes\n7,app\n"
    records = parse_release_csv(text)
    assert records == [{"id": "7", "repo_name": "app", "author": "", "major_changes": []}]


def test_parse_release_csv_needs_header_and_row() -> None:
    assert parse_release_csv("") == []
    assert parse_release_csv("id,repo_name\n") == []


def test_serialized_records_parse_back_identically(sample_csv_text: str) -> None:
    records = parse_release_csv(sample_csv_text)
    assert parse_release_csv(serialize_release_csv(records)) == records


def test_parse_int_falls_back_to_zero() -> None:
    assert parse_int("12") == 12
    assert parse_int("12abc") == 12
    assert parse_int("") == 0
    assert parse_int("abc") == 0
    assert parse_int(None) == 0


def test_parse_published_rejects_relative_words() -> None:
    assert pd.isna(parse_published("now"))
    assert pd.isna(parse_published(" Today "))
    assert pd.isna(parse_published("not-a-date"))
    assert parse_published("2024-01-05 10:00:00") == pd.Timestamp("2024-01-05 10:00:00")


def test_enrich_derives_tags_and_counts() -> None:
    records = parse_release_csv(
        "id,repo_name,published_at_kst,is_prerelease,major_changes,minor_changes,patch_changes,other_changes\n"
        "1,app,2024-01-05,false,['fix'],[],[],[]\n"
    )
    df = enrich_releases(records)
    row = df.iloc[0]
    assert set(row["change_types"]) == {"stable", "major"}
    assert row["num_major_changes"] == 1
    assert row["num_minor_changes"] == 0
    assert row["num_patch_changes"] == 0
    assert row["num_other_changes"] == 0
    assert row["year_month"] == "2024-01"


def test_enrich_drops_rows_without_publish_time(releases_df: pd.DataFrame) -> None:
    assert len(releases_df) == 5
    assert 6 not in releases_df["id"].tolist()


def test_enrich_sorts_newest_first_with_undated_last(releases_df: pd.DataFrame) -> None:
    assert releases_df["id"].tolist() == [2, 3, 1, 4, 5]
    assert pd.isna(releases_df.iloc[-1]["published_date"])
    assert pd.isna(releases_df.iloc[-1]["year_month"])


def test_stability_tag_is_exclusive_and_general_other_only_alone(releases_df: pd.DataFrame) -> None:
    change_tags = {"major", "minor", "patch", "other"}
    for tags in releases_df["change_types"]:
        assert ("stable" in tags) != ("prerelease" in tags)
        if "general_other" in tags:
            assert not change_tags.intersection(tags)
        else:
            assert change_tags.intersection(tags)

    by_id = dict(zip(releases_df["id"], releases_df["change_types"]))
    assert by_id[2] == ("prerelease", "minor")
    assert by_id[4] == ("stable", "general_other")
    assert by_id[3] == ("stable", "major", "patch")


def test_enrich_parses_flags_and_numbers(releases_df: pd.DataFrame) -> None:
    by_id = releases_df.set_index("id")
    assert bool(by_id.loc[2, "is_prerelease"]) is True
    assert bool(by_id.loc[1, "is_prerelease"]) is False
    assert bool(by_id.loc[4, "is_draft"]) is True
    assert by_id.loc[3, "working_days"] == 9


def test_enrich_converts_aware_timestamps_to_kst() -> None:
    df = enrich_releases([{"id": "1", "published_at_kst": "2024-01-31T16:00:00Z"}])
    assert df.iloc[0]["year_month"] == "2024-02"


def test_load_dashboard_data_from_path(sample_csv_path: Path) -> None:
    ctx = load_dashboard_data(str(sample_csv_path))
    assert ctx["raw_rows"] == 6
    assert ctx["dropped_unpublished"] == 1
    assert ctx["unparsed_dates"] == 1
    assert ctx["repos"] == ["app", "lib"]
    assert ctx["months"] == ["2023-12", "2024-01", "2024-02"]


def test_load_dashboard_data_missing_file(tmp_path: Path) -> None:
    with pytest.raises(DataLoadError):
        load_dashboard_data(str(tmp_path / "missing.csv"))


class _FakeResponse:
    def __init__(self, status_code: int, content: bytes = b"") -> None:
        self.status_code = status_code
        self.content = content

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Not Found")


def test_fetch_csv_text_over_http(monkeypatch, sample_csv_text: str) -> None:
    monkeypatch.setattr(data.requests, "get", lambda url, timeout: _FakeResponse(200, sample_csv_text.encode("utf-8")))
    assert data.fetch_csv_text("https://example.test/releases.csv") == sample_csv_text


def test_fetch_csv_text_http_error(monkeypatch) -> None:
    monkeypatch.setattr(data.requests, "get", lambda url, timeout: _FakeResponse(404))
    with pytest.raises(DataLoadError, match="Network response was not ok"):
        data.fetch_csv_text("https://example.test/releases.csv")


def test_fetch_csv_text_transport_error(monkeypatch) -> None:
    def _boom(url, timeout):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(data.requests, "get", _boom)
    with pytest.raises(DataLoadError):
        data.fetch_csv_text("http://example.test/releases.csv")
