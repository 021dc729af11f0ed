from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

from core.selection import SelectionState


APP_PATH = Path(__file__).resolve().parents[1] / "app.py"


@pytest.fixture
def app_test(monkeypatch, sample_csv_path: Path, tmp_path: Path) -> AppTest:
    monkeypatch.setenv("RELEASES_CSV_SOURCE", str(sample_csv_path))
    monkeypatch.setenv("RELEASE_INSIGHTS_PREFS", str(tmp_path / "prefs.json"))
    return AppTest.from_file(str(APP_PATH), default_timeout=60)


def _toggle_buttons(at: AppTest):
    return [b for b in at.button if b.label.startswith("Toggle ")]


def test_dashboard_renders_kpis(app_test: AppTest) -> None:
    at = app_test.run()
    assert not at.exception
    assert [m.label for m in at.metric] == ["Total releases", "Repositories analyzed", "Active authors", "Avg working days"]
    assert at.metric[0].value == "5"


def test_out_of_range_row_selection_is_ignored(app_test: AppTest) -> None:
    app_test.session_state[SelectionState().table_key()] = {"selection": {"rows": [8], "columns": []}}
    at = app_test.run()
    assert not at.exception
    assert _toggle_buttons(at) == []

    at.sidebar.multiselect[0].select("lib").run()
    assert not at.exception
    assert at.metric[0].value == "1"


def test_row_toggle_narrows_without_stale_selection(app_test: AppTest) -> None:
    app_test.session_state[SelectionState().table_key()] = {"selection": {"rows": [0], "columns": []}}
    at = app_test.run()
    assert not at.exception
    labels = [b.label for b in _toggle_buttons(at)]
    assert labels == ["Toggle repository: app", "Toggle author: bob"]

    next(b for b in at.button if b.label == "Toggle repository: app").click().run()
    assert not at.exception
    assert at.metric[0].value == "3"
    assert _toggle_buttons(at) == []
