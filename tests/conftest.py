from pathlib import Path

import pytest

from core.data import enrich_releases, parse_release_csv


SAMPLE_CSV = (
    "\ufeffid,repo_name,package,version,author,published_at_kst,is_prerelease,is_draft,"
    "major_changes,minor_changes,patch_changes,other_changes,working_days,year,month\r\n"
    "1,app,app-core,1.0.0,alice,2024-01-05 10:00:00,false,false,['fix'],[],[],[],3,2024,1\r\n"
    "2,app,app-core,1.1.0-rc.1,bob,2024-02-10 09:30:00,true,false,[],['add api'],[],[],3,2024,2\r\n"
    "\r\n"
    "3,app,app-ui,1.2.0,alice,2024-01-20 12:00:00,false,false,['drop py2'],[],['typo'],[],9,2024,1\r\n"
    "4,lib,lib,0.1.0,carol,2023-12-31 23:00:00,false,true,[],[],[],[],0,2023,12\r\n"
    "5,lib,lib,0.2.0,carol,not-a-date,false,false,[],[],['patch'],[],4,2024,3\r\n"
    "6,tool,tool,2.0.0,dave,,false,false,['big'],[],[],[],5,2024,1\r\n"
)


@pytest.fixture
def sample_csv_text() -> str:
    return SAMPLE_CSV


@pytest.fixture
def sample_csv_path(tmp_path: Path) -> Path:
    path = tmp_path / "github_releases_data.csv"
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    return path


@pytest.fixture
def releases_df():
    return enrich_releases(parse_release_csv(SAMPLE_CSV))
