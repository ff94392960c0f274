"""
End-to-end retrieval through the service and the HTTP API, with a stub fetcher.
"""
import json
import sys
import threading
import time
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from parkrun_wrapped.api import create_app
from parkrun_wrapped.cache import CacheManager, MemoryCache, PersistentStore
from parkrun_wrapped.fetchers import FetchError, FetchErrorKind, Fetcher
from parkrun_wrapped.service import RetrievalError, RunnerDataService, normalize_runner_id
from parkrun_wrapped.utils.config import Config

PAGE = """
<html><body>
<h1>parkrun Netherlands</h1>
<h2>Jane DOE</h2>
<table><tbody>
<tr><td>Park A</td><td>05/01/2025</td><td>12</td><td>23:45</td><td>65.2%</td><td>PB</td></tr>
<tr><td>Park B</td><td>12/04/2025</td><td>187</td><td>31</td><td>22:10</td><td>58.9%</td><td></td></tr>
<tr><td>Park A</td><td>05/01/2025</td><td>14</td><td>23:45</td><td>65.2%</td><td></td></tr>
<tr><td>Park A</td><td>28/12/2024</td><td>9</td><td>24:01</td><td>63.0%</td><td></td></tr>
</tbody></table>
</body></html>
"""


class StubFetcher(Fetcher):
    name = "stub"

    def __init__(self, html=PAGE, error=None, delay=0.0):
        self.html = html
        self.error = error
        self.delay = delay
        self.urls = []

    def fetch(self, url):
        self.urls.append(url)
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return self.html


@pytest.fixture
def settings(tmp_path):
    return type("TestSettings", (Config,), {
        "DATA_DIR": tmp_path / "data",
        "DEBUG_DIR": tmp_path / "debug",
        "DEBUG_ARTIFACTS": False,
        "TARGET_YEAR": 2025,
    })


def make_service(settings, fetcher):
    cache = CacheManager(PersistentStore(settings.DATA_DIR), MemoryCache(ttl_seconds=3600))
    return RunnerDataService(fetcher=fetcher, cache=cache, settings=settings)


def test_live_retrieval_builds_and_persists(settings):
    fetcher = StubFetcher()
    service = make_service(settings, fetcher)
    result = service.get_runner_data("123")

    assert fetcher.urls == ["https://www.parkrun.co.nl/parkrunner/123/all/"]
    assert result.runner_info.name == "Jane DOE"
    assert [(r.event, r.date) for r in result.runs] == [("Park B", "12/04/2025"), ("Park A", "05/01/2025")]
    assert result.runs[1].is_pb is True
    assert result.statistics.to_dict() == {
        "totalRuns": 2,
        "firstRun": "05/01/2025",
        "latestRun": "12/04/2025",
        "bestTime": "22:10",
        "uniqueEvents": 2,
    }
    stored = json.loads((settings.DATA_DIR / "123.json").read_text(encoding="utf-8"))
    assert stored == result.to_dict()


def test_persistent_record_skips_fetch(settings):
    first = make_service(settings, StubFetcher())
    expected = first.get_runner_data("123").to_dict()

    fetcher = StubFetcher(error=AssertionError("fetch must not be called"))
    second = make_service(settings, fetcher)
    assert second.get_runner_data("123").to_dict() == expected
    assert fetcher.urls == []


def test_empty_page_is_a_normal_result(settings):
    fetcher = StubFetcher(html="")
    service = make_service(settings, fetcher)
    result = service.get_runner_data("55")

    assert result.to_dict() == {"runnerInfo": {}, "runs": [], "statistics": {}}
    assert not (settings.DATA_DIR / "55.json").exists()

    # Served from the memory tier within the TTL
    service.get_runner_data("55")
    assert len(fetcher.urls) == 1


def test_empty_result_writes_debug_artifact_when_enabled(settings):
    settings.DEBUG_ARTIFACTS = True
    service = make_service(settings, StubFetcher(html="<html><title>Blocked</title></html>"))
    service.get_runner_data("77")
    assert "Blocked" in (settings.DEBUG_DIR / "debug-77.html").read_text(encoding="utf-8")


def test_fetch_failure_raises_retrieval_error(settings):
    error = FetchError(FetchErrorKind.TIMEOUT, "took too long")
    service = make_service(settings, StubFetcher(error=error))
    with pytest.raises(RetrievalError) as exc_info:
        service.get_runner_data("123")

    assert str(exc_info.value).startswith("Failed to fetch parkrun data:")
    assert "took too long" in str(exc_info.value)
    assert exc_info.value.__cause__ is error
    assert service.cache.lookup("123") is None


def test_runner_id_normalisation():
    assert normalize_runner_id("A8604987") == "8604987"
    assert normalize_runner_id(8604987) == "8604987"
    assert normalize_runner_id("a") == "a"
    with pytest.raises(RetrievalError):
        normalize_runner_id("../etc")


def test_leading_letter_is_stripped_before_fetch(settings):
    fetcher = StubFetcher()
    make_service(settings, fetcher).get_runner_data("A123")
    assert fetcher.urls == ["https://www.parkrun.co.nl/parkrunner/123/all/"]


def test_concurrent_requests_share_one_fetch(settings):
    fetcher = StubFetcher(delay=0.3)
    service = make_service(settings, fetcher)
    results = []

    threads = [threading.Thread(target=lambda: results.append(service.get_runner_data("123"))) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(5)

    assert len(fetcher.urls) == 1
    assert len(results) == 5
    # Every caller owns its copy
    assert len({id(r) for r in results}) == 5


def test_runner_analytics(settings):
    service = make_service(settings, StubFetcher())
    result, analytics = service.get_runner_analytics("123")
    assert analytics.total_runs == 2
    assert analytics.personal_bests == 1
    assert analytics.best_position == 12


# --- HTTP ---------------------------------------------------------------------------
def test_api_returns_result_set(settings):
    client = create_app(make_service(settings, StubFetcher())).test_client()
    response = client.get("/api/parkrunner/123")
    assert response.status_code == 200
    body = response.get_json()
    assert body["runnerInfo"] == {"name": "Jane DOE"}
    assert body["runs"][0]["position"] == 31
    assert body["statistics"]["totalRuns"] == 2


def test_api_empty_result_is_success(settings):
    client = create_app(make_service(settings, StubFetcher(html=""))).test_client()
    response = client.get("/api/parkrunner/55")
    assert response.status_code == 200
    assert response.get_json() == {"runnerInfo": {}, "runs": [], "statistics": {}}


def test_api_failure_is_500(settings):
    error = FetchError(FetchErrorKind.HTTP_STATUS, "HTTP 403", status_code=403)
    client = create_app(make_service(settings, StubFetcher(error=error))).test_client()
    response = client.get("/api/parkrunner/123")
    assert response.status_code == 500
    assert response.get_json()["error"].startswith("Failed to fetch parkrun data:")


def test_api_wrapped(settings):
    client = create_app(make_service(settings, StubFetcher())).test_client()
    body = client.get("/api/parkrunner/123/wrapped").get_json()
    assert body["runnerInfo"] == {"name": "Jane DOE"}
    assert body["analytics"]["totalRuns"] == 2
    assert body["analytics"]["totalDistanceKm"] == 10.0

    empty = create_app(make_service(settings, StubFetcher(html=""))).test_client()
    assert empty.get("/api/parkrunner/56/wrapped").get_json()["analytics"] is None


def test_api_recovers_from_wrongly_shaped_stored_record(settings):
    settings.DATA_DIR.mkdir(parents=True)
    bad_run = {"event": None, "date": "05/01/2025", "position": 1, "time": "20:00", "ageGrade": "70%"}
    (settings.DATA_DIR / "3.json").write_text(json.dumps({"runnerInfo": {}, "runs": [], "statistics": [1]}), encoding="utf-8")
    (settings.DATA_DIR / "4.json").write_text(json.dumps({"runnerInfo": {}, "runs": [bad_run]}), encoding="utf-8")
    client = create_app(make_service(settings, StubFetcher())).test_client()

    response = client.get("/api/parkrunner/3")
    assert response.status_code == 200
    assert response.get_json()["statistics"]["totalRuns"] == 2

    wrapped = client.get("/api/parkrunner/4/wrapped")
    assert wrapped.status_code == 200
    assert wrapped.get_json()["analytics"]["totalRuns"] == 2
