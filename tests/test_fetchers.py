"""
Fetch strategies with their outside world (requests, curl, Chrome) stubbed out.
"""
import io
import subprocess
import sys
from pathlib import Path

import pytest
import requests

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from parkrun_wrapped.fetchers import (
    BROWSER_HEADERS,
    DirectFetcher,
    ExternalProcessFetcher,
    FetchError,
    FetchErrorKind,
    HeadlessFetcher,
    create_fetcher,
)
from parkrun_wrapped.fetchers import external as external_module
from parkrun_wrapped.fetchers import headless as headless_module

URL = "https://www.parkrun.co.nl/parkrunner/123/all/"


# --- Direct -------------------------------------------------------------------------
class FakeResponse:
    def __init__(self, text="<html></html>", status_code=200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)


def test_direct_sends_browser_headers_and_returns_text(monkeypatch):
    fetcher = DirectFetcher(timeout=20)
    seen = {}

    def fake_get(url, timeout):
        seen["url"], seen["timeout"] = url, timeout
        return FakeResponse("<h1>Jane</h1>")

    monkeypatch.setattr(fetcher.session, "get", fake_get)
    assert fetcher.fetch(URL) == "<h1>Jane</h1>"
    assert seen == {"url": URL, "timeout": 20}
    assert fetcher.session.headers["Referer"] == "https://www.google.com/"
    assert fetcher.session.headers["Sec-Fetch-Mode"] == "navigate"


@pytest.mark.parametrize("error, kind", [
    (requests.exceptions.ReadTimeout("slow"), FetchErrorKind.TIMEOUT),
    (requests.exceptions.ConnectionError("refused"), FetchErrorKind.NETWORK),
])
def test_direct_maps_request_errors(monkeypatch, error, kind):
    fetcher = DirectFetcher()

    def fake_get(url, timeout):
        raise error

    monkeypatch.setattr(fetcher.session, "get", fake_get)
    with pytest.raises(FetchError) as exc_info:
        fetcher.fetch(URL)
    assert exc_info.value.kind is kind


def test_direct_maps_http_status(monkeypatch):
    fetcher = DirectFetcher()
    monkeypatch.setattr(fetcher.session, "get", lambda url, timeout: FakeResponse(status_code=403))
    with pytest.raises(FetchError) as exc_info:
        fetcher.fetch(URL)
    assert exc_info.value.kind is FetchErrorKind.HTTP_STATUS
    assert exc_info.value.status_code == 403


# --- External process ---------------------------------------------------------------
class FakeProcess:
    """Stands in for subprocess.Popen; records how much stdout was read."""

    def __init__(self, stdout=b"", returncode=0, stderr=b"", hang=False):
        self.stdout = io.BytesIO(stdout)
        self.stderr = io.BytesIO(stderr)
        self.returncode = returncode
        self.hang = hang
        self.killed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def wait(self, timeout=None):
        if self.hang:
            raise subprocess.TimeoutExpired(cmd="curl", timeout=timeout)
        return self.returncode

    def kill(self):
        self.killed = True


def fake_popen(monkeypatch, process):
    seen = {}

    def popen(command, **kwargs):
        seen["command"] = command
        return process

    monkeypatch.setattr(external_module.subprocess, "Popen", popen)
    return seen


def test_external_command_line():
    command = ExternalProcessFetcher(timeout=20, max_output_bytes=4096).build_command(URL)
    assert command[0] == "curl"
    assert command[-1] == URL
    assert "--compressed" in command and "--fail" in command
    assert command[command.index("--max-filesize") + 1] == "4096"
    assert f"Referer: {BROWSER_HEADERS['Referer']}" in command
    assert not any(part.lower().startswith("accept-encoding") for part in command)


def test_external_returns_stdout(monkeypatch):
    seen = fake_popen(monkeypatch, FakeProcess(stdout="<p>ok</p>".encode()))
    assert ExternalProcessFetcher().fetch(URL) == "<p>ok</p>"
    assert seen["command"][-1] == URL


@pytest.mark.parametrize("code, kind", [
    (28, FetchErrorKind.TIMEOUT),
    (22, FetchErrorKind.HTTP_STATUS),
    (63, FetchErrorKind.NETWORK),
    (6, FetchErrorKind.NETWORK),
])
def test_external_non_zero_exit_fails(monkeypatch, code, kind):
    fake_popen(monkeypatch, FakeProcess(returncode=code, stderr=b"curl: error"))
    with pytest.raises(FetchError) as exc_info:
        ExternalProcessFetcher().fetch(URL)
    assert exc_info.value.kind is kind


def test_external_stops_reading_once_limit_is_passed(monkeypatch):
    limit = external_module.READ_CHUNK_BYTES
    process = FakeProcess(stdout=b"x" * (limit * 10))
    fake_popen(monkeypatch, process)

    with pytest.raises(FetchError) as exc_info:
        ExternalProcessFetcher(max_output_bytes=limit).fetch(URL)

    assert exc_info.value.kind is FetchErrorKind.NETWORK
    assert process.killed
    # Only two chunks were pulled off the pipe, not the whole body
    assert process.stdout.tell() == limit * 2


def test_external_output_at_the_limit_is_accepted(monkeypatch):
    fake_popen(monkeypatch, FakeProcess(stdout=b"x" * 10))
    assert ExternalProcessFetcher(max_output_bytes=10).fetch(URL) == "x" * 10


def test_external_process_timeout_and_missing_binary(monkeypatch):
    process = FakeProcess(hang=True)
    fake_popen(monkeypatch, process)
    with pytest.raises(FetchError) as exc_info:
        ExternalProcessFetcher().fetch(URL)
    assert exc_info.value.kind is FetchErrorKind.TIMEOUT
    assert process.killed

    def missing(*a, **kw):
        raise FileNotFoundError("curl")

    monkeypatch.setattr(external_module.subprocess, "Popen", missing)
    with pytest.raises(FetchError) as exc_info:
        ExternalProcessFetcher().fetch(URL)
    assert exc_info.value.kind is FetchErrorKind.NETWORK


# --- Headless -----------------------------------------------------------------------
class FakeWebDriverException(Exception):
    def __init__(self, msg=""):
        super().__init__(msg)
        self.msg = msg


class FakeTimeoutException(FakeWebDriverException):
    pass


class FakeWait:
    def __init__(self, driver, timeout):
        self.driver = driver

    def until(self, condition):
        return condition(self.driver)


class FakeDriver:
    def __init__(self, error=None):
        self.error = error
        self.quit_called = False
        self.page_source = "<html><h1>Jane</h1></html>"

    def set_page_load_timeout(self, seconds):
        self.timeout = seconds

    def get(self, url):
        if self.error:
            raise self.error

    def execute_script(self, script):
        return "complete"

    def quit(self):
        self.quit_called = True


@pytest.fixture
def headless(monkeypatch):
    monkeypatch.setattr(headless_module, "WebDriverWait", FakeWait)
    monkeypatch.setattr(headless_module, "TimeoutException", FakeTimeoutException)
    monkeypatch.setattr(headless_module, "WebDriverException", FakeWebDriverException)
    monkeypatch.setattr(HeadlessFetcher, "_lazy_imports", lambda self: None)
    fetcher = HeadlessFetcher(user_agents=["UA"], settle_delay=0)
    return fetcher


def test_headless_returns_rendered_page_and_quits(headless, monkeypatch):
    driver = FakeDriver()
    monkeypatch.setattr(headless, "_setup_driver", lambda: driver)
    assert headless.fetch(URL) == driver.page_source
    assert driver.timeout == 30
    assert driver.quit_called


@pytest.mark.parametrize("error, kind", [
    (FakeTimeoutException("nav timeout"), FetchErrorKind.TIMEOUT),
    (FakeWebDriverException("crashed"), FetchErrorKind.BROWSER_FAILURE),
])
def test_headless_quits_browser_on_failure(headless, monkeypatch, error, kind):
    driver = FakeDriver(error=error)
    monkeypatch.setattr(headless, "_setup_driver", lambda: driver)
    with pytest.raises(FetchError) as exc_info:
        headless.fetch(URL)
    assert exc_info.value.kind is kind
    assert driver.quit_called


def test_headless_launch_failure(headless, monkeypatch):
    def broken_launch():
        raise FetchError(FetchErrorKind.BROWSER_FAILURE, "no chrome")

    monkeypatch.setattr(headless, "_setup_driver", broken_launch)
    with pytest.raises(FetchError) as exc_info:
        headless.fetch(URL)
    assert exc_info.value.kind is FetchErrorKind.BROWSER_FAILURE


# --- Factory ------------------------------------------------------------------------
def test_create_fetcher_by_name():
    assert isinstance(create_fetcher("direct"), DirectFetcher)
    assert isinstance(create_fetcher("headless"), HeadlessFetcher)
    assert isinstance(create_fetcher("EXTERNAL"), ExternalProcessFetcher)
    with pytest.raises(ValueError):
        create_fetcher("carrier-pigeon")


def test_chrome_options_carry_user_agent_and_viewport():
    from parkrun_wrapped.utils.browser_utils import pick_user_agent, setup_chrome_options

    agents = ["UA-1", "UA-2"]
    agent = pick_user_agent(agents)
    assert agent in agents

    options = setup_chrome_options(agent, window_size="1366,768")
    assert f"--user-agent={agent}" in options.arguments
    assert "--window-size=1366,768" in options.arguments
    assert "--disable-blink-features=AutomationControlled" in options.arguments
    assert options.experimental_options["excludeSwitches"] == ["enable-automation"]
