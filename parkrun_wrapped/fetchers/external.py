"""
External-process fetch strategy.
Delegates the request to the curl command-line utility.
"""

import subprocess
from typing import Dict, List, Optional

from .base import BROWSER_HEADERS, FetchError, FetchErrorKind, Fetcher
from ..utils.logging_utils import get_logger

# curl exit codes with a more specific meaning
CURL_HTTP_ERROR = 22
CURL_TIMEOUT = 28
CURL_FILESIZE_EXCEEDED = 63

READ_CHUNK_BYTES = 64 * 1024


class ExternalProcessFetcher(Fetcher):
    """Run curl with the browser header set and read its stdout up to a byte limit."""

    name = "external"

    def __init__(
        self,
        timeout: float = 20,
        max_output_bytes: int = 10 * 1024 * 1024,
        binary: str = "curl",
        headers: Optional[Dict[str, str]] = None,
    ):
        self.timeout = timeout
        self.max_output_bytes = max_output_bytes
        self.binary = binary
        self.headers = headers or BROWSER_HEADERS
        self.logger = get_logger(__name__)

    def build_command(self, url: str) -> List[str]:
        command = [
            self.binary,
            "--silent",
            "--show-error",
            "--location",
            "--fail",
            "--compressed",
            "--max-time", str(self.timeout),
            "--max-filesize", str(self.max_output_bytes),
        ]
        for name, value in self.headers.items():
            # --compressed negotiates encodings itself
            if name.lower() == "accept-encoding":
                continue
            command.extend(["-H", f"{name}: {value}"])
        command.append(url)
        return command

    def _too_large(self, url: str) -> FetchError:
        return FetchError(
            FetchErrorKind.NETWORK,
            f"Response for {url} exceeded {self.max_output_bytes} bytes",
        )

    def _read_bounded(self, process: subprocess.Popen, url: str) -> bytes:
        """Read stdout in chunks; kill curl as soon as the limit is passed."""
        chunks = []
        size = 0
        while True:
            chunk = process.stdout.read(READ_CHUNK_BYTES)
            if not chunk:
                return b"".join(chunks)
            size += len(chunk)
            if size > self.max_output_bytes:
                process.kill()
                raise self._too_large(url)
            chunks.append(chunk)

    def fetch(self, url: str) -> str:
        self.logger.info("Fetching %s (external: %s)", url, self.binary)
        try:
            process = subprocess.Popen(
                self.build_command(url),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise FetchError(FetchErrorKind.NETWORK, f"Could not run {self.binary}: {e}") from e

        with process:
            output = self._read_bounded(process, url)
            try:
                # Hard stop a little after curl's own limit
                returncode = process.wait(timeout=self.timeout + 5)
            except subprocess.TimeoutExpired as e:
                process.kill()
                raise FetchError(FetchErrorKind.TIMEOUT, f"{self.binary} timed out fetching {url}") from e
            stderr = process.stderr.read()

        if returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            if returncode == CURL_TIMEOUT:
                kind = FetchErrorKind.TIMEOUT
            elif returncode == CURL_HTTP_ERROR:
                kind = FetchErrorKind.HTTP_STATUS
            elif returncode == CURL_FILESIZE_EXCEEDED:
                raise self._too_large(url)
            else:
                kind = FetchErrorKind.NETWORK
            raise FetchError(kind, f"{self.binary} exited with {returncode}: {message}")

        html = output.decode("utf-8", errors="replace")
        self.logger.info("Fetched %s: %d characters", url, len(html))
        return html
