"""
Capture of raw streaming traffic for troubleshooting.

When tracing is enabled each streaming request gets its own log file holding
the upstream Copilot SSE lines next to the frames sent back to the client.
"""

from __future__ import annotations

import datetime
from pathlib import Path
from typing import Optional

TRUNCATION_MARKER = "[stream trace truncated]\n"


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class StreamTracer:
    """Request-scoped trace file with an optional size cap"""

    def __init__(self, request_id: str, route: str, base_dir: str, max_bytes: Optional[int]):
        safe_route = route.replace(" ", "-").replace("/", "_")
        stamp = _utc_now().strftime("%Y%m%dT%H%M%SZ")

        self.request_id = request_id
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.path = self.base_dir / f"{stamp}_{safe_route}_{request_id}.log"
        self._file = self.path.open("w", encoding="utf-8")

        self._budget = max_bytes if isinstance(max_bytes, int) and max_bytes > 0 else None
        self._written = 0
        self._truncated = False

        self.log_note(f"trace opened for route {route}")

    def log_source_chunk(self, chunk: str) -> None:
        """Record a raw line received from Copilot."""
        self._write("UPSTREAM", chunk)

    def log_converted_chunk(self, chunk: str) -> None:
        """Record a frame sent to the client."""
        self._write("CLIENT", chunk)

    def log_note(self, note: str) -> None:
        self._write("NOTE", note)

    def log_error(self, message: str) -> None:
        self._write("ERROR", message)

    @property
    def truncated(self) -> bool:
        return self._truncated

    def close(self) -> None:
        if self._file.closed:
            return
        try:
            self.log_note("trace closed")
        finally:
            self._file.close()

    def _write(self, label: str, payload: str) -> None:
        if self._file.closed or self._truncated:
            return

        entry = f"[{_utc_now().isoformat(timespec='milliseconds')}] [{label}] {payload.rstrip()}\n"
        encoded = entry.encode("utf-8", "replace")

        if self._budget is not None and self._written + len(encoded) > self._budget:
            remaining = max(self._budget - self._written, 0)
            self._file.write(encoded[:remaining].decode("utf-8", "ignore"))
            self._file.write("\n" + TRUNCATION_MARKER)
            self._file.flush()
            self._written = self._budget
            self._truncated = True
            return

        self._file.write(entry)
        self._file.flush()
        self._written += len(encoded)


def maybe_create_stream_tracer(
    enabled: bool,
    request_id: str,
    route: str,
    base_dir: str,
    max_bytes: Optional[int],
) -> Optional[StreamTracer]:
    """Factory helper that respects the global enable flag."""
    if not enabled:
        return None
    return StreamTracer(request_id=request_id, route=route, base_dir=base_dir, max_bytes=max_bytes)
