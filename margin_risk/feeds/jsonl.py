"""Replay account updates from JSON lines (a file, a pipe or stdin)."""
from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, AsyncIterator, TextIO

from ..models import AccountUpdate

logger = logging.getLogger(__name__)


def parse_record(record: Any) -> AccountUpdate | None:
    """Turn one decoded record into an update.

    Accepts a bare account row or a change event carrying the row under
    ``new``. Anything else yields None.
    """
    if not isinstance(record, dict):
        return None
    row = record.get("new", record)
    if not isinstance(row, dict) or "equity" not in row:
        return None
    return AccountUpdate.from_payload(row)


class JsonLinesAccountFeed:
    """One JSON object per line; blank and malformed lines are skipped."""

    def __init__(self, source: str | Path | TextIO) -> None:
        self._source = source

    def _open(self) -> tuple[TextIO, bool]:
        if isinstance(self._source, (str, Path)):
            if str(self._source) == "-":
                return sys.stdin, False
            return open(self._source, encoding="utf-8"), True
        return self._source, False

    async def updates(self) -> AsyncIterator[AccountUpdate]:
        stream, owned = self._open()
        try:
            line_no = 0
            while True:
                line = await asyncio.to_thread(stream.readline)
                if not line:
                    break
                line_no += 1
                line = line.strip()
                if not line:
                    continue
                try:
                    record = json.loads(line)
                except json.JSONDecodeError as e:
                    logger.warning("Skipping malformed line %d: %s", line_no, e)
                    continue
                update = parse_record(record)
                if update is None:
                    logger.warning("Skipping line %d: no account data", line_no)
                    continue
                yield update
        finally:
            if owned:
                stream.close()
