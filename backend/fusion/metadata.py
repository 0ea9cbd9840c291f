"""Append-only per-frame camera position log."""
from __future__ import annotations

from pathlib import Path
from typing import Union


class MetadataLog:
    """One line per ingested frame: raw `est_lat est_lon` as read from the feed.

    The file is truncated when the log is opened.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("", encoding="utf-8")
        self.lines_written = 0

    def append(self, est_lat: str, est_lon: str) -> None:
        with self.path.open("a", encoding="utf-8") as f:
            f.write(f"{est_lat} {est_lon}\n")
        self.lines_written += 1
