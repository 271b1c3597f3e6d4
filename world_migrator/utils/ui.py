"""Progress reporting for migration runs.

``MigrationUi`` is a write-only status sink: the orchestrator pushes a short
status line at each phase transition and persists a few notable lines (world
deployment, final outcome).  The console rendering uses a single ``tqdm`` line
so that it cooperates with the log output.
"""

from __future__ import annotations

import logging

from tqdm import tqdm

from world_migrator.utils.logging import log_with_context


class MigrationUi:
    """Status line shown while a migration runs."""

    def __init__(self, text: str = "", silent: bool = False) -> None:
        self.silent = silent
        self.history: list[str] = []
        self._bar: tqdm | None = None
        if text:
            self.update_text(text)

    def _ensure_bar(self) -> tqdm | None:
        if self.silent:
            return None
        if self._bar is None:
            self._bar = tqdm(total=0, bar_format="{desc}", leave=False)
        return self._bar

    def update_text(self, text: str) -> None:
        """Replace the current status line."""
        self.history.append(text)
        log_with_context(logging.DEBUG, text, component="ui")
        bar = self._ensure_bar()
        if bar is not None:
            bar.set_description_str(text)

    def update_text_boxed(self, text: str) -> None:
        """Replace the status line with a highlighted message."""
        self.update_text(f"[ {text} ]")

    def stop_and_persist_boxed(self, symbol: str, text: str) -> None:
        """Stop the status line and keep ``text`` printed above later output."""
        self.history.append(text)
        log_with_context(logging.INFO, text, component="ui")
        self.stop()
        if not self.silent:
            tqdm.write(f"{symbol} {text}")

    def restart(self, text: str) -> None:
        """Start a new status line after ``stop_and_persist_boxed``."""
        self.update_text(text)

    def stop(self) -> None:
        """Close the status line."""
        if self._bar is not None:
            self._bar.close()
            self._bar = None
