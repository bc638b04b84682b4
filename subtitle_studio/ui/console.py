"""Console output for the cache maintenance CLI.

Renders Rich tables and log records on a terminal, or one JSON document per
report when ``json_output`` is set (for scripts and CI).
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from typing import Any, Dict, List, Sequence, Union

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table


class ConsoleManager:
    """Manages console output with Rich integration."""

    def __init__(self, verbose: bool = False, json_output: bool = False):
        self.verbose = verbose
        self.json_output = json_output
        self._lock = threading.RLock()
        self.console = None if json_output else Console(stderr=False)
        self._err_console = Console(stderr=True)

    def setup_logging(self, logger: logging.Logger, level: Union[int, str] = logging.INFO) -> None:
        """Attach a Rich (or plain, in JSON mode) handler to ``logger``.

        ``level`` applies unless verbose mode forces DEBUG. Calling this twice
        does not add a second handler.
        """
        if self.json_output:
            if not any(type(h) is logging.StreamHandler for h in logger.handlers):
                handler = logging.StreamHandler(sys.stderr)
                handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
                logger.addHandler(handler)
        elif not any(isinstance(h, RichHandler) for h in logger.handlers):
            logger.addHandler(
                RichHandler(
                    console=self._err_console,
                    show_time=True,
                    show_path=self.verbose,
                    rich_tracebacks=True,
                )
            )
        logger.setLevel(logging.DEBUG if self.verbose else level)

    def print_table(self, title: str, columns: Sequence[str], rows: List[Sequence[Any]]) -> None:
        """Print rows as a table, or as a JSON list of objects in JSON mode."""
        with self._lock:
            if self.json_output:
                records: List[Dict[str, Any]] = [dict(zip(columns, row)) for row in rows]
                print(json.dumps({"type": title, "rows": records}))
                return

            table = Table(title=title)
            for index, column in enumerate(columns):
                table.add_column(column, style="cyan" if index == 0 else None)
            for row in rows:
                table.add_row(*(str(value) for value in row))
            self.console.print(table)

    def print_error(self, message: str) -> None:
        """Report an error on stderr."""
        with self._lock:
            if self.json_output:
                print(json.dumps({"type": "error", "message": message}), file=sys.stderr)
            else:
                self._err_console.print(f"[red]ERROR: {message}[/red]")
