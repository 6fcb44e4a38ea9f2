"""Build lifecycle state machine.

    IDLE --invalidated--> COMPILING --done--> FAILED | SUCCEEDED
    any  --invalidated--> COMPILING

handle() runs synchronously; the only asynchronous step is the upload
it hands to the gate, so one cycle's dispatch always happens before the
next event is looked at.
"""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass
from typing import Optional

from rich.console import Console

from assets import AssetClassifier
from compiler import BuildStats
from messages import format_messages
from upload import SyncOperation, UploadGate

INVALIDATED = "invalidated"
DONE = "done"


class BuildState(enum.Enum):
    IDLE = "idle"
    COMPILING = "compiling"
    FAILED = "failed"
    SUCCEEDED = "succeeded"


@dataclass
class BuildCycle:
    errors: list[str]
    warnings: list[str]
    files: Optional[list[str]] = None


class BuildEventRouter:
    def __init__(
        self,
        classifier: AssetClassifier,
        gate: UploadGate,
        console: Console | None = None,
        preview_url: str | None = None,
    ):
        self.classifier = classifier
        self.gate = gate
        self.console = console or Console()
        self.preview_url = preview_url
        self.state = BuildState.IDLE
        self.last_cycle: Optional[BuildCycle] = None

    def handle(
        self, event: str, stats: Optional[BuildStats] = None
    ) -> Optional["asyncio.Task[SyncOperation]"]:
        """Apply a compiler event. Returns the scheduled upload, if any."""
        if event == INVALIDATED:
            self._on_invalidated()
            return None
        if event == DONE:
            if stats is None:
                raise ValueError("'done' event requires build stats")
            return self._on_done(stats)
        raise ValueError(f"Unknown build event: {event!r}")

    def _on_invalidated(self):
        self.state = BuildState.COMPILING
        self.console.clear()
        self.console.print("Compiling...")

    def _on_done(self, stats: BuildStats) -> Optional["asyncio.Task[SyncOperation]"]:
        self.console.clear()
        messages = format_messages(stats)
        self.last_cycle = BuildCycle(
            errors=messages.errors, warnings=messages.warnings
        )

        if messages.errors:
            self.state = BuildState.FAILED
            self.console.print("[red]Failed to compile.[/red]")
            self.console.print()
            for message in messages.errors:
                self.console.print(message, markup=False, highlight=False)
                self.console.print()
            return None

        self.state = BuildState.SUCCEEDED
        if messages.warnings:
            self._print_warnings(messages.warnings)
        else:
            self._print_success()

        files = self.classifier.classify(stats.assets)
        self.last_cycle.files = files
        return self.gate.dispatch(files)

    def _print_warnings(self, warnings: list[str]):
        self.console.print("[yellow]Compiled with warnings.[/yellow]")
        self.console.print()
        for message in warnings:
            self.console.print(message, markup=False, highlight=False)
            self.console.print()
        self.console.print("You may use special comments to disable some warnings.")
        self.console.print(
            "Use [yellow]// eslint-disable-next-line[/yellow] to ignore the next line."
        )
        self.console.print(
            "Use [yellow]/* eslint-disable */[/yellow] to ignore all warnings in a file."
        )

    def _print_success(self):
        self.console.print("[green]Compiled successfully![/green]")
        self.console.print()
        if self.preview_url:
            self.console.print("The theme preview is running at:")
            self.console.print()
            self.console.print(f"  [cyan]{self.preview_url}[/cyan]")
            self.console.print()
