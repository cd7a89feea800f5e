# File: crudgen/exporters.py
"""
crudgen - Write Executor
========================
Walks a plan in order and decides, per artifact, what happens on disk:

    dry_run                → render into memory, report created, write nothing
    target exists, !force  → report skipped, write nothing
    otherwise              → render, write atomically, report created

A failing artifact (template or file-system error) is recorded in
``GenerateResult.errors`` and the loop moves on, so one pass reports every
outcome.  Writes go through ``crudgen.utils.write_file`` (temp file in the
target directory, fsync, rename), so a target is either complete or absent.

Cancellation is checked between artifacts only; an artifact that has
started is always finished.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import List, Optional

from crudgen.errors import CrudgenError, WriteError
from crudgen.models import FileResult, GenerateResult
from crudgen.planner import Artifact
from crudgen.templates import TemplateData, TemplateEngine
from crudgen.utils import Timer, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.exporters")


class PlanExecutor:
    """
    Executes one plan against an output directory.

    Usage::

        executor = PlanExecutor(TemplateEngine(), Path("."), force=False)
        result = executor.execute(plan_crud(cfg), TemplateData.from_config(cfg))

    Thread-safety: NOT thread-safe.  Use one executor per run.
    """

    def __init__(
        self,
        engine: TemplateEngine,
        output_dir: Path,
        *,
        force: bool = False,
        dry_run: bool = False,
    ) -> None:
        self._engine: TemplateEngine = engine
        self._output_dir: Path = Path(output_dir)
        self._force: bool = force
        self._dry_run: bool = dry_run

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def execute(
        self,
        plan: List[Artifact],
        data: TemplateData,
        result: Optional[GenerateResult] = None,
        cancel: Optional[threading.Event] = None,
    ) -> GenerateResult:
        """
        Process every artifact of *plan* and return the outcomes.

        Args:
            plan: Ordered artifacts from ``crudgen.planner``.
            data: Template data shared by every artifact.
            result: Existing result to append to (keeps earlier warnings).
            cancel: When set between two artifacts, the run stops and the
                result is flagged ``cancelled``.
        """
        outcome: GenerateResult = result if result is not None else GenerateResult()

        with Timer(f"execute:{data.model_name}"):
            for artifact in plan:
                if cancel is not None and cancel.is_set():
                    outcome.cancelled = True
                    logger.warning(
                        "Generation cancelled before %s; %d artifact(s) not processed.",
                        artifact,
                        len(plan) - len(outcome.files),
                    )
                    break
                outcome.files.append(self._process(artifact, data, outcome))

        logger.info("%s: %s", data.model_name, outcome.summary())
        return outcome

    # -----------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------

    def _process(
        self,
        artifact: Artifact,
        data: TemplateData,
        outcome: GenerateResult,
    ) -> FileResult:
        target: Path = artifact.resolve(self._output_dir)
        display: str = str(target)

        if not self._dry_run and target.exists() and not self._force:
            logger.info("Skipped existing file %s.", display)
            return FileResult(path=display, skipped=True)

        try:
            content: str = self._engine.render(artifact.template, data)
            if self._dry_run:
                logger.info("Dry run: would write %s (%d chars).", display, len(content))
                return FileResult(path=display, created=True, content=content)
            self._write(target, content)
        except CrudgenError as exc:
            message: str = exc.message
            outcome.errors.append(f"{display}: {message}")
            logger.error("Failed to generate %s: %s", display, message)
            return FileResult(path=display, error=message)

        logger.info("Created %s.", display)
        return FileResult(path=display, created=True)

    @staticmethod
    def _write(target: Path, content: str) -> None:
        try:
            size: int = write_file(target, content)
        except OSError as exc:
            raise WriteError(f"cannot write file: {exc.strerror or exc}", path=str(target)) from exc
        logger.debug("Wrote %s (%d bytes).", target, size)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "PlanExecutor",
]

logger.debug("crudgen.exporters loaded.")
