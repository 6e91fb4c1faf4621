"""Run logger for recording each acquisition's fallback trace to JSON files."""

import dataclasses
import uuid
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from chornex_news.data import AcquisitionResult, Usage


class StageRecord(BaseModel):
    """Record of one tier of the fallback chain."""

    stage: str
    component: str
    outcome: str
    detail: str | None = None
    usage: dict[str, Any] | None = None
    timestamp: str = ""
    duration_seconds: float = 0.0


class RunRecord(BaseModel):
    """Record of a complete acquisition."""

    run_id: str
    language: str
    previous_highlight_count: int
    started_at: str
    completed_at: str | None = None
    stages: list[StageRecord] = []
    origin: str | None = None
    status: str | None = None
    highlight_count: int = 0
    source_count: int = 0
    total_usage: dict[str, Any] | None = None


def _serialize(obj: Any) -> Any:
    """Serialize an object to JSON-compatible format.

    Handles dataclasses, Pydantic models, enums, lists, tuples, dicts and
    primitives. For Usage objects, includes computed property summaries.
    """
    if obj is None:
        return None
    if isinstance(obj, Usage):
        return {
            "api_calls": [_serialize(c) for c in obj.api_calls],
            "input_tokens": obj.input_tokens,
            "output_tokens": obj.output_tokens,
            "web_searches": obj.web_searches,
        }
    if isinstance(obj, Enum):
        return obj.value
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return _serialize(dataclasses.asdict(obj))
    if isinstance(obj, BaseModel):
        return obj.model_dump()
    if isinstance(obj, list | tuple):
        return [_serialize(item) for item in obj]
    if isinstance(obj, dict):
        return {k: _serialize(v) for k, v in obj.items()}
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    return obj


class RunLogger:
    """Accumulates per-tier records and writes one JSON log file per acquisition.

    Acquisitions for different languages can overlap, so every run is
    addressed by the id ``start_run`` returns. When ``enabled=False``, all
    methods are no-ops.

    Args:
        log_dir: Directory to write JSON log files.
        enabled: If False, all methods become no-ops.
    """

    def __init__(self, log_dir: Path, *, enabled: bool = True) -> None:
        self._log_dir = log_dir
        self._enabled = enabled
        self._records: dict[str, RunRecord] = {}
        self._last_log_path: Path | None = None

    @property
    def enabled(self) -> bool:
        """Whether logging is active."""
        return self._enabled

    @property
    def last_log_path(self) -> Path | None:
        """Path to the last written log file, or None."""
        return self._last_log_path

    def start_run(self, language: str, previous_highlight_count: int) -> str | None:
        """Initialize a new run record.

        Args:
            language: Requested language.
            previous_highlight_count: Size of the caller's reference set.

        Returns:
            Id of the run, or None if logging is disabled.
        """
        if not self._enabled:
            return None

        run_id = str(uuid.uuid4())
        self._records[run_id] = RunRecord(
            run_id=run_id,
            language=language,
            previous_highlight_count=previous_highlight_count,
            started_at=datetime.now(tz=UTC).isoformat(),
        )
        return run_id

    def log_stage(
        self,
        run_id: str | None,
        stage: str,
        component: str,
        outcome: str,
        *,
        detail: str | None = None,
        usage: Usage | None = None,
        duration_seconds: float = 0.0,
    ) -> None:
        """Append a stage record to a run.

        Args:
            run_id: Id returned by ``start_run``.
            stage: Tier name (e.g. "cache", "primary", "secondary").
            component: Component class name.
            outcome: Short result label (e.g. "hit", "success", "failed").
            detail: Optional failure reason or note.
            usage: Provider usage for this tier.
            duration_seconds: Wall-clock time for this tier.
        """
        record = self._records.get(run_id) if run_id else None
        if not self._enabled or record is None:
            return

        record.stages.append(
            StageRecord(
                stage=stage,
                component=component,
                outcome=outcome,
                detail=detail,
                usage=_serialize(usage) if usage is not None else None,
                timestamp=datetime.now(tz=UTC).isoformat(),
                duration_seconds=round(duration_seconds, 4),
            )
        )

    def finish_run(self, run_id: str | None, result: AcquisitionResult) -> Path | None:
        """Write a run record to a JSON file and forget it.

        Args:
            run_id: Id returned by ``start_run``.
            result: What the acquisition returned.

        Returns:
            Path to the written JSON file, or None if logging is disabled.
        """
        record = self._records.pop(run_id, None) if run_id else None
        if not self._enabled or record is None:
            return None

        record.completed_at = datetime.now(tz=UTC).isoformat()
        record.origin = result.origin.value
        record.status = result.data.status.value
        record.highlight_count = len(result.data.highlights)
        record.source_count = len(result.sources)
        record.total_usage = _serialize(result.usage)

        self._log_dir.mkdir(parents=True, exist_ok=True)

        # run_2026-02-12T14-30-00_<id8>.json; polling can start several runs per second
        ts = record.started_at.replace(":", "-")
        ts = ts.split(".")[0].split("+")[0]
        filename = f"run_{ts}_{record.run_id[:8]}.json"
        filepath = self._log_dir / filename

        filepath.write_text(record.model_dump_json(indent=2))
        self._last_log_path = filepath
        return filepath
