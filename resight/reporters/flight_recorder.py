"""
Flight Recorder - Diagnostic event log and report generation.

Captures scans, finder outcomes, re-identification misses and action
results so a failed run can be debugged from its report without
re-running it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from html import escape
from typing import Any, Dict, List, Optional, Sequence, TYPE_CHECKING
import json
import os

from resight.layers.action.finders import describe_finder
from resight.layers.sense.snapshot import Element, Snapshot

if TYPE_CHECKING:
    from resight.core.errors import ElementNotFound
    from resight.layers.action.executor import ActionResult


@dataclass
class LogEntry:
    """A single entry in the flight record."""
    timestamp: datetime
    step: int
    event_type: str  # 'scan', 'found', 'not_found', 'action', 'info', 'warning', 'error'
    message: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "step": self.step,
            "event_type": self.event_type,
            "message": self.message,
            "data": self.data,
        }


class FlightRecorder:
    """
    Records what the locator saw and did.

    Example:
        >>> recorder = FlightRecorder(output_dir="./resight_reports")
        >>> session = PageSession.from_driver(driver, recorder=recorder)
        >>> ...
        >>> report_path = recorder.generate_report()
    """

    def __init__(
        self,
        output_dir: str = "./resight_reports",
        run_name: Optional[str] = None,
        max_elements: int = 10,
    ):
        """
        Args:
            output_dir: Directory for reports
            run_name: Optional name for this run (default: timestamp)
            max_elements: How many elements of each scan to keep in the log
        """
        self.output_dir = output_dir
        self.run_name = run_name or datetime.now().strftime("%Y%m%d_%H%M%S")
        self.max_elements = max_elements
        self.entries: List[LogEntry] = []
        self.metadata: Dict[str, Any] = {
            "start_time": datetime.now().isoformat(),
            "run_name": self.run_name,
        }
        self.run_dir = os.path.join(output_dir, self.run_name)

    def _add(self, event_type: str, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        self.entries.append(LogEntry(
            timestamp=datetime.now(),
            step=len(self.entries),
            event_type=event_type,
            message=message,
            data=data or {},
        ))

    def log_scan(self, snapshot: Snapshot) -> None:
        self._add(
            "scan",
            f"Snapshot v{snapshot.version}: {len(snapshot)} elements",
            snapshot.to_dict(limit=self.max_elements),
        )

    def log_found(self, finder: Any, found: Sequence[Element]) -> None:
        descriptor = describe_finder(finder)
        self._add(
            "found",
            f"Found {len(found)} element(s): {descriptor}",
            {
                "descriptor": descriptor.to_dict(),
                "elements": [el.to_dict() for el in found[: self.max_elements]],
            },
        )

    def log_not_found(self, error: "ElementNotFound") -> None:
        self._add(
            "not_found",
            str(error).split("\n", 1)[0],
            {
                "error_type": type(error).__name__,
                "descriptor": error.descriptor,
                "candidates": error.candidates,
                "attempts": getattr(error, "attempts", None),
            },
        )

    def log_action(self, result: "ActionResult") -> None:
        self._add(
            "action",
            f"{result.action} {result.target[:40]!r}: {'success' if result.success else 'failed'}",
            result.to_dict(),
        )

    def log_info(self, message: str) -> None:
        self._add("info", message)

    def log_warning(self, message: str) -> None:
        self._add("warning", message)

    def log_error(self, message: str, exception: Optional[Exception] = None) -> None:
        self._add("error", message, {"exception": str(exception) if exception else None})

    def generate_report(self) -> str:
        """
        Write ``flight_record.json`` and ``report.html`` into the run directory.

        Returns:
            Path to the HTML report
        """
        os.makedirs(self.run_dir, exist_ok=True)
        self.metadata["end_time"] = datetime.now().isoformat()
        self.metadata["scans"] = len([e for e in self.entries if e.event_type == "scan"])

        json_path = os.path.join(self.run_dir, "flight_record.json")
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump(
                {"metadata": self.metadata, "entries": [e.to_dict() for e in self.entries]},
                f,
                indent=2,
                default=str,
            )

        report_path = os.path.join(self.run_dir, "report.html")
        with open(report_path, "w", encoding="utf-8") as f:
            f.write(self._build_html_report())
        return report_path

    def _build_html_report(self) -> str:
        actions = [e for e in self.entries if e.event_type == "action"]
        success_count = len([a for a in actions if a.data.get("success")])
        misses = len([e for e in self.entries if e.event_type == "not_found"])

        timeline_html = ""
        for entry in self.entries:
            timeline_html += f"""
            <div class="timeline-item {self._get_status_class(entry)}">
                <div class="timeline-time">{entry.timestamp.strftime('%H:%M:%S')}</div>
                <div class="timeline-message">{escape(entry.message)}</div>
                {self._format_data(entry.data)}
            </div>
            """

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>resight flight record - {escape(self.run_name)}</title>
    <style>
        body {{ font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; background: #0d1117; color: #c9d1d9; padding: 2rem; }}
        .stats {{ display: flex; gap: 2rem; margin-bottom: 2rem; }}
        .stat-value {{ font-size: 2rem; font-weight: bold; color: #58a6ff; }}
        .timeline-item {{ padding: 0.75rem 0; border-bottom: 1px solid #30363d; }}
        .timeline-time {{ font-size: 0.75rem; color: #8b949e; }}
        .timeline-data {{ margin-top: 0.5rem; padding: 0.5rem; background: #161b22; font-family: monospace; font-size: 0.8rem; white-space: pre-wrap; }}
        .success {{ border-left: 3px solid #3fb950; padding-left: 0.75rem; }}
        .warning {{ border-left: 3px solid #d29922; padding-left: 0.75rem; }}
        .error {{ border-left: 3px solid #f85149; padding-left: 0.75rem; }}
    </style>
</head>
<body>
    <h1>resight flight record</h1>
    <p>Run: {escape(self.run_name)}</p>
    <div class="stats">
        <div><div class="stat-value">{self.metadata.get('scans', 0)}</div>Scans</div>
        <div><div class="stat-value">{success_count}/{len(actions)}</div>Successful actions</div>
        <div><div class="stat-value">{misses}</div>Not found</div>
    </div>
    <div class="timeline">{timeline_html}</div>
</body>
</html>"""

    def _get_status_class(self, entry: LogEntry) -> str:
        if entry.event_type in ("error", "not_found"):
            return "error"
        if entry.event_type == "warning":
            return "warning"
        if entry.event_type == "action":
            return "success" if entry.data.get("success") else "error"
        return ""

    def _format_data(self, data: Dict[str, Any]) -> str:
        if not data:
            return ""
        # Element lists are kept in the JSON record only.
        filtered = {k: v for k, v in data.items() if k != "elements"}
        if not filtered:
            return ""
        return f'<div class="timeline-data">{escape(json.dumps(filtered, indent=2, default=str))}</div>'
