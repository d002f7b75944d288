from __future__ import annotations

import csv
import io
import json
from pathlib import Path
from typing import Iterable

from intune_assign.data import AppAssignmentReport
from intune_assign.utils import get_logger


logger = get_logger(__name__)

CSV_COLUMNS = (
    "app_id",
    "display_name",
    "intent",
    "group_id",
    "group_name",
    "start_time",
    "deadline_time",
    "notifications",
    "error",
)


class ReportExporter:
    """Render assignment reports as JSON or CSV."""

    def render_json(self, report: Iterable[AppAssignmentReport]) -> str:
        payload = [entry.model_dump(mode="json") for entry in report]
        return json.dumps(payload, indent=2)

    def render_csv(self, report: Iterable[AppAssignmentReport]) -> str:
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, lineterminator="\n")
        writer.writeheader()
        for row in self._rows(report):
            writer.writerow(row)
        return buffer.getvalue()

    def to_json(self, report: Iterable[AppAssignmentReport], path: Path) -> Path:
        entries = list(report)
        path.write_text(self.render_json(entries), encoding="utf-8")
        logger.debug("Exported report JSON", path=str(path), apps=len(entries))
        return path

    def to_csv(self, report: Iterable[AppAssignmentReport], path: Path) -> Path:
        entries = list(report)
        path.write_text(self.render_csv(entries), encoding="utf-8", newline="")
        logger.debug("Exported report CSV", path=str(path), apps=len(entries))
        return path

    @staticmethod
    def _rows(report: Iterable[AppAssignmentReport]) -> Iterable[dict[str, str]]:
        for entry in report:
            base = {
                "app_id": entry.app_id,
                "display_name": entry.display_name,
                "error": entry.error or "",
            }
            if not entry.assignments:
                yield base
                continue
            for assignment in entry.assignments:
                yield {
                    **base,
                    "intent": assignment.intent or "",
                    "group_id": assignment.group_id or "",
                    "group_name": assignment.group_name,
                    "start_time": assignment.start_time or "",
                    "deadline_time": assignment.deadline_time or "",
                    "notifications": assignment.notifications or "",
                }


__all__ = ["CSV_COLUMNS", "ReportExporter"]
