"""
CSV exports for the admin panel.

Rows are read from Supabase one page at a time and written out as they arrive,
so a report never holds a whole table in memory.
"""

import csv
import io
import logging
from datetime import date
from typing import Any, Callable, Dict, Iterator, List, NamedTuple

from supabase import Client

from app.config import settings

logger = logging.getLogger(__name__)


class ReportSpec(NamedTuple):
    table: str
    columns: List[str]
    row: Callable[[Dict[str, Any]], List[Any]]


def _na(value: Any) -> Any:
    return "N/A" if value in (None, "") else value


REPORTS: Dict[str, ReportSpec] = {
    "users": ReportSpec(
        table="profiles",
        columns=["name", "location", "successful_swaps", "average_rating", "is_banned", "created_at"],
        row=lambda p: [
            p.get("full_name"),
            _na(p.get("location")),
            p.get("successful_swaps") or 0,
            p.get("average_rating") or 0,
            p.get("is_banned", False),
            p.get("created_at"),
        ],
    ),
    "skills": ReportSpec(
        table="skills",
        columns=["title", "category", "is_offering", "is_approved", "created_at"],
        row=lambda s: [s.get("title"), s.get("category"), s.get("is_offering"), s.get("is_approved"), s.get("created_at")],
    ),
    "swaps": ReportSpec(
        table="skill_requests",
        columns=["status", "created_at"],
        row=lambda r: [r.get("status"), r.get("created_at")],
    ),
}


def report_filename(report_type: str, today: date = None) -> str:
    return f"{report_type}-report-{(today or date.today()).isoformat()}.csv"


def iter_rows(supabase: Client, table: str, page_size: int) -> Iterator[Dict[str, Any]]:
    """Yield every row of `table` ordered by creation, page_size rows per query"""
    offset = 0
    while True:
        result = supabase.table(table)\
            .select("*")\
            .order("created_at", desc=False)\
            .range(offset, offset + page_size - 1)\
            .execute()
        page = result.data or []
        yield from page
        if len(page) < page_size:
            return
        offset += page_size


def stream_report(supabase: Client, report_type: str, page_size: int = None) -> Iterator[str]:
    """Yield the CSV text of a report, header first, one chunk per row"""
    spec = REPORTS[report_type]
    page_size = page_size or settings.report_page_size
    buffer = io.StringIO()
    writer = csv.writer(buffer)

    def flush() -> str:
        chunk = buffer.getvalue()
        buffer.seek(0)
        buffer.truncate(0)
        return chunk

    writer.writerow(spec.columns)
    yield flush()
    count = 0
    for row in iter_rows(supabase, spec.table, page_size):
        writer.writerow(spec.row(row))
        count += 1
        yield flush()
    logger.info(f"Streamed {report_type} report: {count} row(s)")
