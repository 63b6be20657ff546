"""Reporting helpers: building summary and schedule rows."""

from framecalc.reporting.schedule import ScheduleRow, build_schedule_rows
from framecalc.reporting.summary import BuildingSummary, summarize_building

__all__ = ["BuildingSummary", "ScheduleRow", "build_schedule_rows", "summarize_building"]
