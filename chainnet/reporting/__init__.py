"""Reporting utilities for chainnet."""

from .artifacts import write_manifest
from .metrics import CsvSink, JsonlSink, MetricsCapture
from .plots import PlotAdapter
from .summary import write_summary

__all__ = ["write_manifest", "JsonlSink", "CsvSink", "MetricsCapture", "PlotAdapter", "write_summary"]
