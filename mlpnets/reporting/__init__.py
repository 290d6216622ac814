"""Reporting utilities for mlpnets."""

from .artifacts import write_manifest
from .metrics import CsvSink, JsonlSink

__all__ = ["write_manifest", "CsvSink", "JsonlSink"]
