"""Growlitics KPI - cultivation strategy KPI aggregation and chart series."""

__version__ = "0.1.0"
