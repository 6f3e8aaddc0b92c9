"""
GPX feature: export of runs and import of recorded tracks.
"""

from .exporter import GPXExporter

__all__ = ["GPXExporter"]
