"""
RunTracker

GPS run tracking sessions and route statistics.
"""

__version__ = "0.1.0"
