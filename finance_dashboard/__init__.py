"""
Finance Dashboard - Source Package

The finance management slice of a personal dashboard: a typed client for
the remote finance API, a query cache in front of it, and the page and
dashboard views built on top.

DESIGN PRINCIPLES:
1. Always show a number; fall back instead of failing
2. Cancelled requests are silent and change nothing
3. Writes invalidate exactly what they made stale
4. Every user-visible outcome is a toast and a log line
5. The credential store is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Dashboard Team"
