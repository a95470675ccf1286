"""
Doppelganger — Self-hosted mirror of your GitHub repositories.

Keeps bare `git clone --mirror` copies on local disk, refreshes them on
GitHub push webhooks and serves a small web UI to browse and download them.
"""

__version__ = "0.1.0"
BUILD_DATE = "2026-10-19"
