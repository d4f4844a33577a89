"""
ciact - Run GitHub Actions workflows locally with live run status.

Pieces:
- catalog: workflow discovery and short codes
- gitctx: branch / upstream / origin resolution
- status: latest-run queries against the GitHub Actions API
- poller: concurrent per-workflow status polling
- menu: live-updating selection menu
- dispatch: selection resolution and runner invocation
"""

__version__ = "0.2.0"
__author__ = "1minds3t"
__email__ = "1minds3t@proton.me"
__all__ = ["catalog", "gitctx", "status", "poller", "menu", "dispatch", "config"]
