"""
cli - Command line interface for jobtrack_sync.
"""

from jobtrack_sync.cli.main import app

__all__ = ["app"]
