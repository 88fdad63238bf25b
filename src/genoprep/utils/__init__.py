"""Utility helpers: logging setup, warn-once, run logs."""

from genoprep.utils.logging import (
    WarnOnce,
    log_rss_memory,
    setup_logging,
    write_run_log,
)

__all__ = ["WarnOnce", "log_rss_memory", "setup_logging", "write_run_log"]
