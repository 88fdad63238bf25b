"""Logging for genoprep runs.

Console and file sinks are loguru handlers. Two helpers sit on top:
``WarnOnce`` for warnings that should appear once per consolidator, and
``write_run_log`` for the ``##``-prefixed summary written next to CLI
outputs.
"""

import sys
from datetime import datetime
from pathlib import Path

from loguru import logger

import genoprep

CONSOLE_FORMAT = "{time:HH:mm:ss} | <level>{level: <8}</level> | {message}"


def setup_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    """Replace every loguru handler with the genoprep sinks.

    Args:
        verbose: Show DEBUG messages on the console instead of INFO and up.
        log_file: Also write every message, serialized as JSON lines, here.
    """
    logger.remove()
    logger.add(
        sys.stdout,
        level="DEBUG" if verbose else "INFO",
        format=CONSOLE_FORMAT,
        colorize=True,
    )
    if log_file is not None:
        logger.add(log_file, level="DEBUG", serialize=True)


class WarnOnce:
    """Emit a warning the first time a condition holds, then stay quiet.

    State lives on the instance, so two consolidators warn independently.

    Args:
        message: Warning text.
        logger: Sink with a ``warning`` method (loguru's logger by default).
    """

    def __init__(self, message: str, logger=logger) -> None:
        self.message = message
        self.logger = logger
        self.warned = False

    def warn_if(self, condition: bool) -> bool:
        """Warn if ``condition`` and not yet warned. Returns True if it warned."""
        if condition and not self.warned:
            self.warned = True
            self.logger.warning(self.message)
            return True
        return False


def _format_seconds(value) -> str:
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def write_run_log(
    output_config: "genoprep.core.config.OutputConfig",
    params: dict,
    timing: dict,
    command_line: str,
) -> Path:
    """Write ``<outdir>/<prefix>.log.txt`` describing one CLI run.

    Args:
        output_config: Where to write.
        params: Run parameters and summary counts, one ``## key = value``
            line each.
        timing: Phase durations in seconds; floats are shown to 2 decimals.
        command_line: The invoking command line.

    Returns:
        Path to the log file.

    Example output::

        ##
        ## genoprep Version = 0.1.0
        ## Date = 2026-03-02T14:05:11
        ##
        ## Command Line Input = genoprep consolidate -bfile study
        ##
        ## Summary Statistics:
        ## n_samples_consolidated = 1938
        ## strategy = drop
        ##
        ## Computation Time:
        ## total time = 0.84 seconds
        ##
    """
    lines = [
        "##",
        f"## genoprep Version = {genoprep.__version__}",
        f"## Date = {datetime.now().isoformat(timespec='seconds')}",
        "##",
        f"## Command Line Input = {command_line}",
        "##",
        "## Summary Statistics:",
        *(f"## {key} = {value}" for key, value in params.items()),
        "##",
        "## Computation Time:",
        *(
            f"## {phase} time = {_format_seconds(seconds)} seconds"
            for phase, seconds in timing.items()
        ),
        "##",
    ]
    output_config.ensure_outdir()
    log_path = output_config.log_path
    log_path.write_text("\n".join(lines) + "\n")
    return log_path


def log_rss_memory(phase: str, checkpoint: str) -> float:
    """Log the process resident set size at a named checkpoint.

    The reading is logged at DEBUG with ``phase`` and ``checkpoint`` bound as
    extra fields, so JSON log files can be filtered on them.

    Returns:
        RSS in GB.
    """
    import psutil

    rss_gb = psutil.Process().memory_info().rss / 1e9
    logger.bind(phase=phase, checkpoint=checkpoint).debug(
        f"RSS memory: {rss_gb:.2f}GB ({phase}/{checkpoint})"
    )
    return rss_gb
