#!/usr/bin/env python

"""Loguru sinks for sccall.

Every sccall module logs through `logger.bind(name="sccall")` and only
records carrying that binding reach the sink installed here, so
importing sccall does not change how other packages log.

Filtering records may also carry the subcluster marker (see
`subcluster_logger`). It is printed as a context column, '[root]' for
the top-level subcluster, followed by the worker thread name when the
record comes from a thread of the position filter pool.

Levels
------
DEBUG: filter slices per worker, skipped contigs and map blocks.
INFO: rows kept per subcluster, records written per calling run. (DEFAULT)
WARNING: dropped pileup lines, chromosomes without reference sequence.
ERROR: failures reported by the command line tool.

Examples
--------
>>> import sccall
>>> sccall.set_log_level("DEBUG")
>>> sccall.set_log_level("DEBUG", log_file="/tmp/sccall-log.txt")
"""

from typing import Optional
import sys
from pathlib import Path
from loguru import logger
import IPython

LOG_NAME = "sccall"

# handler ids owned by sccall; 0 is loguru's default stderr handler.
SINK_IDS = [0]


def _context(record) -> str:
    marker = record["extra"].get("marker")
    if marker is None:
        return ""
    context = marker or "root"
    if record["thread"].name != "MainThread":
        context += f" {record['thread'].name}"
    return f"[{context}] "


def formatter(record) -> str:
    """Format string with the emitting module and subcluster context."""
    record["extra"]["context"] = _context(record)
    return (
        "{time:HH:mm:ss} | "
        "<level>{level:<7}</level> | "
        "<cyan>{name:<32}</cyan> | "
        "{extra[context]}{message}\n{exception}"
    )


def _is_sccall(record) -> bool:
    return record["extra"].get("name") == LOG_NAME


def _use_color(stream) -> bool:
    """Color inside notebooks and terminals, never when redirected."""
    if IPython.get_ipython() is not None:
        return True
    return stream.isatty()


def set_log_level(log_level: str = "DEBUG", log_file: Optional[Path] = None) -> int:
    """Send sccall records at or above log_level to STDERR, or to
    log_file instead. A previous sccall sink is replaced. Returns the
    loguru handler id.
    """
    while SINK_IDS:
        try:
            logger.remove(SINK_IDS.pop())
        except ValueError:
            pass

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logger.add(
            sink=log_file,
            level=log_level.upper(),
            format=formatter,
            filter=_is_sccall,
            colorize=False,
            enqueue=True,
            rotation="50 MB",
        )
    else:
        handler = logger.add(
            sink=sys.stderr,
            level=log_level.upper(),
            format=formatter,
            filter=_is_sccall,
            colorize=_use_color(sys.stderr),
            enqueue=True,
        )
    SINK_IDS.append(handler)
    logger.enable(LOG_NAME)
    logger.bind(name=LOG_NAME).debug(f"sccall logging enabled: {log_level}")
    return handler


def subcluster_logger(marker: str):
    """Return a logger whose records show the subcluster marker."""
    return logger.bind(name=LOG_NAME, marker=marker)
