"""
Trade Line Reader

Source stage of the pipeline: streams the lines of a trade file into a handoff.
"""

import logging
from pathlib import Path
from typing import Tuple

from dataflow.adapters.handoff import Handoff
from dataflow.errors import TradeSourceError

logger = logging.getLogger(__name__)

Line = Tuple[int, str]


async def read_trade_lines(path: Path, out: Handoff[Line]) -> int:
    """
    Send every non-blank line of a trade file as (line_number, text).

    The handoff is closed when the file is exhausted. If the task is
    cancelled the handoff is left open and no further lines are sent.

    Args:
        path: Trade file
        out: Handoff to the processing stage

    Returns:
        Number of lines sent

    Raises:
        TradeSourceError: If the file can't be opened or read
    """
    logger.info(f"Reading trades from {path}")
    sent = 0

    try:
        with open(path, encoding="utf-8", newline="") as f:
            for line_number, raw in enumerate(f, start=1):
                line = raw.rstrip("\r\n")
                if not line.strip():
                    continue
                await out.send((line_number, line))
                sent += 1
    except (OSError, UnicodeDecodeError) as e:
        raise TradeSourceError(f"unable to read input file {path}: {e}") from e

    await out.close()
    logger.info(f"Finished reading {path}: {sent} records")
    return sent
