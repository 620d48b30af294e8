"""
Candle Pipeline - Main Entry Point

Aggregates a trade file into 5m/30m/240m candles and writes them to the
configured sink.
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dataflow.adapters.nats_client import NatsClient, NatsConfig
from dataflow.errors import PipelineError
from dataflow.persistence.sink import CandleSink, create_sink
from engine.config.loader import ConfigLoader, RunConfig
from engine.scheduler.pipeline import PipelineExecutor

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="candle-pipeline",
        description="Aggregate trades into multi-resolution OHLC candles",
    )
    parser.add_argument(
        "--file",
        default=os.getenv("TRADES_FILE"),
        help="The path for file which contains trades (env: TRADES_FILE)",
    )
    parser.add_argument(
        "--config",
        default=os.getenv("PIPELINE_CONFIG"),
        help="YAML run configuration (env: PIPELINE_CONFIG)",
    )
    args = parser.parse_args(argv)
    if not args.file:
        parser.error("--file is required")
    return args


def build_sink(config: RunConfig) -> CandleSink:
    """Create the sink named in the run config"""
    nats_client = None
    if config.output.sink == "nats":
        nats_client = NatsClient(NatsConfig.from_env())
    return create_sink(
        config.output.sink,
        config.resolutions,
        directory=config.output.directory,
        filename_template=config.output.filename_template,
        nats_client=nats_client,
    )


async def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the candle pipeline.

    Environment Variables:
        TRADES_FILE: Trade file (default for --file)
        PIPELINE_CONFIG: YAML config (default for --config)
        LOG_LEVEL: Logging level (default: "INFO")
        NATS_SERVERS: NATS server URLs, used by the nats sink

    Returns:
        Process exit status
    """
    args = parse_args(argv)

    logger.info("=" * 60)
    logger.info("Candle Pipeline Starting")
    logger.info("=" * 60)
    logger.info(f"Trades: {args.file}")
    logger.info(f"Config: {args.config or '(defaults)'}")

    try:
        config = ConfigLoader(Path(args.config) if args.config else None).load()
        sink = build_sink(config)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    executor = PipelineExecutor(config, sink)
    try:
        await executor.execute(Path(args.file))
    except PipelineError as e:
        logger.error(f"Pipeline failed: {e}", exc_info=True)
        return 1

    logger.info("Candle pipeline stopped")
    return 0


def run() -> None:
    """Console script entry point"""
    setup_logging()
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
