#!/usr/bin/env python3
"""
Invoice Extraction Pipeline - Main Entry Point.

Command-line interface and programmatic access to the extraction
pipeline: files are loaded, checked against the caller's plan, run
through acquire -> classify -> extract, and written as CSV, Excel or JSON.

Usage:
    Command Line:
        python main.py --input invoice.pdf --output results.csv
        python main.py --input ./invoices/ --plan premium --mode ocr --format xlsx

    Python:
        from main import run_extraction
        batch = run_extraction(["invoice.pdf"], plan="free")
"""

import argparse
import logging
import sys
from typing import List, Optional, Sequence

from config import ConfigurationManager
from invoice_pipeline.extraction import BatchResult
from invoice_pipeline.input_handler import InputHandler
from invoice_pipeline.output_handler import OutputHandler, SUPPORTED_FORMATS
from invoice_pipeline.pipeline import ExtractionMode, PipelineCoordinator, TierPolicy
from invoice_pipeline.utils.exceptions import (
    BatchValidationError,
    ConfigurationError,
    OutputError,
)
from invoice_pipeline.utils.logger import setup_logger_from_config, get_logger

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_BATCH_REJECTED = 2


def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="Extract invoice fields and line items from PDFs and images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Process a single invoice on the free plan:
        python main.py --input invoice.pdf --output results.csv

    Process a directory with OCR fallback:
        python main.py --input ./invoices/ --plan premium --mode ocr

    Enhanced extraction to Excel:
        python main.py --input po.pdf --plan premium --mode enhanced --format xlsx

Exit codes:
    0  batch processed (individual files may still have failed)
    1  input, configuration or output error
    2  batch rejected by the plan's limits
        """
    )

    parser.add_argument(
        "--input", "-i",
        nargs="+",
        required=True,
        help="Input file(s) or director(ies) containing invoices"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output file (default: timestamped file in the configured output dir)"
    )

    parser.add_argument(
        "--plan", "-p",
        choices=["free", "premium"],
        default="free",
        help="Subscription plan whose limits apply (default: free)"
    )

    parser.add_argument(
        "--mode", "-m",
        choices=[mode.value for mode in ExtractionMode],
        default=ExtractionMode.STANDARD.value,
        help="Extraction mode (default: standard)"
    )

    parser.add_argument(
        "--format", "-f",
        dest="fmt",
        choices=SUPPORTED_FORMATS,
        default=None,
        help="Output format (default: from --output suffix, else csv)"
    )

    parser.add_argument(
        "--recursive", "-r",
        action="store_true",
        help="Search input directories recursively"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log warnings and errors"
    )

    return parser.parse_args(argv)


def initialize_system(args: argparse.Namespace) -> logging.Logger:
    """
    Load configuration and set up logging.

    Returns:
        The package logger.
    """
    config = ConfigurationManager(args.config)

    level = None
    if args.debug:
        level = "DEBUG"
    elif args.quiet:
        level = "WARNING"
    logger = setup_logger_from_config(level)

    logger.info("=" * 60)
    logger.info("INVOICE EXTRACTION PIPELINE")
    logger.info("=" * 60)
    logger.info(f"Version: {config.get('project.version', '1.0.0')}")
    logger.info(f"Plan: {args.plan} | Mode: {args.mode}")

    return logger


def run_extraction(
    paths: Sequence[str],
    plan: str = "free",
    mode: str = ExtractionMode.STANDARD.value,
    recursive: bool = False,
    coordinator: Optional[PipelineCoordinator] = None
) -> BatchResult:
    """
    Run the extraction pipeline over files and directories.

    Args:
        paths: Files and/or directories to process.
        plan: Name of a plan defined under ``tiers:``.
        mode: ``standard``, ``enhanced`` or ``ocr``.
        recursive: Whether to descend into subdirectories.
        coordinator: Pre-built coordinator (a fresh one by default).

    Returns:
        BatchResult with one result per collected file.

    Raises:
        FileNotFoundError: If an input path does not exist.
        ConfigurationError: If the plan is not configured.
        BatchValidationError: If the batch violates the plan's limits.

    Example:
        >>> batch = run_extraction(["invoices/"], plan="premium", mode="ocr")
        >>> for result in batch.results:
        ...     print(result.filename, result.total)
    """
    policy = TierPolicy.from_plan(plan)
    inputs = InputHandler().collect(paths, recursive=recursive)
    coordinator = coordinator or PipelineCoordinator()
    return coordinator.process_batch(inputs, policy, ExtractionMode(mode))


def _log_summary(logger: logging.Logger, batch: BatchResult) -> None:
    for result in batch.results:
        if result.error:
            logger.warning(f"  {result.filename}: {result.error}")
        else:
            logger.info(
                f"  {result.filename}: invoice #{result.invoice_number or 'N/A'}, "
                f"total {result.total or 'N/A'}, {len(result.line_items or [])} line item(s)"
            )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function - entry point for command-line execution.

    Returns:
        Exit code (see EXIT_* constants).
    """
    args = parse_arguments(argv)

    try:
        logger = initialize_system(args)
    except (FileNotFoundError, ConfigurationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    log = get_logger(__name__)

    try:
        batch = run_extraction(args.input, args.plan, args.mode, recursive=args.recursive)
        _log_summary(log, batch)
        output_path = OutputHandler().save(batch, path=args.output, fmt=args.fmt)

    except BatchValidationError as e:
        log.error(f"Batch rejected: {e.user_message}")
        return EXIT_BATCH_REJECTED

    except (FileNotFoundError, NotADirectoryError) as e:
        log.error(str(e))
        return EXIT_INPUT_ERROR

    except (ConfigurationError, OutputError) as e:
        log.error(e.user_message)
        return EXIT_INPUT_ERROR

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 130

    logger.info("=" * 60)
    logger.info(f"Extraction complete: {batch.succeeded}/{batch.total_files} succeeded")
    logger.info(f"Results written to: {output_path}")
    logger.info("=" * 60)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
