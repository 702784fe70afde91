#!/usr/bin/env python3
"""
Main entry point for the therapy portal availability scraper.

Runs the availability pipeline:
1. Scrape every clinician's open slots from the portal (batched, checkpointed)
2. Re-scrape clinicians that ended in an error (N sweeps)
3. Normalize the dataset (hrefs, locations, names, dates)

The result is written to results/appointments.json for the sync step.

Usage:
    python main.py                          # Full pipeline
    python main.py --fresh                  # Delete previous results first
    python main.py --resume                 # Skip clinicians already scraped
    python main.py --stage retry            # Only retry errored clinicians
    python main.py --stage normalize        # Only normalize the saved dataset
    python main.py --clinician 12345        # Restrict to one clinician
"""

import os
import sys
import asyncio
import argparse
from dotenv import load_dotenv
from loguru import logger

from availability_scraper.config import REQUIRED_ENV_VARS, ScraperConfig
from availability_scraper.utils.log_setup import configure_logging
from availability_scraper.workflows.availability_workflow import STAGES, run_availability_workflow


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Scrape clinician appointment availability from the therapy portal"
    )
    parser.add_argument(
        "--stage",
        choices=STAGES,
        default="all",
        help="Pipeline stage to run (default: all)"
    )
    parser.add_argument(
        "--retry-passes",
        type=int,
        default=3,
        help="Number of error-retry sweeps (default: 3)"
    )
    parser.add_argument(
        "--fresh",
        action="store_true",
        help="Delete the previous dataset before scraping"
    )
    parser.add_argument(
        "--resume",
        action="store_true",
        help="Skip clinicians already present in the saved dataset"
    )
    parser.add_argument(
        "--clinician",
        action="append",
        dest="clinicians",
        metavar="ID",
        help="Only scrape this clinician ID (repeatable)"
    )

    args = parser.parse_args()

    if args.fresh and args.resume:
        parser.error("--fresh and --resume cannot be combined")

    # Load environment variables
    load_dotenv()

    needs_browser = args.stage != "normalize"

    # Verify required env vars
    if needs_browser:
        missing_vars = [var for var in REQUIRED_ENV_VARS if not os.getenv(var)]
        if missing_vars:
            print("ERROR: Missing required environment variables:")
            for var in missing_vars:
                print(f"  - {var}")
            print("\nPlease set these in your .env file")
            sys.exit(1)

    config = ScraperConfig.from_env(require_endpoint=needs_browser)
    configure_logging(config.log_level, config.error_log_path)

    try:
        logger.info("=" * 60)
        logger.info(f"AVAILABILITY PIPELINE ({args.stage})")
        logger.info("=" * 60)

        dataset = asyncio.run(run_availability_workflow(
            config,
            stage=args.stage,
            retry_passes=args.retry_passes,
            fresh=args.fresh,
            resume=args.resume,
            clinician_ids=args.clinicians,
        ))

        # Summary
        logger.info("=" * 60)
        logger.info("PIPELINE COMPLETE")
        logger.info("=" * 60)
        logger.info(f"Clinicians: {len(dataset)}")
        logger.info(f"Output: {config.appointments_path}")

    except KeyboardInterrupt:
        logger.warning("Pipeline interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"ERROR: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
