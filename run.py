#!/usr/bin/env python3
"""Entry point for the Convenient_CF application."""

import os
import sys
import logging

from convenient_cf.app import main

if __name__ == "__main__":
    # Load settings to get log level
    from convenient_cf.config import load_settings

    settings = load_settings()

    # Configure logging with level from settings, overridden by environment variable if set
    log_level = os.environ.get("LOG_LEVEL", settings.get_string("log_level", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="[%(levelname)s] %(asctime)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logging.info(f"Convenient_CF starting with log level: {log_level}")
    logging.info(f"ffmpeg path: {settings.get_string('ffmpeg_path')}")

    sys.exit(main(settings=settings))
