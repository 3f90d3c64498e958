"""Prompt logger command line entry point."""

import sys

from prompt_logger.cli import main

if __name__ == "__main__":
    sys.exit(main())
