"""Entry point for running citycoder as a module."""

import sys

from citycoder.cli import main

if __name__ == "__main__":
    sys.exit(main())
