"""Command-line interface: python -m lorenzattractor"""
import sys

from lorenzattractor.main import main

if __name__ == "__main__":
    sys.exit(main())
