"""Main entry point for kmd CLI."""

from kmd.cli import main

if __name__ == "__main__":
    main()
