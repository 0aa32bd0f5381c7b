"""
Package entry point.

Allows running the application via:

    python -m webregcal

This simply forwards execution to webregcal.cli.main().
"""

from webregcal.cli import main

if __name__ == "__main__":
    main()
