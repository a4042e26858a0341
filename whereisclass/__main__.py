"""
Package entry point.

Allows running the application via:

    python -m whereisclass

This simply forwards execution to whereisclass.cli.main().
"""

from whereisclass.cli import main

if __name__ == "__main__":
    main()
