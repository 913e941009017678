"""
Package entry point.

Allows running the application via:

    python -m courseadmin

This simply forwards execution to courseadmin.cli.main().
"""

from courseadmin.cli import main

if __name__ == "__main__":
    main()
