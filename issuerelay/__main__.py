"""Main entry point when executing issuerelay as a package.

This allows running the package using python -m issuerelay.
"""

from issuerelay.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
