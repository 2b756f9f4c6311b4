"""Main entry point when executing shipquote as a package.

This allows running the package using python -m shipquote.
"""

from shipquote.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
