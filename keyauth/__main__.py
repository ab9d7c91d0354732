"""Main entry point when executing keyauth as a package.

This allows running the package using python -m keyauth.
"""

from keyauth.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
