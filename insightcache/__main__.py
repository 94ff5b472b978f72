"""Main entry point when executing insightcache as a package.

This allows running the package using python -m insightcache.
"""

from insightcache.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
