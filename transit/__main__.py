"""Entry point for running migrations as a module.

Usage:
    python -m transit up
    python -m transit down
    python -m transit status
    python -m transit create add_users
"""

from .cli import main

if __name__ == "__main__":
    main()
