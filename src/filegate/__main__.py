"""Main entry point for the filegate CLI.

Usage:
    python -m filegate --help
    filegate --help  # If installed via pip/uv
"""

from filegate.cli import main

if __name__ == "__main__":
    main()
