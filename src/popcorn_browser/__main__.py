"""Allow ``python -m popcorn_browser``."""

from popcorn_browser.cli import main_entry

if __name__ == "__main__":
    main_entry()
