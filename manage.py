#!/usr/bin/env python
"""SlotBook management entry point."""
import os
import sys


def main():
    # Tests pick their settings from pyproject; everything else defaults to development
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "slotbook.settings.development")
    if len(sys.argv) > 1 and sys.argv[1] == "test":
        os.environ["DJANGO_SETTINGS_MODULE"] = "slotbook.settings.test"

    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Install the project with `pip install -e .` "
            "inside an activated virtual environment."
        ) from exc
    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
