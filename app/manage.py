#!/usr/bin/env python
"""Django's command-line utility for administrative tasks."""

import os
import sys


def main():
    """Run administrative tasks."""
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Are you sure it's installed and "
            "available on your PYTHONPATH environment variable? Did you "
            "forget to activate a virtual environment?"
        ) from exc

    argv = list(sys.argv)
    # `runserver` without an address listens on SERVER_PORT
    if len(argv) == 2 and argv[1] == "runserver":
        from django.conf import settings

        argv.append(str(settings.SERVER_PORT))

    execute_from_command_line(argv)


if __name__ == "__main__":
    main()
