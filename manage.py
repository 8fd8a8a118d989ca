#!/usr/bin/env python
"""
Command line entry point for the PharmaGuard portal.  Points Django at
``pharmaguard.settings`` and hands over to its management utility, so
``./manage.py import_roster``, ``runserver`` and friends work from the
repository root.
"""
import os
import sys


def main() -> None:
    """Run administrative tasks for the Django project."""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'pharmaguard.settings')
    try:
        from django.core.management import execute_from_command_line  # type: ignore
    except ImportError as exc:
        raise ImportError(
            "Django is not importable; install the project with "
            "`pip install -e .` inside the active virtual environment."
        ) from exc
    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()
