#!/usr/bin/env python
import os
import sys
from pathlib import Path

from config.structlog_config import configure_logging

BASE_DIR = Path(__file__).resolve().parent
for extra in ("src", "libs"):
    path = str(BASE_DIR / extra)
    if path not in sys.path:
        sys.path.insert(0, path)

configure_logging()
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

def main():
    """Entry point for Django management tasks."""
    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Is it installed and available on your PYTHONPATH?"
        ) from exc

    execute_from_command_line(sys.argv)

if __name__ == '__main__':
    main()
