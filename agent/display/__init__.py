"""Display and output utilities module.

Contains Rich console helpers used by the CLI.
"""
from .console import (
    console,
    print_header,
    print_success,
    print_warning,
    print_error,
    print_info,
    print_field,
    print_channel_table,
)

__all__ = [
    'console',
    'print_header',
    'print_success',
    'print_warning',
    'print_error',
    'print_info',
    'print_field',
    'print_channel_table',
]
