"""Utility helpers for ci."""

from collaborative_intelligence.utils.console import (
    get_console,
    print_error,
    print_info,
    print_panel,
    print_status,
    print_success,
    print_warning,
)
from collaborative_intelligence.utils.file_utils import (
    ensure_dir,
    file_exists,
    secure_dir,
    secure_file,
)

__all__ = [
    "ensure_dir",
    "file_exists",
    "get_console",
    "print_error",
    "print_info",
    "print_panel",
    "print_status",
    "print_success",
    "print_warning",
    "secure_dir",
    "secure_file",
]
