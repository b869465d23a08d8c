"""
Shared utilities for texbuild.

Common functionality used across contexts:
- Logging setup
- PDF inspection
"""

from texbuild.utils.logger import setup_logger
from texbuild.utils.pdf_processing import page_count

__all__ = ["page_count", "setup_logger"]
