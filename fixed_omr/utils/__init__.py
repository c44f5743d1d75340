"""
Package Utils: Chứa các công cụ hỗ trợ dùng chung cho toàn bộ dự án.
Bao gồm: Logging, File I/O (JSON/ảnh/Excel/CSV), và các hàm bổ trợ OMR.
"""

from .logger import app_logger
from .file_io import FileHandler
from .helpers import OMRUtils

__all__ = ['app_logger', 'FileHandler', 'OMRUtils']
