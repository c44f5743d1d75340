"""
Package Workers: Xử lý hàng loạt phiếu trả lời ở thread nền.
"""

from .scan_worker import ScanWorker, scan_file, scan_files

__all__ = ['ScanWorker', 'scan_file', 'scan_files']
