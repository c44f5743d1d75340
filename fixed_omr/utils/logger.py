import logging
import os
import sys
from pathlib import Path
from datetime import datetime
from typing import Optional

LOG_DIR_ENV = "FIXED_OMR_LOG_DIR"


def setup_logger(name: str = "FIXED_OMR", log_dir: Optional[str] = None) -> logging.Logger:
    """
    Thiết lập Logger tập trung cho toàn bộ engine.

    Cơ chế hoạt động:
    1. Ghi ra Console: Mức INFO (thông tin gọn gàng cho người dùng xem).
    2. Ghi ra File: Mức DEBUG, chỉ khi có thư mục log (tham số hoặc biến môi trường FIXED_OMR_LOG_DIR).
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG) # Bắt tất cả các log từ mức thấp nhất

    # Ngăn việc tạo duplicate logs nếu hàm này được gọi nhiều lần
    if logger.hasHandlers():
        return logger

    # Format: [Giờ:Phút:Giây] - [MỨC ĐỘ] - Nội dung thông báo
    formatter = logging.Formatter('%(asctime)s - [%(levelname)s] - %(message)s', datefmt='%H:%M:%S')

    # --- HANDLER 1: Ghi ra màn hình Console ---
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # --- HANDLER 2: Ghi vào File (tùy chọn) ---
    log_dir = log_dir or os.environ.get(LOG_DIR_ENV)
    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        # Tên file log theo ngày (VD: session_2023-10-25.log)
        log_filename = f"session_{datetime.now().strftime('%Y-%m-%d')}.log"
        file_handler = logging.FileHandler(log_path / log_filename, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger

# Khởi tạo singleton logger để các module khác import và dùng ngay
app_logger = setup_logger()
