"""
Entry Point dạng console: quét toàn bộ ảnh phiếu trong một thư mục và xuất báo cáo CSV/Excel.

VD: python -m fixed_omr.main scans/ --key ABCDABCDABCDABCDABCD --output results/
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from fixed_omr.core import GradeManager, ThresholdOverrides
from fixed_omr.utils import app_logger, FileHandler
from fixed_omr.workers import scan_files


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fixed-template OMR answer sheet scanner")
    parser.add_argument("image_dir", type=Path, help="Folder containing scanned answer sheets")
    parser.add_argument("--key", help="Answer key, e.g. ABCDABCD... (enables grading)")
    parser.add_argument("--quiz-name", default="", help="Quiz name written to the report")
    parser.add_argument("--settings", type=Path, help="JSON file with threshold settings")
    parser.add_argument("--output", type=Path, default=None, help="Result folder (default: <image_dir>/results)")
    parser.add_argument("--workers", type=int, default=4, help="Number of parallel scanning threads")
    parser.add_argument("--save-overlay", action="store_true", help="Save annotated result images")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Hàm khởi chạy chính. Trả về mã thoát của tiến trình."""
    args = build_parser().parse_args(argv)

    app_logger.info("==========================================")
    app_logger.info("      FIXED TEMPLATE OMR SCANNER          ")
    app_logger.info("==========================================")

    # 1. Khởi tạo cấu hình
    try:
        overrides = None
        if args.settings:
            overrides = ThresholdOverrides.from_mapping(FileHandler.load_scan_settings(args.settings))

        test_date = datetime.now().strftime('%Y-%m-%d')
        grade_manager = GradeManager(args.key, quiz_name=args.quiz_name, test_date=test_date) if args.key else None

        if not args.image_dir.is_dir():
            raise FileNotFoundError(f"Image folder not found: {args.image_dir}")
        image_files = FileHandler.list_images(args.image_dir)
    except (OSError, ValueError) as e:
        app_logger.critical(f"Initialization failed: {e}")
        return 1

    if not image_files:
        app_logger.warning(f"No image files found in: {args.image_dir}")
        return 1

    result_dir = args.output or (args.image_dir / "results")
    overlay_dir = result_dir / "overlays" if args.save_overlay else None

    # 2. Quét hàng loạt
    rows, errors = scan_files(image_files, overrides, grade_manager=grade_manager,
                              overlay_dir=overlay_dir, max_workers=args.workers)

    # 3. Xuất báo cáo
    if rows:
        FileHandler.save_results_to_csv(rows, result_dir)
        FileHandler.save_results_to_excel(rows, result_dir)

    for img_path, message in errors.items():
        app_logger.error(f"Failed: {img_path.name}: {message}")

    app_logger.info(f"Done. {len(rows)} scanned, {len(errors)} failed.")
    return 0 if not errors else 2


if __name__ == "__main__":
    sys.exit(main())
