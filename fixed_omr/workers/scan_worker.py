from concurrent.futures import ThreadPoolExecutor
from threading import Thread
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union
from pathlib import Path
import time

from fixed_omr.core import (
    GradeManager, TemplateConfig, ThresholdOverrides, Thresholds,
    extract, get_layout, render_overlay, validate_quality,
)
from fixed_omr.utils import app_logger, FileHandler, OMRUtils

FileCallback = Callable[[Path, Optional[Dict[str, Any]], Optional[str]], None]
CompleteCallback = Callable[[List[Dict[str, Any]]], None]
Overrides = Union[ThresholdOverrides, Mapping[str, Any], None]


def scan_file(img_path: Path,
              overrides: Overrides = None,
              thresholds: Optional[Thresholds] = None,
              grade_manager: Optional[GradeManager] = None,
              overlay_dir: Optional[Path] = None) -> Dict[str, Any]:
    """
    Quét một file ảnh phiếu trả lời và trả về một dòng kết quả.

    1. Đọc ảnh -> RGBA.
    2. Kiểm tra chất lượng (chỉ ghi nhận, không chặn).
    3. Trích xuất đáp án.
    4. Chấm điểm (nếu có Key) và lưu ảnh đối chiếu (nếu có overlay_dir).
    """
    img_path = Path(img_path)
    pixels, width, height = FileHandler.load_image_rgba(img_path)

    quality = validate_quality(pixels, width, height)
    config = TemplateConfig.for_image(width, height, thresholds=thresholds)
    result = extract(pixels, width, height, config, overrides)

    if grade_manager is not None:
        stats = grade_manager.grade_answers(result.answers)
        row = grade_manager.format_result(img_path.stem, stats, result.answers, result.confidence)
    else:
        row = {
            "Name": img_path.stem,
            "Reference": OMRUtils.answers_to_string(result.answers),
            "Confidence": round(result.confidence, 1),
        }

    row["Valid"] = quality.is_valid
    row["Issues"] = "; ".join(quality.issues)
    row["Review"] = ",".join(str(n) for n in result.review_questions())

    if overlay_dir is not None:
        layout = get_layout(width, height, config)
        overlay = render_overlay(pixels, width, height, layout, result)
        FileHandler.save_image(overlay, Path(overlay_dir) / f"{img_path.stem}.png")

    return row


class ScanWorker(Thread):
    """
    Worker Thread chạy ngầm để quét danh sách ảnh.
    Giúp giao diện / tiến trình gọi không bị treo khi xử lý nhiều phiếu.

    Callback được gọi TRÊN thread của worker; bên gọi tự chuyển về thread giao diện nếu cần.
    """

    def __init__(self,
                 image_files: List[Path],
                 overrides: Overrides = None,
                 thresholds: Optional[Thresholds] = None,
                 grade_manager: Optional[GradeManager] = None,
                 overlay_dir: Optional[Path] = None,
                 on_file_scanned: Optional[FileCallback] = None,
                 on_complete: Optional[CompleteCallback] = None):

        super().__init__()
        self.image_files = [Path(p) for p in image_files]
        self.overrides = overrides
        self.thresholds = thresholds
        self.grade_manager = grade_manager
        self.overlay_dir = overlay_dir
        self.on_file_scanned = on_file_scanned
        self.on_complete = on_complete
        self.results: List[Dict[str, Any]] = []

        # Đặt thread là daemon để nó tự động tắt khi chương trình chính tắt
        self.daemon = True

    def run(self):
        total_files = len(self.image_files)
        app_logger.info(f"Worker started. Processing {total_files} files...")

        start_time = time.time()
        for index, img_path in enumerate(self.image_files):
            row = None
            error_msg = None

            try:
                app_logger.debug(f"[{index+1}/{total_files}] Processing: {img_path.name}")
                row = scan_file(img_path, self.overrides, self.thresholds,
                                grade_manager=self.grade_manager, overlay_dir=self.overlay_dir)
                self.results.append(row)
            except Exception as e:
                # Một phiếu lỗi không được làm dừng cả lô
                error_msg = str(e)
                app_logger.error(f"Error processing {img_path.name}: {error_msg}")

            if self.on_file_scanned is not None:
                self.on_file_scanned(img_path, row, error_msg)

        elapsed_time = time.time() - start_time
        app_logger.info(f"Worker finished. Success: {len(self.results)}/{total_files}. Time: {elapsed_time:.2f}s")

        if self.on_complete is not None:
            self.on_complete(self.results)


def scan_files(image_files: List[Path],
               overrides: Overrides = None,
               thresholds: Optional[Thresholds] = None,
               grade_manager: Optional[GradeManager] = None,
               overlay_dir: Optional[Path] = None,
               max_workers: int = 4) -> Tuple[List[Dict[str, Any]], Dict[Path, str]]:
    """
    Quét song song nhiều phiếu. Engine không có trạng thái chung nên mỗi phiếu chạy độc lập.

    Returns:
        (các dòng kết quả theo đúng thứ tự file đầu vào, dict lỗi theo file)
    """
    paths = [Path(p) for p in image_files]
    rows: List[Dict[str, Any]] = []
    errors: Dict[Path, str] = {}

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        futures = [(p, pool.submit(scan_file, p, overrides, thresholds, grade_manager, overlay_dir)) for p in paths]
        for img_path, future in futures:
            try:
                rows.append(future.result())
            except Exception as e:
                errors[img_path] = str(e)
                app_logger.error(f"Error processing {img_path.name}: {e}")

    app_logger.info(f"Batch finished. Success: {len(rows)}/{len(paths)}")
    return rows, errors
