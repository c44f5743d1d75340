import json
import cv2
import numpy as np
import pandas as pd
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple
from .logger import app_logger

# Các nhóm cài đặt trong file cài đặt quét nâng cao chứa ngưỡng của engine
SETTINGS_SECTIONS = ('traditional', 'hiddenLetters')

IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.bmp', '.tif', '.tiff')

# Thứ tự cột trong bảng tổng hợp: thông tin bài, điểm, chuỗi đáp án, rồi các cột cần kiểm tra tay
RESULT_COLUMNS = (
    'Date', 'Quiz', 'Name', 'Score', 'Percentage', 'Correct', 'Wrong', 'Blank',
    'Reference', 'Confidence', 'Valid', 'Review', 'Issues',
)
TEXT_COLUMNS = ('Review', 'Issues')


class FileHandler:
    """
    Class tĩnh chuyên trách các tác vụ Input/Output (Đọc/Ghi file).
    Engine OMR không tự đọc/ghi file; mọi I/O đi qua đây.
    """

    @staticmethod
    def load_json(file_path: Path) -> Dict[str, Any]:
        """
        Tải dữ liệu từ file JSON an toàn.

        Raises:
            FileNotFoundError: file không tồn tại.
            ValueError: lỗi cú pháp JSON.
        """
        if not isinstance(file_path, Path):
            file_path = Path(file_path)

        resolved_path = file_path.resolve()
        if not resolved_path.exists():
            app_logger.error(f"File not found: {resolved_path}")
            raise FileNotFoundError(f"File not found: {resolved_path}")

        try:
            with open(resolved_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            app_logger.critical(f"JSON Syntax Error in {file_path}: {e}")
            raise ValueError(f"Invalid JSON in {file_path.name}") from e

        app_logger.debug(f"Loaded JSON successfully: {resolved_path.name}")
        return data

    @staticmethod
    def load_scan_settings(file_path: Path) -> Dict[str, Any]:
        """
        Tải ngưỡng quét từ file cài đặt.

        Chấp nhận object phẳng ({"darknessThreshold": 25, ...}) hoặc dạng lồng
        theo nhóm như màn hình cài đặt nâng cao lưu ({"traditional": {...}, "hiddenLetters": {...}}).
        Trả về dict phẳng để đưa vào ThresholdOverrides.from_mapping().
        """
        data = FileHandler.load_json(file_path)
        if not isinstance(data, dict):
            raise ValueError(f"Scan settings must be a JSON object: {file_path}")

        flat: Dict[str, Any] = {k: v for k, v in data.items() if not isinstance(v, dict)}
        for section in SETTINGS_SECTIONS:
            section_data = data.get(section)
            if isinstance(section_data, dict):
                flat.update(section_data)
        return flat

    @staticmethod
    def load_image_rgba(file_path: Path) -> Tuple[np.ndarray, int, int]:
        """
        Đọc ảnh thành buffer RGBA (H x W x 4, uint8).

        Dùng np.fromfile -> cv2.imdecode vì cv2.imread không đọc được đường dẫn Unicode trên Windows.

        Returns:
            (pixels, width, height)

        Raises:
            FileNotFoundError: file không tồn tại.
            ValueError: file rỗng hoặc không giải mã được.
        """
        file_path = Path(file_path)
        if not file_path.exists():
            app_logger.error(f"Image not found: {file_path}")
            raise FileNotFoundError(f"Image not found: {file_path}")

        stream = np.fromfile(str(file_path), np.uint8)
        if stream.size == 0:
            raise ValueError(f"Image file is empty: {file_path.name}")

        try:
            img = cv2.imdecode(stream, cv2.IMREAD_UNCHANGED)
        except cv2.error as e:
            raise ValueError(f"Cannot decode image file: {file_path.name} ({e})") from e
        if img is None:
            raise ValueError(f"Cannot decode image file: {file_path.name}")

        if img.dtype != np.uint8:
            img = cv2.convertScaleAbs(img, alpha=255.0 / max(1, int(img.max())))

        if img.ndim == 2:
            rgba = cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
        elif img.shape[2] == 3:
            rgba = cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
        else:
            rgba = cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)

        height, width = rgba.shape[:2]
        app_logger.debug(f"Loaded image {file_path.name}: {width}x{height}")
        return np.ascontiguousarray(rgba), width, height

    @staticmethod
    def list_images(image_dir: Path) -> List[Path]:
        """Liệt kê các file ảnh trong thư mục (sắp xếp theo tên)."""
        image_dir = Path(image_dir)
        return sorted(p for p in image_dir.iterdir()
                      if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS)

    @staticmethod
    def save_image(image: np.ndarray, save_path: Path) -> bool:
        """
        Lưu ảnh BGR xuống đĩa.
        Dùng cv2.imencode để hỗ trợ đường dẫn Unicode (Windows).
        """
        save_path = Path(save_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)

        success, buffer = cv2.imencode(save_path.suffix or ".png", image)
        if not success:
            app_logger.error(f"Failed to encode image for saving: {save_path.name}")
            return False

        with open(save_path, "wb") as f:
            f.write(buffer)
        app_logger.debug(f"Saved image: {save_path.name}")
        return True

    @staticmethod
    def _results_frame(results: List[Dict[str, Any]]) -> pd.DataFrame:
        """
        Chuẩn hoá các dòng kết quả quét thành DataFrame để xuất báo cáo.

        - Cột đã biết theo thứ tự RESULT_COLUMNS, cột lạ xếp sau cùng.
        - Valid luôn là bool; Review/Issues luôn là chuỗi (rỗng khi phiếu không có vấn đề).
        """
        df = pd.DataFrame(results)
        known = [c for c in RESULT_COLUMNS if c in df.columns]
        df = df[known + [c for c in df.columns if c not in RESULT_COLUMNS]]

        if 'Date' in df.columns:
            df['Date'] = df['Date'].astype(str)
        if 'Valid' in df.columns:
            df['Valid'] = df['Valid'].eq(True)
        for col in TEXT_COLUMNS:
            if col in df.columns:
                df[col] = df[col].fillna("").astype(str)
        return df

    @staticmethod
    def _summary_path(result_dir: Path, file_name_prefix: str, suffix: str) -> Path:
        """<result_dir>/<prefix>_summary<suffix>; prefix mặc định là tên thư mục kết quả."""
        result_dir = Path(result_dir)
        result_dir.mkdir(parents=True, exist_ok=True)
        prefix = file_name_prefix if file_name_prefix else result_dir.name
        return result_dir / f"{prefix}_summary{suffix}"

    @staticmethod
    def save_results_to_excel(results: List[Dict[str, Any]], result_dir: Path, file_name_prefix: str = "") -> Optional[Path]:
        """
        Ghi bảng tổng hợp kết quả quét ra Excel, nối vào file cũ nếu có.
        Các phiếu cần kiểm tra tay (Review khác rỗng hoặc Valid = False) được đếm trong log.
        """
        if not results:
            app_logger.warning("No scan results to export.")
            return None

        excel_path = FileHandler._summary_path(result_dir, file_name_prefix, ".xlsx")
        df_scan = FileHandler._results_frame(results)

        if excel_path.exists():
            try:
                df_scan = FileHandler._results_frame(
                    pd.read_excel(excel_path).to_dict('records') + df_scan.to_dict('records'))
            except (ValueError, OSError) as e:
                app_logger.warning(f"Existing summary {excel_path.name} is unreadable ({e}); rewriting it.")

        df_scan.to_excel(excel_path, index=False)
        app_logger.info(f"Excel summary: {excel_path} ({len(results)} new rows, "
                        f"{FileHandler._flagged_count(results)} flagged for review)")
        return excel_path

    @staticmethod
    def save_results_to_csv(results: List[Dict[str, Any]], result_dir: Path, file_name_prefix: str = "") -> Optional[Path]:
        """
        Ghi bảng tổng hợp kết quả quét ra CSV (utf-8-sig để Excel mở đúng tiếng Việt).
        File đã có thì ghi tiếp theo đúng thứ tự cột của header cũ.
        """
        if not results:
            app_logger.warning("No scan results to export.")
            return None

        csv_path = FileHandler._summary_path(result_dir, file_name_prefix, ".csv")
        df_scan = FileHandler._results_frame(results)

        if csv_path.exists():
            header = list(pd.read_csv(csv_path, nrows=0, encoding='utf-8-sig').columns)
            extra = [c for c in df_scan.columns if c not in header]
            if extra:
                app_logger.warning(f"Columns {extra} are not in {csv_path.name} and were dropped.")
            df_scan.reindex(columns=header).to_csv(csv_path, mode='a', index=False, header=False,
                                                   encoding='utf-8-sig')
        else:
            df_scan.to_csv(csv_path, index=False, encoding='utf-8-sig')

        app_logger.info(f"CSV summary: {csv_path.name} ({len(results)} new rows, "
                        f"{FileHandler._flagged_count(results)} flagged for review)")
        return csv_path

    @staticmethod
    def _flagged_count(results: List[Dict[str, Any]]) -> int:
        return sum(1 for row in results if row.get('Review') or row.get('Valid') is False)
