import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from fixed_omr.utils.logger import app_logger
from .config import DEFAULT_TOTAL_QUESTIONS, TemplateConfig
from .sampler import as_pixel_array

# Thông số kiểm tra vạch định vị (ô vuông đen ở 4 góc)
CORNER_SIZE_RATIO = 0.04
CORNER_SAMPLE_STEP = 2
CORNER_DARK_BRIGHTNESS = 60
CORNER_MIN_DARKNESS = 0.5
MIN_CORNERS_DETECTED = 2

# Độ phân giải tối thiểu
MIN_WIDTH = 1000
MIN_HEIGHT = 1200


@dataclass(frozen=True)
class QualityReport:
    is_valid: bool
    issues: List[str]
    recommendations: List[str]
    corners_detected: int = 0
    corner_darkness: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class TemplateCompatibility:
    is_compatible: bool
    message: str
    recommendation: str


def _corner_darkness(flat: np.ndarray, image_width: int, image_height: int,
                     center_x: float, center_y: float, size: float) -> float:
    half = size / 2
    count = int(math.floor(size / CORNER_SAMPLE_STEP + 1e-9)) + 1
    steps = -half + CORNER_SAMPLE_STEP * np.arange(count)
    dx, dy = np.meshgrid(steps, steps)

    px = np.floor(center_x + dx).astype(np.int64).ravel()
    py = np.floor(center_y + dy).astype(np.int64).ravel()
    base = (py * image_width + px) * 4
    valid = (px >= 0) & (px < image_width) & (py >= 0) & (py < image_height) & (base + 2 < flat.size)

    idx = base[valid]
    if idx.size == 0:
        return 0.0
    brightness = (flat[idx].astype(np.float64) + flat[idx + 1] + flat[idx + 2]) / 3
    return float(np.count_nonzero(brightness < CORNER_DARK_BRIGHTNESS)) / idx.size


def validate_quality(pixels, image_width: int, image_height: int) -> QualityReport:
    """
    Kiểm tra chất lượng ảnh trước (hoặc sau) khi quét.

    1. Tìm 4 ô vuông định vị ở các góc.
    2. Kiểm tra độ phân giải tối thiểu.

    Chỉ mang tính tư vấn: không chặn extract(), bên gọi tự quyết định chấp nhận/quét lại.
    """
    flat = as_pixel_array(pixels)
    issues: List[str] = []
    recommendations: List[str] = []

    size = min(image_width, image_height) * CORNER_SIZE_RATIO
    half = size / 2
    corners = [
        ('top-left', half, half),
        ('top-right', image_width - half, half),
        ('bottom-left', half, image_height - half),
        ('bottom-right', image_width - half, image_height - half),
    ]

    corner_darkness: Dict[str, float] = {}
    detected = 0
    for name, cx, cy in corners:
        darkness = _corner_darkness(flat, image_width, image_height, cx, cy, size)
        corner_darkness[name] = darkness
        if darkness > CORNER_MIN_DARKNESS:
            detected += 1
        else:
            issues.append(f"registration mark missing at {name}")

    if image_width < MIN_WIDTH or image_height < MIN_HEIGHT:
        issues.append(f"resolution too low ({image_width}x{image_height})")
        recommendations.append("use at least 1400x1800")

    if detected < MIN_CORNERS_DETECTED:
        issues.append("registration marks unclear")
        recommendations.append("ensure the corner squares are printed clearly")

    is_valid = not issues
    if is_valid:
        app_logger.info(f"Image quality OK ({image_width}x{image_height}, {detected}/4 corners)")
    else:
        app_logger.warning(f"Image quality issues: {'; '.join(issues)}")

    return QualityReport(
        is_valid=is_valid,
        issues=issues,
        recommendations=recommendations,
        corners_detected=detected,
        corner_darkness=corner_darkness,
    )


def validate_template_compatibility(total_questions: int,
                                    config: Optional[TemplateConfig] = None) -> TemplateCompatibility:
    """Kiểm tra số câu của bài kiểm tra có vừa với mẫu phiếu cố định hay không."""
    capacity = config.total_questions if config is not None else DEFAULT_TOTAL_QUESTIONS

    if total_questions <= capacity:
        return TemplateCompatibility(
            is_compatible=True,
            message="Quiz is compatible with the fixed answer-sheet template",
            recommendation="Scan with the fixed template using the dual darkness/text detection",
        )
    return TemplateCompatibility(
        is_compatible=False,
        message=f"The fixed template supports only {capacity} questions, this quiz has {total_questions}",
        recommendation=f"Reduce the quiz to {capacity} questions",
    )
