from typing import Iterable

import cv2
import numpy as np

from .extractor import ExtractionResult
from .geometry import BubblePosition
from .resolver import AnswerKind
from .sampler import as_pixel_array

# Màu vẽ (BGR)
COLOR_OUTLINE = (160, 160, 160)
COLOR_CLEAR = (0, 255, 0)
COLOR_WEAK = (0, 165, 255)
COLOR_AMBIGUOUS = (0, 255, 255)

KIND_COLORS = {
    AnswerKind.CLEAR: COLOR_CLEAR,
    AnswerKind.WEAK: COLOR_WEAK,
    AnswerKind.AMBIGUOUS: COLOR_AMBIGUOUS,
}


def render_overlay(pixels, image_width: int, image_height: int,
                   layout: Iterable[BubblePosition], result: ExtractionResult) -> np.ndarray:
    """
    Vẽ kết quả quét lên ảnh để đối chiếu.

    - Mọi ô tròn: viền xám.
    - Ô được chọn: tô màu theo loại kết quả (rõ: xanh lá, yếu: cam, tô nhiều ô: vàng).

    Returns:
        Ảnh BGR (H x W x 3) mới, không sửa buffer gốc.
    """
    flat = as_pixel_array(pixels)
    expected = image_width * image_height * 4
    rgba = np.zeros(expected, dtype=np.uint8)
    n = min(expected, flat.size)
    rgba[:n] = flat[:n]
    image = cv2.cvtColor(rgba.reshape(image_height, image_width, 4), cv2.COLOR_RGBA2BGR)

    selected = {q.question_number: q for q in result.questions if q.is_answered}

    for bubble in layout:
        center = (int(round(bubble.x)), int(round(bubble.y)))
        radius = max(1, int(round(bubble.radius)))
        question = selected.get(bubble.question_number)

        if question is not None and question.answer == bubble.option:
            cv2.circle(image, center, radius, KIND_COLORS[question.kind], -1)
        else:
            cv2.circle(image, center, radius, COLOR_OUTLINE, 1)

    return image
