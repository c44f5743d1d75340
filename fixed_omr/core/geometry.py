from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Tuple

from fixed_omr.utils.logger import app_logger
from .config import TemplateConfig


@dataclass(frozen=True)
class BubblePosition:
    """Một ô tròn đáp án trên phiếu (tọa độ pixel tuyệt đối)."""
    x: float
    y: float
    radius: float
    option: str
    question_number: int


def compute_layout(image_width: int, image_height: int, config: TemplateConfig) -> List[BubblePosition]:
    """
    Tính vị trí của tất cả các ô tròn trên lưới đáp án.

    Lưới nằm trong dải [52%, 85%] chiều cao ảnh, chia thành total_rows hàng
    và questions_per_row cột. Cột được xếp từ PHẢI sang TRÁI (cột 0 nằm
    ngoài cùng bên phải) giống bản in của phiếu.

    Returns:
        List phẳng các BubblePosition theo thứ tự hàng -> cột -> lựa chọn,
        dài đúng total_questions * 4.
    """
    if (image_width, image_height) != (config.image_width, config.image_height):
        app_logger.warning(
            f"Layout requested for {image_width}x{image_height} but config was built for "
            f"{config.image_width}x{config.image_height}. Using the requested size."
        )
        config = TemplateConfig.for_image(
            image_width, image_height,
            thresholds=config.thresholds,
            total_questions=config.total_questions,
            questions_per_row=config.questions_per_row,
            total_rows=config.total_rows,
            grid_top=config.grid_top,
            grid_bottom=config.grid_bottom,
        )

    cell_w = config.cell_width
    cell_h = config.cell_height
    radius = config.bubble_radius
    spacing = config.option_spacing
    last_col = config.questions_per_row - 1

    positions: List[BubblePosition] = []
    for row in range(config.total_rows):
        for col in range(config.questions_per_row):
            question_index = row * config.questions_per_row + col
            if question_index >= config.total_questions:
                break

            cell_x = (last_col - col) * cell_w
            cell_y = config.grid_start_y + row * cell_h

            # Các lựa chọn nằm ở 60% chiều cao ô, trải đều trên 75% chiều ngang giữa ô
            options_y = cell_y + cell_h * 0.6
            options_start_x = cell_x + cell_w * 0.125

            for option_index, option in enumerate(config.OPTIONS):
                positions.append(BubblePosition(
                    x=options_start_x + (option_index + 0.5) * spacing,
                    y=options_y,
                    radius=radius,
                    option=option,
                    question_number=question_index + 1,
                ))

    app_logger.debug(f"Computed {len(positions)} bubble positions for {image_width}x{image_height}")
    return positions


@lru_cache(maxsize=32)
def _cached_layout(image_width: int, image_height: int, config: TemplateConfig) -> Tuple[BubblePosition, ...]:
    return tuple(compute_layout(image_width, image_height, config))


def get_layout(image_width: int, image_height: int, config: TemplateConfig) -> Tuple[BubblePosition, ...]:
    """
    Bảng vị trí được cache theo (kích thước ảnh, config).
    Kết quả là tuple bất biến nên dùng chung an toàn giữa các thread.
    """
    return _cached_layout(int(image_width), int(image_height), config)


def group_by_question(layout) -> Dict[int, List[BubblePosition]]:
    """Gom các ô tròn theo số câu hỏi (giữ thứ tự A -> D)."""
    groups: Dict[int, List[BubblePosition]] = {}
    for bubble in layout:
        groups.setdefault(bubble.question_number, []).append(bubble)
    return groups
