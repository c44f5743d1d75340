import math
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional, Union

from fixed_omr.utils.logger import app_logger

# Mẫu phiếu cố định: 20 câu, 3 cột, 7 hàng
DEFAULT_TOTAL_QUESTIONS = 20


@dataclass(frozen=True)
class Thresholds:
    """
    Bộ ngưỡng quyết định tô/không tô (đơn vị: phần trăm).

    - darkness_threshold: tỉ lệ điểm tối tối thiểu để coi ô là đã tô.
    - minimum_fill_percentage: ngưỡng chấp nhận "đáp án yếu" khi không ô nào đạt chuẩn.
    - text_visibility_threshold: chữ in trong ô bị che dưới mức này -> coi là đã tô.
    """
    darkness_threshold: float = 20.0
    minimum_fill_percentage: float = 15.0
    text_visibility_threshold: float = 40.0

    def with_overrides(self, overrides: Union['ThresholdOverrides', 'Thresholds', Mapping[str, Any], None]) -> 'Thresholds':
        """
        Trả về bộ ngưỡng mới: mặc định của config + giá trị override tại thời điểm gọi.
        Không bao giờ sửa đổi đối tượng hiện tại.
        """
        if overrides is None:
            return self
        if isinstance(overrides, Thresholds):
            return overrides
        if not isinstance(overrides, ThresholdOverrides):
            overrides = ThresholdOverrides.from_mapping(overrides)

        changes = {f.name: getattr(overrides, f.name)
                   for f in fields(overrides) if getattr(overrides, f.name) is not None}
        if not changes:
            return self
        return replace(self, **{k: float(v) for k, v in changes.items()})

    @property
    def darkness_ratio(self) -> float:
        return self.darkness_threshold / 100

    @property
    def minimum_fill_ratio(self) -> float:
        return self.minimum_fill_percentage / 100


@dataclass(frozen=True)
class ThresholdOverrides:
    """Giá trị ghi đè ngưỡng cho một lần quét. None = giữ nguyên mặc định."""
    darkness_threshold: Optional[float] = None
    minimum_fill_percentage: Optional[float] = None
    text_visibility_threshold: Optional[float] = None

    # Tên khóa camelCase trong file cài đặt quét cũ
    KEY_ALIASES = {
        'darknessThreshold': 'darkness_threshold',
        'minimumFillPercentage': 'minimum_fill_percentage',
        'textVisibilityThreshold': 'text_visibility_threshold',
    }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'ThresholdOverrides':
        """
        Tạo override từ dict (snake_case hoặc camelCase).
        Các khóa lạ bị bỏ qua.
        """
        values: Dict[str, float] = {}
        valid_names = {f.name for f in fields(cls)}
        for key, value in data.items():
            name = cls.KEY_ALIASES.get(key, key)
            if name not in valid_names:
                app_logger.debug(f"Ignoring unknown threshold key: {key}")
                continue
            if value is None:
                continue
            values[name] = float(value)
        return cls(**values)


@dataclass(frozen=True)
class TemplateConfig:
    """
    Thông số cố định của mẫu phiếu trả lời (20 câu, 4 lựa chọn, 3 cột).
    Được tạo một lần cho mỗi kích thước ảnh và không bao giờ bị thay đổi.
    """
    image_width: int
    image_height: int
    total_questions: int = DEFAULT_TOTAL_QUESTIONS
    questions_per_row: int = 3
    total_rows: int = 7
    grid_top: float = 0.52
    grid_bottom: float = 0.85
    thresholds: Thresholds = field(default_factory=Thresholds)

    OPTIONS = ('A', 'B', 'C', 'D')

    def __post_init__(self):
        if self.image_width <= 0 or self.image_height <= 0:
            raise ValueError(f"Image size must be positive, got {self.image_width}x{self.image_height}")
        if self.total_questions <= 0 or self.questions_per_row <= 0 or self.total_rows <= 0:
            raise ValueError("Question, column and row counts must be positive")
        if self.total_questions > self.questions_per_row * self.total_rows:
            raise ValueError(
                f"Template holds {self.questions_per_row * self.total_rows} questions, "
                f"got total_questions={self.total_questions}"
            )
        if not 0 <= self.grid_top < self.grid_bottom <= 1:
            raise ValueError(f"Invalid answer grid band: [{self.grid_top}, {self.grid_bottom}]")

    @classmethod
    def for_image(cls, image_width: int, image_height: int,
                  thresholds: Optional[Thresholds] = None, **kwargs) -> 'TemplateConfig':
        """Tạo config cho một độ phân giải ảnh cụ thể."""
        config = cls(image_width=int(image_width), image_height=int(image_height),
                     thresholds=thresholds or Thresholds(), **kwargs)
        app_logger.debug(
            f"TemplateConfig created for {config.image_width}x{config.image_height} "
            f"(radius={config.bubble_radius:.2f}px)"
        )
        return config

    # --- Các giá trị dẫn xuất ---
    @property
    def grid_start_y(self) -> int:
        return math.floor(self.image_height * self.grid_top)

    @property
    def grid_end_y(self) -> int:
        return math.floor(self.image_height * self.grid_bottom)

    @property
    def cell_width(self) -> float:
        return self.image_width / self.questions_per_row

    @property
    def cell_height(self) -> float:
        return (self.grid_end_y - self.grid_start_y) / self.total_rows

    @property
    def bubble_radius(self) -> float:
        # Giữ ô tròn nhỏ so với cả chiều ngang ô lẫn chiều cao ảnh
        return min(self.cell_width * 0.06, self.image_height * 0.015)

    @property
    def option_spacing(self) -> float:
        return (self.cell_width * 0.75) / len(self.OPTIONS)

    @property
    def capacity(self) -> int:
        return self.questions_per_row * self.total_rows
