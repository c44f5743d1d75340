from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple, Union

from fixed_omr.utils.logger import app_logger
from .config import TemplateConfig, ThresholdOverrides, Thresholds
from .geometry import get_layout, group_by_question
from .resolver import AnswerKind, QuestionResult, resolve_question
from .sampler import as_pixel_array, sample_bubble

Overrides = Union[ThresholdOverrides, Thresholds, Mapping[str, Any], None]


@dataclass(frozen=True)
class ExtractionResult:
    """
    Kết quả quét một phiếu.

    answers: danh sách đáp án theo thứ tự câu (chữ cái hoặc "" nếu bỏ trống).
    confidence: độ tin cậy trung bình [0, 100].
    details: toàn bộ nhật ký chẩn đoán (để kiểm tra lại / debug).
    """
    answers: List[str]
    confidence: float
    details: List[str]
    questions: Tuple[QuestionResult, ...] = ()
    thresholds: Thresholds = field(default_factory=Thresholds)

    def review_questions(self) -> List[int]:
        """Các câu cần giáo viên kiểm tra lại (đáp án yếu hoặc tô nhiều ô)."""
        return [q.question_number for q in self.questions if q.needs_review]

    @property
    def answered_count(self) -> int:
        return sum(1 for q in self.questions if q.is_answered)


def extract(pixels, image_width: int, image_height: int,
            config: Optional[TemplateConfig] = None,
            overrides: Overrides = None) -> ExtractionResult:
    """
    Hàm chính điều phối quy trình OMR cho một phiếu.

    1. Lấy bảng vị trí ô tròn (cache theo độ phân giải).
    2. Đo tín hiệu 4 ô của từng câu.
    3. Quyết định đáp án từng câu.
    4. Tổng hợp độ tin cậy (câu bỏ trống tính 0).

    Args:
        pixels: buffer RGBA (W x H x 4 byte, theo hàng, gốc trên trái).
        config: mặc định tạo mới theo kích thước ảnh.
        overrides: ngưỡng ghi đè cho lần gọi này, không làm thay đổi config.
    """
    if config is None:
        config = TemplateConfig.for_image(image_width, image_height)

    thresholds = config.thresholds.with_overrides(overrides)
    flat = as_pixel_array(pixels)
    groups = group_by_question(get_layout(image_width, image_height, config))

    questions: List[QuestionResult] = []
    for question_number in range(1, config.total_questions + 1):
        bubbles = groups.get(question_number, [])
        signals = {b.option: sample_bubble(flat, image_width, image_height, b) for b in bubbles}
        questions.append(resolve_question(question_number, signals, thresholds))

    answers = [q.answer for q in questions]
    details = [line for q in questions for line in q.trace]
    total_confidence = sum(q.confidence for q in questions)
    average_confidence = total_confidence / config.total_questions

    for q in questions:
        if q.kind is AnswerKind.AMBIGUOUS:
            app_logger.warning(f"Q{q.question_number}: multiple marks {q.marked_options}, chose {q.answer}")
    app_logger.debug("\n".join(details))
    app_logger.info(
        f"OMR processed successfully. Answered {sum(1 for a in answers if a)}/{config.total_questions}, "
        f"confidence {average_confidence:.1f}%"
    )

    return ExtractionResult(
        answers=answers,
        confidence=average_confidence,
        details=details,
        questions=tuple(questions),
        thresholds=thresholds,
    )
