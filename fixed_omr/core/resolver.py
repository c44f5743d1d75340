from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Tuple

from fixed_omr.utils.helpers import OMRUtils
from .config import Thresholds
from .sampler import OptionSignal


class AnswerKind(Enum):
    """Kết quả phân loại của một câu hỏi."""
    CLEAR = "clear"              # Đúng một ô được tô rõ
    WEAK = "weak"                # Không ô nào đạt chuẩn, chọn ô đậm nhất vượt min fill
    AMBIGUOUS = "ambiguous"      # Tô nhiều ô -> chọn ô có điểm tổng hợp cao nhất
    UNANSWERED = "unanswered"    # Bỏ trống


@dataclass(frozen=True)
class QuestionResult:
    question_number: int
    kind: AnswerKind
    answer: str = ""
    confidence: float = 0.0
    marked_options: Tuple[str, ...] = ()
    signals: Mapping[str, OptionSignal] = field(default_factory=dict)
    trace: Tuple[str, ...] = ()

    @property
    def is_answered(self) -> bool:
        return self.kind is not AnswerKind.UNANSWERED

    @property
    def needs_review(self) -> bool:
        return self.kind in (AnswerKind.WEAK, AnswerKind.AMBIGUOUS)


def is_marked(signal: OptionSignal, thresholds: Thresholds) -> bool:
    """
    Quy tắc kép: ô được coi là đã tô nếu đủ đậm HOẶC chữ in bên trong bị che.
    """
    return (signal.darkness > thresholds.darkness_ratio or
            signal.text_visibility < thresholds.text_visibility_threshold)


def combined_score(signal: OptionSignal) -> float:
    """Điểm tổng hợp dùng để phân xử khi tô nhiều ô."""
    return signal.darkness + (100 - signal.text_visibility) / 100


def resolve_question(question_number: int, signals: Mapping[str, OptionSignal],
                     thresholds: Thresholds) -> QuestionResult:
    """
    Chọn đáp án (0 hoặc 1 lựa chọn) cho một câu từ tín hiệu của 4 ô.

    Logic xử lý:
    1. Không ô nào được tô -> lấy ô đậm nhất, chấp nhận nếu vượt min fill (WEAK), ngược lại bỏ trống.
    2. Đúng 1 ô -> CLEAR, độ tin cậy kết hợp độ đậm và mức che chữ (tối đa 95).
    3. Nhiều ô -> AMBIGUOUS, chọn ô có điểm tổng hợp cao nhất, ghi lại để kiểm tra tay.
    """
    options = list(signals.keys())
    trace = [
        f"Q{question_number} darkness: {OMRUtils.summarize_signals(signals, 'darkness')}",
        f"Q{question_number} text: {OMRUtils.summarize_signals(signals, 'text_visibility')}",
    ]
    marked = tuple(opt for opt in options if is_marked(signals[opt], thresholds))
    signal_map: Dict[str, OptionSignal] = dict(signals)

    # Case 1: Không có ô nào đạt chuẩn
    if not marked:
        if not options:
            trace.append(f"Q{question_number}: no bubbles sampled")
            return QuestionResult(question_number, AnswerKind.UNANSWERED,
                                  signals=signal_map, trace=tuple(trace))

        # max() giữ phần tử đầu tiên khi bằng nhau
        best = max(options, key=lambda opt: signals[opt].darkness)
        best_darkness = signals[best].darkness
        if best_darkness > thresholds.minimum_fill_ratio:
            trace.append(f"Q{question_number}: weak answer {best} (darkness {best_darkness * 100:.1f}%)")
            return QuestionResult(question_number, AnswerKind.WEAK, answer=best,
                                  confidence=best_darkness * 60,
                                  signals=signal_map, trace=tuple(trace))

        trace.append(f"Q{question_number}: no answer")
        return QuestionResult(question_number, AnswerKind.UNANSWERED,
                              signals=signal_map, trace=tuple(trace))

    # Case 2: Đúng một ô
    if len(marked) == 1:
        choice = marked[0]
        signal = signals[choice]
        confidence = min(95.0, signal.darkness * 50 + (100 - signal.text_visibility) * 0.5)
        trace.append(f"Q{question_number}: clear answer {choice}")
        return QuestionResult(question_number, AnswerKind.CLEAR, answer=choice,
                              confidence=confidence, marked_options=marked,
                              signals=signal_map, trace=tuple(trace))

    # Case 3: Tô nhiều ô -> chọn ô rõ nhất
    best = max(marked, key=lambda opt: combined_score(signals[opt]))
    trace.append(f"Q{question_number}: multiple marks {', '.join(marked)} -> chose {best}")
    return QuestionResult(question_number, AnswerKind.AMBIGUOUS, answer=best,
                          confidence=signals[best].darkness * 75, marked_options=marked,
                          signals=signal_map, trace=tuple(trace))
