"""
Package Core: Chứa logic nghiệp vụ cốt lõi của engine OMR mẫu cố định.
Bao gồm:
- config: TemplateConfig, Thresholds (ngưỡng mặc định + ghi đè).
- geometry: Tính vị trí ô tròn.
- sampler: Đo độ đậm / độ hiển thị chữ của từng ô.
- resolver: Quyết định đáp án từng câu.
- extractor: Điều phối quét toàn phiếu.
- quality: Kiểm tra chất lượng ảnh.
- GradeManager: Chấm điểm theo đáp án chuẩn.
"""

from .config import TemplateConfig, Thresholds, ThresholdOverrides
from .geometry import BubblePosition, compute_layout, get_layout, group_by_question
from .sampler import OptionSignal, sample_bubble
from .resolver import AnswerKind, QuestionResult, resolve_question
from .extractor import ExtractionResult, extract
from .quality import QualityReport, TemplateCompatibility, validate_quality, validate_template_compatibility
from .grade_manager import GradeManager
from .visualizer import render_overlay

__all__ = [
    'TemplateConfig', 'Thresholds', 'ThresholdOverrides',
    'BubblePosition', 'compute_layout', 'get_layout', 'group_by_question',
    'OptionSignal', 'sample_bubble',
    'AnswerKind', 'QuestionResult', 'resolve_question',
    'ExtractionResult', 'extract',
    'QualityReport', 'TemplateCompatibility', 'validate_quality', 'validate_template_compatibility',
    'GradeManager', 'render_overlay',
]
