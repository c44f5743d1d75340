"""
Fixed-template OMR: chấm phiếu trắc nghiệm 20 câu (A-D, 3 cột) từ ảnh đã căn chỉnh.
"""

from .core import (
    TemplateConfig, Thresholds, ThresholdOverrides,
    BubblePosition, compute_layout,
    OptionSignal, sample_bubble,
    AnswerKind, QuestionResult, resolve_question,
    ExtractionResult, extract,
    QualityReport, validate_quality, validate_template_compatibility,
)

__version__ = "1.0.0"

__all__ = [
    'TemplateConfig', 'Thresholds', 'ThresholdOverrides',
    'BubblePosition', 'compute_layout',
    'OptionSignal', 'sample_bubble',
    'AnswerKind', 'QuestionResult', 'resolve_question',
    'ExtractionResult', 'extract',
    'QualityReport', 'validate_quality', 'validate_template_compatibility',
]
