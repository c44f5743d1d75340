import math
import sys
from pathlib import Path

import cv2
import numpy as np
import pytest

# Add project root to sys.path so we can import fixed_omr without installing
ROOT_PATH = Path(__file__).resolve().parent.parent
if ROOT_PATH.as_posix() not in sys.path:
    sys.path.insert(0, ROOT_PATH.as_posix())

from fixed_omr.core import TemplateConfig, compute_layout  # noqa: E402

BLACK = (0, 0, 0, 255)
GRAY = (100, 100, 100, 255)
WHITE = 255

CORNER_NAMES = ('top-left', 'top-right', 'bottom-left', 'bottom-right')


def blank_sheet(width: int, height: int) -> np.ndarray:
    """All-white RGBA sheet."""
    return np.full((height, width, 4), WHITE, dtype=np.uint8)


def draw_corners(img: np.ndarray, corners=CORNER_NAMES) -> None:
    """Draw solid registration squares covering the sampled corner regions."""
    height, width = img.shape[:2]
    side = int(math.ceil(min(width, height) * 0.04)) + 2
    origins = {
        'top-left': (0, 0),
        'top-right': (width - side, 0),
        'bottom-left': (0, height - side),
        'bottom-right': (width - side, height - side),
    }
    for name in corners:
        x, y = origins[name]
        cv2.rectangle(img, (x, y), (x + side, y + side), BLACK, -1)


def fill_bubble(img: np.ndarray, bubble, color=BLACK) -> None:
    """Fill a bubble so that every sampled point is covered."""
    center = (int(round(bubble.x)), int(round(bubble.y)))
    cv2.circle(img, center, int(math.ceil(bubble.radius)) + 2, color, -1)


def fill_lower_half(img: np.ndarray, bubble, color=BLACK) -> None:
    """Blacken only the lower half of a bubble (moderate fill, letter still partly visible)."""
    extent = int(math.ceil(bubble.radius)) + 2
    cx, cy = int(round(bubble.x)), int(math.floor(bubble.y))
    cv2.rectangle(img, (cx - extent, cy + 1), (cx + extent, cy + extent), color, -1)


def bubble_for(layout, question_number: int, option: str):
    for bubble in layout:
        if bubble.question_number == question_number and bubble.option == option:
            return bubble
    raise KeyError((question_number, option))


@pytest.fixture
def sheet_size():
    """Default scan resolution used by the end-to-end scenarios."""
    return 1400, 1800


@pytest.fixture
def default_config(sheet_size):
    width, height = sheet_size
    return TemplateConfig.for_image(width, height)


@pytest.fixture
def layout(sheet_size, default_config):
    width, height = sheet_size
    return compute_layout(width, height, default_config)


@pytest.fixture
def make_sheet(sheet_size, layout):
    """
    Factory building a synthetic RGBA answer sheet.

    marks: {question_number: option | [options]} filled solid black.
    corners: which registration squares to draw.
    """
    def _make(marks=None, corners=CORNER_NAMES, fill=fill_bubble, color=BLACK):
        width, height = sheet_size
        img = blank_sheet(width, height)
        draw_corners(img, corners)
        for question_number, options in (marks or {}).items():
            if isinstance(options, str):
                options = [options]
            for option in options:
                fill(img, bubble_for(layout, question_number, option), color)
        return img

    return _make


@pytest.fixture
def write_sheet(tmp_path):
    """Save an RGBA sheet as PNG (OpenCV writes BGRA) and return its path."""
    def _write(img: np.ndarray, name: str = "sheet.png") -> Path:
        path = tmp_path / name
        cv2.imwrite(str(path), cv2.cvtColor(img, cv2.COLOR_RGBA2BGRA))
        return path

    return _write
