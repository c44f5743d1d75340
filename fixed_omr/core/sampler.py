import math
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

import numpy as np

from .geometry import BubblePosition

# --- CÁC HẰNG SỐ LẤY MẪU ---
SAMPLE_STEP = 0.2           # Bước lưới dưới pixel (lấy mẫu dày gấp 25 lần)
DARK_BRIGHTNESS = 80        # Độ sáng < 80 -> điểm tối (vết tô)
PRINT_BRIGHTNESS = 150      # Độ sáng >= 150 -> nền giấy, chữ in chưa bị che
TEXT_ZONE_RATIO = 0.4       # Vùng chữ in: bán kính 0.4 * R quanh tâm


@dataclass(frozen=True)
class OptionSignal:
    """
    Tín hiệu đo được của một ô tròn trong một lần quét.

    darkness: tỉ lệ điểm tối trong ô [0, 1].
    text_visibility: % vùng chữ in ở tâm ô còn nhìn thấy (không bị vết bút che) [0, 100].
    """
    darkness: float
    text_visibility: float
    sample_count: int = 0
    text_sample_count: int = 0


def as_pixel_array(pixels) -> np.ndarray:
    """
    Chuẩn hóa buffer RGBA (bytes, bytearray, memoryview hoặc ndarray HxWx4)
    thành mảng 1 chiều, thứ tự hàng, gốc tọa độ ở góc trên trái.
    """
    if isinstance(pixels, (bytes, bytearray, memoryview)):
        arr = np.frombuffer(pixels, dtype=np.uint8)
    else:
        arr = np.asarray(pixels)
    return arr.reshape(-1)


def _axis_offsets(radius: float) -> np.ndarray:
    count = int(math.floor(2 * radius / SAMPLE_STEP + 1e-9)) + 1
    return -radius + SAMPLE_STEP * np.arange(count)


@lru_cache(maxsize=64)
def _disc_offsets(radius: float) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Lưới điểm lấy mẫu bên trong hình tròn bán kính `radius`.
    Được cache theo bán kính vì mọi ô trên cùng một độ phân giải có cùng R.
    """
    steps = _axis_offsets(radius)
    dx, dy = np.meshgrid(steps, steps)
    distance = np.sqrt(dx * dx + dy * dy)
    inside = distance <= radius

    dx = dx[inside]
    dy = dy[inside]
    in_text_zone = distance[inside] <= radius * TEXT_ZONE_RATIO

    for arr in (dx, dy, in_text_zone):
        arr.setflags(write=False)
    return dx, dy, in_text_zone


def sample_bubble(pixels, image_width: int, image_height: int, bubble: BubblePosition) -> OptionSignal:
    """
    Đo độ đậm và độ hiển thị chữ của một ô tròn.

    Các điểm nằm ngoài ảnh (hoặc ngoài buffer) bị bỏ qua, không tính vào mẫu.
    Ô không có điểm hợp lệ nào -> darkness 0, text_visibility 100 ("không tô").
    """
    flat = pixels if isinstance(pixels, np.ndarray) and pixels.ndim == 1 else as_pixel_array(pixels)
    dx, dy, in_text_zone = _disc_offsets(float(bubble.radius))

    px = np.floor(bubble.x + dx).astype(np.int64)
    py = np.floor(bubble.y + dy).astype(np.int64)
    base = (py * image_width + px) * 4

    valid = (px >= 0) & (px < image_width) & (py >= 0) & (py < image_height) & (base + 2 < flat.size)
    idx = base[valid]
    total = int(idx.size)
    if total == 0:
        return OptionSignal(darkness=0.0, text_visibility=100.0)

    r = flat[idx].astype(np.float64)
    g = flat[idx + 1].astype(np.float64)
    b = flat[idx + 2].astype(np.float64)
    brightness = (r + g + b) / 3

    darkness = float(np.count_nonzero(brightness < DARK_BRIGHTNESS)) / total

    text_brightness = brightness[in_text_zone[valid]]
    text_total = int(text_brightness.size)
    if text_total > 0:
        text_visibility = float(np.count_nonzero(text_brightness >= PRINT_BRIGHTNESS)) / text_total * 100
    else:
        text_visibility = 100.0

    return OptionSignal(
        darkness=darkness,
        text_visibility=text_visibility,
        sample_count=total,
        text_sample_count=text_total,
    )
