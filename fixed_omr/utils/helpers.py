from typing import Iterable, List, Mapping, Sequence, Union


class OMRUtils:
    """
    Class tĩnh chứa các hàm bổ trợ cho OMR (không phụ thuộc vào I/O).
    """

    @staticmethod
    def summarize_signals(signals: Mapping[str, object], attribute: str) -> str:
        """
        Tóm tắt một tín hiệu của các lựa chọn thành chuỗi dễ đọc.

        VD: darkness -> "A:2.1% | B:87.4% | C:0.0% | D:1.3%"
            text_visibility -> "A:100.0% | B:3.2% | ..."
        """
        parts = []
        for option, signal in signals.items():
            value = getattr(signal, attribute)
            # darkness lưu ở dạng tỉ lệ [0, 1], text_visibility đã là phần trăm
            percent = value * 100 if attribute == 'darkness' else value
            parts.append(f"{option}:{percent:.1f}%")
        return ' | '.join(parts)

    @staticmethod
    def answers_to_string(answers: Iterable[str], blank: str = '-') -> str:
        """Nối danh sách đáp án thành chuỗi (câu bỏ trống -> ký tự `blank`)."""
        return ''.join(a if a else blank for a in answers)

    @staticmethod
    def normalize_key(key: Union[str, Sequence[str]]) -> List[str]:
        """
        Chuẩn hóa đáp án chuẩn thành list chữ in hoa.
        Chấp nhận chuỗi "ABCD..." (bỏ khoảng trắng, xuống dòng) hoặc list.
        """
        if not key:
            return []
        if isinstance(key, str):
            return [ch.upper() for ch in ''.join(key.split())]
        return [str(k).strip().upper() for k in key]
