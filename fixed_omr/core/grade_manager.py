from typing import List, Dict, Any, Optional, Sequence, Union
from fixed_omr.utils import app_logger, OMRUtils


class GradeManager:
    """
    Quản lý logic chấm điểm:
    1. So khớp đáp án quét được với đáp án chuẩn (Key).
    2. Tính điểm theo trọng số từng câu và phần trăm.
    3. Định dạng dữ liệu để xuất báo cáo.
    """

    def __init__(self, key_answer: Union[str, Sequence[str]],
                 question_points: Optional[Sequence[float]] = None,
                 quiz_name: str = "", test_date: str = ""):
        """
        Args:
            key_answer: Đáp án chuẩn (VD: "ABCD..." hoặc ['A', 'B', ...]).
            question_points: Điểm của từng câu. Mặc định mỗi câu 1 điểm.
            quiz_name, test_date: Metadata của bài kiểm tra.
        """
        self.key = OMRUtils.normalize_key(key_answer)
        if not self.key:
            raise ValueError("Answer key is missing or empty")

        if question_points is None:
            question_points = [1.0] * len(self.key)
        if len(question_points) != len(self.key):
            raise ValueError(
                f"question_points has {len(question_points)} entries, key has {len(self.key)}"
            )
        self.question_points = [float(p) for p in question_points]
        self.quiz_name = quiz_name
        self.test_date = test_date

        app_logger.debug(f"GradeManager initialized for quiz '{quiz_name}' (Length: {len(self.key)})")

    @property
    def total_points(self) -> float:
        return sum(self.question_points)

    def grade_answers(self, user_answers: Sequence[str]) -> Dict[str, Any]:
        """
        Chấm điểm chi tiết.

        Câu bỏ trống tính là sai nhưng được đếm riêng (Blank).
        Nếu độ dài không khớp, chấm theo độ dài của Key (câu thiếu -> sai).

        Returns:
            Dict gồm Correct, Wrong, Blank, Score, Percentage, correct_vector.
        """
        n_key = len(self.key)
        if len(user_answers) != n_key:
            app_logger.error(f"Mismatch length! Key: {n_key}, User: {len(user_answers)}")

        answers = [str(a).strip().upper() if a else "" for a in list(user_answers)[:n_key]]
        answers.extend([""] * (n_key - len(answers)))

        correct_vector = [1 if answers[i] == self.key[i] else 0 for i in range(n_key)]
        correct_count = sum(correct_vector)
        blank_count = sum(1 for a in answers if not a)
        score = sum(p for p, ok in zip(self.question_points, correct_vector) if ok)
        percentage = (score / self.total_points * 100) if self.total_points > 0 else 0.0

        app_logger.info(f"Grading finished. Score: {score:g}/{self.total_points:g} ({percentage:.1f}%)")
        return {
            'Correct': correct_count,
            'Wrong': n_key - correct_count,
            'Blank': blank_count,
            'Score': score,
            'Percentage': round(percentage, 2),
            'correct_vector': correct_vector,
        }

    def format_result(self, base_name: str, stats: Dict[str, Any], answers_list: Sequence[str],
                      confidence: Optional[float] = None) -> Dict[str, Any]:
        """Tạo dictionary kết quả để lưu vào Excel/CSV."""
        row_dict = {
            "Date": self.test_date,
            "Quiz": self.quiz_name,
            "Name": base_name,
            "Score": stats['Score'],
            "Percentage": stats['Percentage'],
            "Correct": stats['Correct'],
            "Wrong": stats['Wrong'],
            "Blank": stats['Blank'],
            "Reference": OMRUtils.answers_to_string(answers_list),
        }
        if confidence is not None:
            row_dict["Confidence"] = round(confidence, 1)
        return row_dict
