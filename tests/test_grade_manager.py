"""
Tests for fixed_omr.core.grade_manager

Test Coverage:
- GradeManager.grade_answers(): counts, weighted score, blanks, length mismatch
- GradeManager.format_result()
"""

import pytest

from fixed_omr.core import GradeManager


class TestGradeAnswers:
    """Tests for GradeManager.grade_answers()."""

    def test_all_correct(self):
        manager = GradeManager("ABCD ABCD\nAB")

        stats = manager.grade_answers(list("ABCDABCDAB"))

        assert stats['Correct'] == 10
        assert stats['Wrong'] == 0
        assert stats['Score'] == 10
        assert stats['Percentage'] == 100.0

    def test_blank_answers_count_as_wrong(self):
        manager = GradeManager(['A', 'B', 'C', 'D'])

        stats = manager.grade_answers(['A', '', 'C', 'A'])

        assert stats['Correct'] == 2
        assert stats['Wrong'] == 2
        assert stats['Blank'] == 1
        assert stats['correct_vector'] == [1, 0, 1, 0]

    def test_weighted_points(self):
        manager = GradeManager("AB", question_points=[3, 1])

        stats = manager.grade_answers(['A', 'C'])

        assert stats['Score'] == 3
        assert stats['Percentage'] == 75.0

    def test_short_answer_list_is_padded(self):
        manager = GradeManager("ABC")

        stats = manager.grade_answers(['A'])

        assert stats['correct_vector'] == [1, 0, 0]
        assert stats['Blank'] == 2

    def test_lowercase_answers_match(self):
        manager = GradeManager("abcd")

        assert manager.grade_answers(['a', 'B', 'c', 'D'])['Correct'] == 4

    def test_missing_key_raises(self):
        with pytest.raises(ValueError):
            GradeManager("")

    def test_points_length_mismatch_raises(self):
        with pytest.raises(ValueError):
            GradeManager("ABC", question_points=[1, 2])


class TestFormatResult:
    """Tests for GradeManager.format_result()."""

    def test_row_contains_report_columns(self):
        manager = GradeManager("AB", quiz_name="Quiz 1", test_date="2024-05-01")
        stats = manager.grade_answers(['A', ''])

        row = manager.format_result("student_01", stats, ['A', ''], confidence=47.456)

        assert row["Name"] == "student_01"
        assert row["Quiz"] == "Quiz 1"
        assert row["Date"] == "2024-05-01"
        assert row["Reference"] == "A-"
        assert row["Confidence"] == 47.5
        assert row["Score"] == 1
