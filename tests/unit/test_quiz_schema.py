"""Unit tests for quiz payload validation."""

import copy

import pytest

from quizwise.core.exceptions import QuizValidationError
from quizwise.quiz.schema import QuizMetadataPatch, QuizPayload, ensure_quiz_payload


class TestEnsureQuizPayload:
    def test_valid_payload(self, sample_quiz_payload):
        quiz = ensure_quiz_payload(sample_quiz_payload)

        assert isinstance(quiz, QuizPayload)
        assert quiz.metadata.level == "XI"
        assert len(quiz.multiple_choice) == 3
        assert quiz.essay[0].rubric.startswith("Mentions")

    def test_level_and_status_any_casing(self, sample_quiz_payload):
        data = copy.deepcopy(sample_quiz_payload)
        data["metadata"]["level"] = "general"
        data["metadata"]["status"] = "PUBLISHED"

        quiz = ensure_quiz_payload(data)

        assert quiz.metadata.level == "General"
        assert quiz.metadata.status == "published"

    def test_essays_optional(self, sample_quiz_payload):
        data = copy.deepcopy(sample_quiz_payload)
        del data["essay"]
        assert ensure_quiz_payload(data).essay == []

    @pytest.mark.parametrize(
        "mutate,path",
        [
            (lambda d: d["multiple_choice"][0].update(options=["a", "b", "c"]), "multiple_choice.0.options"),
            (lambda d: d["multiple_choice"][0].update(options=["a", "b", "c", " "]), "multiple_choice.0.options"),
            (lambda d: d["multiple_choice"][1].update(answer_index=4), "multiple_choice.1.answer_index"),
            (lambda d: d["multiple_choice"][2].update(question=""), "multiple_choice.2.question"),
            (lambda d: d.update(multiple_choice=[]), "multiple_choice"),
            (lambda d: d["metadata"].update(level="IX"), "metadata.level"),
            (lambda d: d["metadata"].update(status="live"), "metadata.status"),
            (lambda d: d.update(surprise=True), "surprise"),
        ],
    )
    def test_invalid_payload_reports_field(self, sample_quiz_payload, mutate, path):
        data = copy.deepcopy(sample_quiz_payload)
        mutate(data)

        with pytest.raises(QuizValidationError) as exc_info:
            ensure_quiz_payload(data)

        assert any(issue.startswith(path) for issue in exc_info.value.issues)
        assert str(exc_info.value).startswith("Quiz validation failed")

    def test_too_many_questions(self, sample_quiz_payload):
        data = copy.deepcopy(sample_quiz_payload)
        data["multiple_choice"] = data["multiple_choice"][:1] * 51
        with pytest.raises(QuizValidationError):
            ensure_quiz_payload(data)

    def test_too_many_essays(self, sample_quiz_payload):
        data = copy.deepcopy(sample_quiz_payload)
        data["essay"] = data["essay"] * 11
        with pytest.raises(QuizValidationError):
            ensure_quiz_payload(data)


class TestMetadataPatch:
    def test_only_set_fields_are_dumped(self):
        patch = QuizMetadataPatch.model_validate({"status": "Archived"})
        assert patch.model_dump(exclude_unset=True) == {"status": "archived"}
