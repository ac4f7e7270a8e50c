"""Unit tests for attempt snapshot parsing."""

from trustreport.models.exam_attempt import ExamAttempt
from trustreport.utils.constants import UNCATEGORIZED_LABEL


class TestAttemptSnapshot:

    def test_null_question_text_is_tolerated(self):
        # Arrange
        document = {
            "_id": "attempt-1",
            "exam_id": "exam-1",
            "questions": [
                {"id": "q1", "question_text": None, "category": "Honestidad"},
                {"id": "q2", "question_text": "Pregunta 2"},
            ],
            "answers": {"q1": "Nunca", "q2": "A veces"},
        }

        # Act
        attempt = ExamAttempt.from_mongo(document)

        # Assert
        assert attempt.questions[0].question_text == ""
        assert attempt.questions[0].category_name == "Honestidad"
        assert attempt.questions[1].question_text == "Pregunta 2"
        assert attempt.questions[1].category_name == UNCATEGORIZED_LABEL

    def test_legacy_field_names_are_folded(self):
        attempt = ExamAttempt.from_mongo({
            "_id": "attempt-1",
            "questions": [{
                "question_id": "q1",
                "categories": {"name": "Lealtad"},
                "media_poblacional_pregunta": 1.25,
                "userAnswer": "Frecuentemente",
            }],
        })

        question = attempt.questions[0]
        assert question.id == "q1"
        assert question.category_name == "Lealtad"
        assert question.national_average == 1.25
        assert question.user_answer == "Frecuentemente"
