from typing import Dict, Any, List, NamedTuple
import math


OBJECTIVE = "objective"


class GradeResult(NamedTuple):
    question_scores: Dict[str, float | None]
    mcq_score: float
    total_marks: float
    total_score: int


def _type_of(q) -> str:
    # accept both the QuestionType enum and plain strings
    return getattr(q.type, "value", q.type)


def percentage(awarded: float, total_marks: float) -> int:
    if not total_marks:
        return 0
    # half-up, so 12.5 -> 13
    return int(math.floor(100 * awarded / total_marks + 0.5))


def grade_submission(answers: Dict[str, Any], questions: List[Any]) -> GradeResult:
    """
    Grade the given answers against the provided questions.
    - answers: mapping question_id (str) -> answer text
    - questions: list of Question objects (must have id, type, correct_answer, marks)

    Objective questions get full marks on an exact string match and zero otherwise.
    Free-response questions score None here (marked later by a person) but their
    marks still count towards the total.
    """
    question_scores: Dict[str, float | None] = {}
    awarded = 0.0
    total_marks = 0.0

    for q in questions:
        qid_str = str(q.id)
        marks = float(q.marks or 0)
        total_marks += marks
        if _type_of(q) == OBJECTIVE:
            ans = answers.get(qid_str)
            score = 0.0
            if isinstance(ans, str) and q.correct_answer is not None and ans == q.correct_answer:
                score = marks
            question_scores[qid_str] = score
            awarded += score
        else:
            question_scores[qid_str] = None

    return GradeResult(question_scores, awarded, total_marks, percentage(awarded, total_marks))


def score(questions: List[Any], answers: Dict[str, Any]) -> int:
    return grade_submission(answers, questions).total_score
