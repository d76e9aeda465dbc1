from pydantic import BaseModel, Field, field_validator, ValidationInfo
from typing import List, Optional
from uuid import UUID
import enum

class QuestionType(str, enum.Enum):
    """Enums for valid question types."""
    objective = "objective"
    free_response = "free_response"


class QuestionData(BaseModel):
    """
    Schema for validating a new question data object.

    This model strictly validates the structure of the incoming JSON payload.
    """
    type: QuestionType = Field(..., description="objective (auto-graded) or free_response (marked by faculty).")
    question_text: str = Field(..., description="The text of the question.")

    options: List[str] = Field(default_factory=list,
                               description="Possible answer options for objective questions.")

    correct_answer: Optional[str] = Field(default=None, validate_default=True)

    marks: int = Field(..., gt=0, description="Marks awarded for a correct answer.")

    @field_validator('correct_answer')
    @classmethod
    def validate_answer_based_on_type(cls, v, info: ValidationInfo):
        """
        Ensure 'correct_answer' matches the 'type' field.

        - objective: must be a string and one of the options.
        - free_response: must be empty, there is nothing to auto-grade against.
        """
        q_type = info.data.get('type')
        options = info.data.get('options', [])

        if q_type == QuestionType.objective:
            if not isinstance(v, str) or not v:
                raise ValueError('Objective questions must have a single string correct answer.')
            if options and v not in options:
                raise ValueError('Objective answer must be one of the provided options.')

        elif q_type == QuestionType.free_response and v is not None:
            raise ValueError('Free-response questions do not take a correct answer.')
        return v


class QuestionPublic(BaseModel):
    """What a student sees while taking the test (no correct answer)."""
    id: UUID
    type: QuestionType
    question_text: str
    options: Optional[List[str]] = None
    marks: int
