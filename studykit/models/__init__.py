from studykit.models.assignment import Assignment
from studykit.models.exam import Exam, ExamAttempt, ExamQuestion
from studykit.models.extracted_content import ExtractedContent
from studykit.models.job import Job
from studykit.models.source_document import SourceDocument
from studykit.models.study_kit import Flashcard, QuizQuestion, StudyKit
from studykit.models.summary import Summary
from studykit.models.user import User

__all__ = [
    "Assignment",
    "Exam",
    "ExamAttempt",
    "ExamQuestion",
    "ExtractedContent",
    "Flashcard",
    "Job",
    "QuizQuestion",
    "SourceDocument",
    "StudyKit",
    "Summary",
    "User",
]
