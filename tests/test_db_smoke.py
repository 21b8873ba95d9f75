from sqlalchemy import text
from sqlalchemy.orm import Session

from studykit.db.session import SessionLocal
from studykit.models.status import ExamStatus
from studykit.models.exam import Exam
from studykit.models.user import User


def test_db_select_1():
    db: Session = SessionLocal()
    try:
        r = db.execute(text("SELECT 1")).scalar_one()
        assert r == 1
    finally:
        db.close()


def test_db_crud_user():
    db: Session = SessionLocal()
    try:
        u = User(id="user-1", enabled_models_json='["llama-3.1-8b-instant"]')
        db.add(u)
        db.commit()

        u2 = db.query(User).filter(User.id == "user-1").one()
        assert u2.enabled_models_json == '["llama-3.1-8b-instant"]'
    finally:
        db.close()


def test_status_column_stores_enum_value():
    db: Session = SessionLocal()
    try:
        exam = Exam(owner_id="user-1", title="Midterm")
        db.add(exam)
        db.commit()

        raw = db.execute(text("SELECT status FROM exams WHERE id = :id"), {"id": exam.id}).scalar_one()
        assert raw == "draft"
        assert db.query(Exam).one().status is ExamStatus.draft
    finally:
        db.close()
