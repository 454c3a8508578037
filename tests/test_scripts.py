"""
Tests for the demo seed and the account creation script.
"""
import pytest

from database import Assignment, Submission, User, get_db_context
from database.seed import seed_database, DEMO_PASSWORD
from scripts.create_user import main as create_user
from services import (
    NotResourceOwner,
    authenticate,
    get_grade_distribution,
    list_classes,
    list_comments,
)


class TestSeed:
    
    def test_seeded_accounts_follow_the_rules(self, db):
        seed_database()
        
        maria = db.query(User).filter(User.email == "maria@example.com").first()
        john = db.query(User).filter(User.email == "john@example.com").first()
        miguel = db.query(User).filter(User.email == "miguel@example.com").first()
        
        assert authenticate(db, "admin@example.com", DEMO_PASSWORD)["role"] == "admin"
        
        algebra = list_classes(db, maria)["items"][0]
        assert algebra["code"] == "ALG101"
        assert algebra["member_count"] == 4
        
        linear = db.query(Assignment).filter(Assignment.title == "Linear equations").first()
        submission = db.query(Submission).filter(Submission.student_id == miguel.id).first()
        
        comments = list_comments(db, miguel, submission.id)["comments"]
        assert len(comments) == 2
        assert comments[1]["parent_id"] == comments[0]["id"]
        
        with pytest.raises(NotResourceOwner):
            get_grade_distribution(db, john, algebra["id"], linear.id)
        assert get_grade_distribution(db, maria, algebra["id"], linear.id)["statistics"]["total_grades"] == 3


class TestCreateUserScript:
    
    def test_creates_teacher_by_default(self, db):
        assert create_user(["Grace", "Grace@Example.com", "pw"]) == 0
        with get_db_context() as session:
            user = session.query(User).filter(User.email == "grace@example.com").first()
            assert user.role == "teacher"
    
    def test_rejects_duplicates_and_bad_usage(self, db):
        assert create_user(["Grace", "grace@example.com", "pw", "admin"]) == 0
        assert create_user(["Grace", "grace@example.com", "pw"]) == 1
        assert create_user(["only-one-arg"]) == 1
    
    def test_rejects_unknown_role(self, db):
        assert create_user(["Grace", "grace@example.com", "pw", "principal"]) == 1
        with get_db_context() as session:
            assert session.query(User).filter(User.email == "grace@example.com").first() is None
