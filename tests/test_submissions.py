"""
Tests for submissions, grading and the reporting read models.
"""
import pytest

from database import Submission
from services import (
    RoleNotAllowed,
    AuthorizationError,
    NotClassMember,
    NotResourceOwner,
    NotFoundError,
    ValidationError,
    submit_work,
    list_assignment_submissions,
    list_my_submissions,
    get_submission,
    get_my_submission_for_assignment,
    grade_submission,
    bucket_scores,
    compute_statistics,
    get_grade_distribution,
    get_teacher_metrics,
    enroll_member,
)

LINK = [{"type": "link", "url": "https://example.com/work"}]
FILE = [{"type": "file", "url": "https://files.example.com/essay.pdf", "name": "essay.pdf"}]


def _submit(db, student, assignment, entries=LINK):
    return submit_work(db, student, assignment.class_id, assignment.id, entries)["submission"]


class TestSubmitWork:
    """Tests for submission and resubmission."""
    
    def test_member_submits_on_time(self, db, users, assignment):
        submission = _submit(db, users["s1"], assignment)
        assert submission["status"] == "submitted"
        assert submission["late"] is False
        assert submission["student_id"] == users["s1"].id
    
    def test_non_member_forbidden(self, db, users, assignment):
        with pytest.raises(NotClassMember):
            _submit(db, users["s3"], assignment)
    
    def test_only_students_submit(self, db, users, assignment):
        with pytest.raises(RoleNotAllowed):
            _submit(db, users["t1"], assignment)
    
    def test_entries_required(self, db, users, assignment):
        with pytest.raises(ValidationError):
            _submit(db, users["s1"], assignment, entries=[])
        with pytest.raises(ValidationError):
            _submit(db, users["s1"], assignment, entries=[{"type": "video", "url": "x"}])
    
    def test_missing_assignment(self, db, users, classroom):
        with pytest.raises(NotFoundError):
            submit_work(db, users["s1"], classroom.id, 9999, LINK)
    
    def test_late_submission_lifecycle(self, db, users, assignment, make_overdue):
        make_overdue(assignment)
        
        first = _submit(db, users["s1"], assignment)
        assert first["late"] is True
        assert first["status"] == "submitted"
        
        replaced = _submit(db, users["s1"], assignment, entries=FILE)
        assert replaced["id"] == first["id"]
        assert replaced["link_or_files"][0]["type"] == "file"
        assert db.query(Submission).count() == 1
        
        grade_submission(db, users["t1"], first["id"], score=70)
        with pytest.raises(AuthorizationError):
            _submit(db, users["s1"], assignment)
    
    def test_resubmit_before_due_clears_grade(self, db, users, assignment):
        first = _submit(db, users["s1"], assignment)
        grade_submission(db, users["t1"], first["id"], score=90, feedback="Nice")
        
        again = _submit(db, users["s1"], assignment)
        assert again["status"] == "submitted"
        assert again["grade"]["score"] is None
        assert again["grade"]["graded_by"] is None


class TestReadSubmissions:
    """Tests for submission read rights."""
    
    def test_owner_teacher_admin_can_read(self, db, users, assignment):
        submission = _submit(db, users["s1"], assignment)
        for actor in (users["s1"], users["t1"], users["admin"]):
            data = get_submission(db, actor, submission["id"])
            assert data["assignment"]["id"] == assignment.id
    
    def test_classmate_and_other_teacher_forbidden(self, db, users, assignment):
        submission = _submit(db, users["s1"], assignment)
        for actor in (users["s2"], users["t2"]):
            with pytest.raises(NotResourceOwner):
                get_submission(db, actor, submission["id"])
    
    def test_missing_submission(self, db, users):
        with pytest.raises(NotFoundError):
            get_submission(db, users["admin"], 9999)
    
    def test_my_submissions(self, db, users, assignment):
        _submit(db, users["s1"], assignment)
        _submit(db, users["s2"], assignment)
        
        mine = list_my_submissions(db, users["s1"])
        assert mine["pagination"]["total"] == 1
        assert mine["items"][0]["assignment"]["class_title"] == "Algebra"
        
        own = get_my_submission_for_assignment(db, users["s2"], assignment.id)
        assert own["student_id"] == users["s2"].id
        with pytest.raises(NotFoundError):
            get_my_submission_for_assignment(db, users["s3"], assignment.id)
    
    def test_queue(self, db, users, assignment):
        first = _submit(db, users["s1"], assignment)
        _submit(db, users["s2"], assignment)
        grade_submission(db, users["t1"], first["id"], score=80)
        
        queue = list_assignment_submissions(db, users["t1"], assignment.class_id, assignment.id)
        assert queue["pagination"]["total"] == 2
        graded = list_assignment_submissions(
            db, users["admin"], assignment.class_id, assignment.id, status="graded"
        )
        assert [s["id"] for s in graded["items"]] == [first["id"]]
        
        with pytest.raises(NotResourceOwner):
            list_assignment_submissions(db, users["t2"], assignment.class_id, assignment.id)
        with pytest.raises(RoleNotAllowed):
            list_assignment_submissions(db, users["s1"], assignment.class_id, assignment.id)
        with pytest.raises(ValidationError):
            list_assignment_submissions(db, users["t1"], assignment.class_id, assignment.id, status="lost")


class TestGrading:
    """Tests for grading rights."""
    
    def test_class_teacher_grades(self, db, users, assignment):
        submission = _submit(db, users["s1"], assignment)
        result = grade_submission(db, users["t1"], submission["id"], score=88, feedback="Good", late_override=True)["submission"]
        assert result["status"] == "graded"
        assert result["late"] is True
        assert result["grade"] == {
            "score": 88,
            "feedback": "Good",
            "graded_by": users["t1"].id,
            "graded_at": result["grade"]["graded_at"],
        }
        assert result["grade"]["graded_at"] is not None
    
    def test_other_teacher_and_admin_cannot_grade(self, db, users, assignment):
        submission = _submit(db, users["s1"], assignment)
        with pytest.raises(NotResourceOwner):
            grade_submission(db, users["t2"], submission["id"], score=50)
        with pytest.raises(RoleNotAllowed):
            grade_submission(db, users["admin"], submission["id"], score=50)
    
    def test_negative_score(self, db, users, assignment):
        submission = _submit(db, users["s1"], assignment)
        with pytest.raises(ValidationError):
            grade_submission(db, users["t1"], submission["id"], score=-1)
    
    def test_missing_submission_is_not_found(self, db, users):
        with pytest.raises(NotFoundError):
            grade_submission(db, users["t1"], 9999, score=10)


class TestReporting:
    """Tests for grade distribution and teacher metrics."""
    
    def test_bucket_scores(self):
        assert bucket_scores([55, 85, 95, 150, None]) == [
            {"range": "0-59 (F)", "count": 1},
            {"range": "80-89 (B)", "count": 1},
            {"range": "90-100 (A)", "count": 1},
            {"range": "Ungraded/Other", "count": 2},
        ]
        assert bucket_scores([]) == []
    
    def test_compute_statistics(self):
        assert compute_statistics([])["total_grades"] == 0
        stats = compute_statistics([70, 80, 90])
        assert stats["mean"] == 80
        assert stats["median"] == 80
        assert stats["min"] == 70
        assert stats["max"] == 90
    
    def test_distribution_rights(self, db, users, assignment):
        enroll_member(db, users["s3"], code="ALG101")
        for student, score in ((users["s1"], 95), (users["s2"], 85), (users["s3"], 55)):
            submission = _submit(db, student, assignment)
            grade_submission(db, users["t1"], submission["id"], score=score)
        
        with pytest.raises(NotResourceOwner):
            get_grade_distribution(db, users["t2"], assignment.class_id, assignment.id)
        
        result = get_grade_distribution(db, users["admin"], assignment.class_id, assignment.id)
        assert result["assignment_id"] == assignment.id
        assert {b["range"]: b["count"] for b in result["distribution"]} == {
            "0-59 (F)": 1,
            "80-89 (B)": 1,
            "90-100 (A)": 1,
        }
        assert result["statistics"]["total_grades"] == 3
    
    def test_teacher_metrics(self, db, users, assignment):
        first = _submit(db, users["s1"], assignment)
        _submit(db, users["s2"], assignment)
        grade_submission(db, users["t1"], first["id"], score=85)
        
        assert get_teacher_metrics(db, users["t1"]) == {"pending_grade_count": 1, "average_score": 85}
        assert get_teacher_metrics(db, users["t2"]) == {"pending_grade_count": 0, "average_score": 0}
        with pytest.raises(RoleNotAllowed):
            get_teacher_metrics(db, users["admin"])
