"""
Tests for assignment management.
"""
from datetime import datetime, timedelta, timezone

import pytest

from database import Assignment, utcnow
from services import (
    RoleNotAllowed,
    NotClassMember,
    NotResourceOwner,
    NotFoundError,
    ValidationError,
    create_assignment,
    list_assignments,
    get_assignment,
    update_assignment,
    delete_assignment,
    update_class,
)


class TestCreateAssignment:
    """Tests for assignment creation."""
    
    def test_class_teacher_creates(self, db, users, classroom):
        result = create_assignment(
            db, users["t1"], classroom.id,
            title="Quadratics",
            due_at=utcnow() + timedelta(days=3),
            attachments=[{"name": "sheet.pdf", "url": "https://example.com/sheet.pdf"}],
        )
        assert result["created_by"] == users["t1"].id
        assert result["max_score"] == 100
        assert result["visibility"] == "active"
        assert result["attachments"][0]["name"] == "sheet.pdf"
    
    def test_aware_due_date_is_stored_as_utc(self, db, users, classroom):
        due = datetime.now(timezone(timedelta(hours=2))) + timedelta(days=1)
        result = create_assignment(db, users["t1"], classroom.id, title="Tz", due_at=due)
        stored = db.query(Assignment).filter(Assignment.id == result["id"]).first()
        assert stored.due_at == due.astimezone(timezone.utc).replace(tzinfo=None)
    
    def test_due_date_must_be_future(self, db, users, classroom):
        with pytest.raises(ValidationError):
            create_assignment(db, users["t1"], classroom.id, title="Past", due_at=utcnow() - timedelta(minutes=1))
    
    def test_blank_title_rejected(self, db, users, classroom):
        with pytest.raises(ValidationError):
            create_assignment(db, users["t1"], classroom.id, title=" \t ", due_at=utcnow() + timedelta(days=1))
    
    def test_other_teacher_forbidden(self, db, users, classroom):
        with pytest.raises(NotResourceOwner):
            create_assignment(db, users["t2"], classroom.id, title="X", due_at=utcnow() + timedelta(days=1))
    
    def test_admin_and_student_rejected_by_role(self, db, users, classroom):
        for actor in (users["admin"], users["s1"]):
            with pytest.raises(RoleNotAllowed):
                create_assignment(db, actor, classroom.id, title="X", due_at=utcnow() + timedelta(days=1))
    
    def test_missing_class(self, db, users):
        with pytest.raises(NotFoundError):
            create_assignment(db, users["t1"], 9999, title="X", due_at=utcnow() + timedelta(days=1))


class TestReadAssignments:
    """Tests for listing and viewing assignments."""
    
    def test_members_list(self, db, users, classroom, assignment):
        result = list_assignments(db, users["s1"], classroom.id)
        assert [a["id"] for a in result["items"]] == [assignment.id]
        with pytest.raises(NotClassMember):
            list_assignments(db, users["s3"], classroom.id)
    
    def test_status_filter(self, db, users, classroom, assignment, make_overdue):
        create_assignment(db, users["t1"], classroom.id, title="Later", due_at=utcnow() + timedelta(days=30))
        make_overdue(assignment)
        
        overdue = list_assignments(db, users["s1"], classroom.id, status_filter="overdue")
        upcoming = list_assignments(db, users["s1"], classroom.id, status_filter="upcoming")
        assert [a["id"] for a in overdue["items"]] == [assignment.id]
        assert [a["title"] for a in upcoming["items"]] == ["Later"]
        with pytest.raises(ValidationError):
            list_assignments(db, users["s1"], classroom.id, status_filter="soon")
    
    def test_get_requires_membership(self, db, users, classroom, assignment):
        assert get_assignment(db, users["s2"], classroom.id, assignment.id)["title"] == "Linear equations"
        with pytest.raises(NotClassMember):
            get_assignment(db, users["t2"], classroom.id, assignment.id)
    
    def test_wrong_class_is_not_found(self, db, users, classroom, assignment):
        with pytest.raises(NotFoundError):
            get_assignment(db, users["admin"], classroom.id + 1, assignment.id)


class TestModifyAssignment:
    """Tests for update and delete rights."""
    
    def test_creator_updates(self, db, users, classroom, assignment):
        result = update_assignment(db, users["t1"], classroom.id, assignment.id, title="Renamed", max_score=50)
        assert result["title"] == "Renamed"
        assert result["max_score"] == 50
    
    def test_update_rejects_past_due_date(self, db, users, classroom, assignment):
        with pytest.raises(ValidationError):
            update_assignment(db, users["t1"], classroom.id, assignment.id, due_at=utcnow() - timedelta(days=1))
    
    def test_update_rejects_blank_title(self, db, users, classroom, assignment):
        with pytest.raises(ValidationError):
            update_assignment(db, users["t1"], classroom.id, assignment.id, title="   ")
        db.refresh(assignment)
        assert assignment.title == "Linear equations"
    
    def test_non_creator_cannot_update(self, db, users, classroom, assignment):
        with pytest.raises(NotResourceOwner):
            update_assignment(db, users["t2"], classroom.id, assignment.id, title="Hijack")
    
    def test_admin_deletes(self, db, users, classroom, assignment):
        delete_assignment(db, users["admin"], classroom.id, assignment.id)
        assert db.query(Assignment).count() == 0
    
    def test_non_creator_cannot_delete(self, db, users, classroom, assignment):
        with pytest.raises(NotResourceOwner):
            delete_assignment(db, users["t2"], classroom.id, assignment.id)
        with pytest.raises(RoleNotAllowed):
            delete_assignment(db, users["s1"], classroom.id, assignment.id)
    
    def test_delete_missing_before_ownership(self, db, users, classroom):
        with pytest.raises(NotFoundError):
            delete_assignment(db, users["t2"], classroom.id, 9999)
    
    def test_creator_keeps_rights_after_reassignment(self, db, users, classroom, assignment):
        update_class(db, users["admin"], classroom.id, teacher_id=users["t2"].id)
        
        with pytest.raises(NotResourceOwner):
            update_assignment(db, users["t2"], classroom.id, assignment.id, title="New teacher")
        with pytest.raises(NotResourceOwner):
            delete_assignment(db, users["t2"], classroom.id, assignment.id)
        
        result = delete_assignment(db, users["t1"], classroom.id, assignment.id)
        assert result["message"] == "Assignment deleted successfully."
        assert db.query(Assignment).count() == 0
