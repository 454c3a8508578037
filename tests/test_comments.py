"""
Tests for the comment thread on submissions.
"""
import pytest

from services import (
    NotResourceOwner,
    NotFoundError,
    ValidationError,
    submit_work,
    list_comments,
    post_comment,
)


@pytest.fixture
def submission(db, users, assignment):
    result = submit_work(
        db, users["s1"], assignment.class_id, assignment.id,
        [{"type": "link", "url": "https://example.com/work"}],
    )
    return result["submission"]


class TestCommentAccess:
    """Who may read and write a submission's thread."""
    
    def test_outsider_forbidden_owner_reads_thread(self, db, users, submission):
        post_comment(db, users["t1"], submission["id"], "Show your steps")
        post_comment(db, users["s1"], submission["id"], "Added them")
        
        with pytest.raises(NotResourceOwner):
            list_comments(db, users["s3"], submission["id"])
        
        thread = list_comments(db, users["s1"], submission["id"])["comments"]
        assert [c["text"] for c in thread] == ["Show your steps", "Added them"]
        assert thread[0]["author"]["role"] == "teacher"
    
    def test_classmate_and_other_teacher_forbidden(self, db, users, submission):
        for actor in (users["s2"], users["t2"]):
            with pytest.raises(NotResourceOwner):
                post_comment(db, actor, submission["id"], "Hi")
    
    def test_admin_reads_and_posts(self, db, users, submission):
        post_comment(db, users["admin"], submission["id"], "Checked")
        assert len(list_comments(db, users["admin"], submission["id"])["comments"]) == 1
    
    def test_missing_submission_is_not_found_for_everyone(self, db, users):
        for actor in (users["admin"], users["s3"]):
            with pytest.raises(NotFoundError):
                list_comments(db, actor, 9999)


class TestPostComment:
    """Validation of new comments."""
    
    def test_text_rules(self, db, users, submission):
        with pytest.raises(ValidationError):
            post_comment(db, users["s1"], submission["id"], "   ")
        with pytest.raises(ValidationError):
            post_comment(db, users["s1"], submission["id"], "x" * 501)
        assert post_comment(db, users["s1"], submission["id"], "x" * 500)["comment"]["id"]
    
    def test_reply_threading(self, db, users, submission):
        parent = post_comment(db, users["t1"], submission["id"], "Question?")["comment"]
        reply = post_comment(db, users["s1"], submission["id"], "Answer", parent_id=parent["id"])["comment"]
        assert reply["parent_id"] == parent["id"]
    
    def test_parent_must_be_on_same_submission(self, db, users, assignment, submission):
        other = submit_work(
            db, users["s2"], assignment.class_id, assignment.id,
            [{"type": "link", "url": "https://example.com/other"}],
        )["submission"]
        foreign = post_comment(db, users["t1"], other["id"], "Elsewhere")["comment"]
        with pytest.raises(ValidationError):
            post_comment(db, users["s1"], submission["id"], "Reply", parent_id=foreign["id"])
