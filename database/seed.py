"""
Seed data script for the Classroom system.
Creates sample data for testing and demonstration.

Run with: python -m database.seed
"""
from datetime import timedelta
import random
from database import (
    get_db_context, init_db, utcnow,
    User, Classroom, ClassMember, Assignment, Submission, Comment,
)
from services.security import hash_password

DEMO_PASSWORD = "password123"


def seed_database():
    """Populate database with sample data."""
    
    with get_db_context() as db:
        # Clear existing data
        db.query(Comment).delete()
        db.query(Submission).delete()
        db.query(Assignment).delete()
        db.query(ClassMember).delete()
        db.query(Classroom).delete()
        db.query(User).delete()
        
        password_hash = hash_password(DEMO_PASSWORD)
        
        admin = User(name="Admin", email="admin@example.com", password_hash=password_hash, role="admin")
        teachers = [
            User(name="Maria Silva", email="maria@example.com", password_hash=password_hash, role="teacher"),
            User(name="John Santos", email="john@example.com", password_hash=password_hash, role="teacher"),
        ]
        students = [
            User(name=name, email=f"{name.split()[0].lower()}@example.com", password_hash=password_hash, role="student")
            for name in [
                "Miguel Ferreira",
                "Ana Costa",
                "Pedro Almeida",
                "Sofia Rodrigues",
                "Beatriz Martins",
            ]
        ]
        db.add(admin)
        db.add_all(teachers)
        db.add_all(students)
        db.flush()
        
        # One class per teacher
        classes = [
            Classroom(title="Algebra I", code="ALG101", teacher_id=teachers[0].id, created_by=teachers[0].id),
            Classroom(title="World History", code="HIS201", teacher_id=teachers[1].id, created_by=admin.id),
        ]
        db.add_all(classes)
        db.flush()
        
        # First 3 students in Algebra, the rest in History
        for classroom in classes:
            classroom.members.append(ClassMember(user_id=classroom.teacher_id, role_in_class="teacher"))
        for student in students[:3]:
            classes[0].members.append(ClassMember(user_id=student.id, role_in_class="student"))
        for student in students[3:]:
            classes[1].members.append(ClassMember(user_id=student.id, role_in_class="student"))
        db.flush()
        
        now = utcnow()
        assignments = [
            Assignment(class_id=classes[0].id, title="Linear equations", due_at=now - timedelta(days=7),
                       created_by=teachers[0].id, max_score=100),
            Assignment(class_id=classes[0].id, title="Quadratics", due_at=now + timedelta(days=7),
                       created_by=teachers[0].id, max_score=100),
            Assignment(class_id=classes[1].id, title="Essay: the printing press", due_at=now + timedelta(days=14),
                       created_by=teachers[1].id, max_score=100),
        ]
        db.add_all(assignments)
        db.flush()
        
        # Everyone in Algebra handed in the first assignment; it has been graded
        submissions = []
        for student in students[:3]:
            submission = Submission(
                assignment_id=assignments[0].id,
                student_id=student.id,
                link_or_files=[{"type": "link", "url": f"https://example.com/{student.id}/linear"}],
                submitted_at=now - timedelta(days=random.randint(8, 10)),
                status="graded",
                late=False,
                grade_score=round(random.uniform(50, 100), 1),
                grade_feedback="Good work",
                graded_by=teachers[0].id,
                graded_at=now - timedelta(days=5),
            )
            submissions.append(submission)
        db.add_all(submissions)
        db.flush()
        
        question = Comment(submission_id=submissions[0].id, author_id=students[0].id,
                           text="Could you explain the deduction on question 3?")
        db.add(question)
        db.flush()
        db.add(Comment(submission_id=submissions[0].id, author_id=teachers[0].id,
                       text="You skipped a step when isolating x.", parent_id=question.id))
        
        db.commit()
        
        print("Database seeded successfully!")
        print(f"Created:")
        print(f"  - 1 admin, {len(teachers)} teachers, {len(students)} students")
        print(f"  - {len(classes)} classes")
        print(f"  - {len(assignments)} assignments")
        print(f"  - {len(submissions)} submissions")
        print(f"\nAll accounts use the password '{DEMO_PASSWORD}'")
        print(f"  Class codes: {[(c.code, c.title) for c in classes]}")


if __name__ == "__main__":
    print("Initializing database...")
    init_db()
    print("Seeding database...")
    seed_database()
