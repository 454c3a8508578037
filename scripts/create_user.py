"""
Create an account with any role from the command line.
Self-registration through the API always yields a student; use this to
create teachers and admins.

Usage: python -m scripts.create_user NAME EMAIL PASSWORD [student|teacher|admin]
"""
import sys

from database import get_db_context, init_db, User, UserRole
from services.security import hash_password


def main(argv):
    if len(argv) not in (3, 4):
        print(__doc__)
        return 1
    name, email, password = argv[:3]
    try:
        role = UserRole(argv[3] if len(argv) == 4 else "teacher").value
    except ValueError:
        print(__doc__)
        return 1

    init_db()
    with get_db_context() as db:
        if db.query(User).filter(User.email == email.lower()).first():
            print(f"User {email} already exists")
            return 1
        user = User(name=name, email=email.lower(), password_hash=hash_password(password), role=role)
        db.add(user)
        db.flush()
        print("Created", user)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
