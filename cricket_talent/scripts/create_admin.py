import os
from cricket_talent.db.session import SessionLocal, engine, Base
from cricket_talent.db.models import _all  # noqa: F401
from cricket_talent.db.models.user import User, Role
from cricket_talent.core.security import hash_password


def create_admin_user():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    email = os.getenv("ADMIN_EMAIL", "admin@crickettalent.lk").lower()
    name = os.getenv("ADMIN_NAME", "Administrator")
    password = os.getenv("ADMIN_PASSWORD", "admin12345")  # 👉 change it right after

    try:
        existing_user = db.query(User).filter(User.email == email).first()

        if existing_user:
            print("⚠️  A user with that email already exists")
            print("➡️  Email:", existing_user.email)
            print("➡️  Role:", existing_user.role.value)
            return

        admin_user = User(
            email=email,
            name=name,
            hashed_password=hash_password(password),
            role=Role.ADMIN,
        )

        db.add(admin_user)
        db.commit()

        print("✅ Admin user created")
        print("➡️  Email:", email)
        print("⚠️  Change the password as soon as possible")

    except Exception as e:
        db.rollback()
        print("❌ Error creating the admin user")
        print(e)
        raise

    finally:
        db.close()


if __name__ == "__main__":
    create_admin_user()
