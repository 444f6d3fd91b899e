import os

from app.db import models
from app.db.init_db import ensure_superadmin
from app.db.session import SessionLocal, engine


def main() -> None:
    email = os.getenv("SUPERADMIN_EMAIL")
    password = os.getenv("SUPERADMIN_PASSWORD")
    if not email or not password:
        raise SystemExit("SUPERADMIN_EMAIL e SUPERADMIN_PASSWORD devem estar definidos.")

    models.Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        user = ensure_superadmin(db, email=email, password=password, reset=True)
        print(f"Superadmin ativo: {user.email}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
