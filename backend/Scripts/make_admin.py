# Create the administrator from ADMIN_EMAIL / ADMIN_PASSWORD, or promote it if it exists.
# Run from backend/: python Scripts/make_admin.py
from tournament_hub.core.config import settings
from tournament_hub.core.roles import ROLE_ADMIN
from tournament_hub.core.security import hash_password
from tournament_hub.db.init_db import init_db
from tournament_hub.db.session import SessionLocal
from tournament_hub.models.user import User

init_db()

email = settings.ADMIN_EMAIL.lower().strip()
db = SessionLocal()
u = db.query(User).filter_by(email=email).first()
if u:
    u.role = ROLE_ADMIN
    u.is_active = True
    db.commit()
    print(f"OK: {email} promoted to admin")
elif not settings.ADMIN_PASSWORD:
    print("ADMIN_PASSWORD is empty; set it in .env to create the admin user")
else:
    db.add(
        User(
            email=email,
            password_hash=hash_password(settings.ADMIN_PASSWORD),
            name=settings.ADMIN_NAME,
            role=ROLE_ADMIN,
        )
    )
    db.commit()
    print(f"OK: admin {email} created")
db.close()
