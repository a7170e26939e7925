import logging

from sqlalchemy.orm import Session

from tournament_hub.core.errors import AuthenticationError, ConflictError, ValidationError
from tournament_hub.core.roles import ALL_ROLES
from tournament_hub.core.security import create_access_token, hash_password, verify_password
from tournament_hub.db.unit_of_work import SqlAlchemyUnitOfWork
from tournament_hub.models.user import User
from tournament_hub.schemas.auth import LoginRequest, RegisterRequest

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: Session):
        self.db = db
        self.uow = SqlAlchemyUnitOfWork(db)

    def login(self, data: LoginRequest) -> dict:
        email = data.email.lower().strip()
        user = self.db.query(User).filter(User.email == email).first()

        # Same message for unknown email and wrong password
        if not user or not verify_password(data.password, user.password_hash):
            logger.info("Failed login for %s", email)
            raise AuthenticationError("Invalid credentials")
        if not user.is_active:
            raise AuthenticationError("User is inactive")

        token = create_access_token({"sub": str(user.id), "role": user.role})
        logger.info("User %s logged in", user.id)
        return {"access_token": token, "token_type": "bearer"}

    def register(self, data: RegisterRequest) -> User:
        email = data.email.lower().strip()
        role = data.role.strip().lower()
        if role not in ALL_ROLES:
            raise ValidationError(f"Invalid role. Allowed: {sorted(ALL_ROLES)}")
        if self.db.query(User).filter(User.email == email).first():
            raise ConflictError("Email already registered")

        with self.uow:
            user = User(
                email=email,
                password_hash=hash_password(data.password),
                name=data.name.strip(),
                role=role,
            )
            self.db.add(user)
            self.db.flush()
        logger.info("Registered user %s with role %s", user.id, role)
        return user
