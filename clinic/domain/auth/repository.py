"""User repository - Database operations for accounts"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import User


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    def get_by_id(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def create(db: Session, **user_data) -> User:
        """Create a new user"""
        user = User(**user_data)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def save(db: Session, user: User) -> User:
        db.commit()
        db.refresh(user)
        return user
