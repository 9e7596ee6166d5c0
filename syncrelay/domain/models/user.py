"""User domain model — maps to the 'users' table.

Mirrors a Clerk user. Rows are never removed; `is_active` is the
soft-delete marker. Email is unique among active rows only.
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, Integer, String, Text, text

from syncrelay.infrastructure.database import Base

DEFAULT_PREFERENCES = {
    "theme": "light",
    "language": "zh",
    "currency": "CNY",
    "timezone": "Asia/Shanghai",
}


class User(Base):
    __tablename__ = "users"

    id = Column(String(255), primary_key=True)  # Clerk user id
    email = Column(String(255), nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    avatar_url = Column(Text, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    is_admin = Column(Boolean, nullable=False, default=False)
    admin_level = Column(Integer, nullable=False, default=0)

    total_use_cases = Column(Integer, nullable=False, default=0)
    total_tutorials = Column(Integer, nullable=False, default=0)
    total_blogs = Column(Integer, nullable=False, default=0)

    preferences = Column(JSON, nullable=False, default=lambda: dict(DEFAULT_PREFERENCES))
    country = Column(String(100), nullable=True)
    locale = Column(String(20), nullable=False, default="zh")

    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    # One active account per address; retired rows and unknown ("") emails are exempt
    __table_args__ = (
        Index(
            "uq_users_email_active",
            "email",
            unique=True,
            postgresql_where=text("is_active AND email <> ''"),
            sqlite_where=text("is_active = 1 AND email <> ''"),
        ),
    )

    def __repr__(self):
        return f"<User {self.id} {self.email}>"
