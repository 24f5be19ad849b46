"""Shared builders for tests: in-memory database, roles and users."""

import base64
import io
from typing import Any

from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import hash_password
from app.models import Base, Role, User


def make_session() -> Session:
    """Fresh in-memory SQLite database with all tables; one session bound to it."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)()


def add_role(session: Session, name: str) -> Role:
    role = Role(name=name)
    session.add(role)
    session.commit()
    return role


def add_user(
    session: Session,
    username: str = "jdoe",
    roles: list[Role] | None = None,
    **kwargs: Any,
) -> User:
    """Insert a user directly (bypassing validation) with the given roles."""
    defaults = {
        "email": f"{username}@example.com",
        "firstname": "john",
        "lastname": "doe",
        "password_hash": hash_password("secret"),
    }
    defaults.update(kwargs)
    user = User(username=username, **defaults)
    session.add(user)
    for role in roles or []:
        user.roles.append(role)
    session.commit()
    return user


def user_payload(roles: list[str], **overrides: Any) -> dict[str, Any]:
    """Valid create-user input."""
    data = {
        "username": "jdoe",
        "email": "jdoe@example.com",
        "password": "secret",
        "password_confirmation": "secret",
        "firstname": "john",
        "lastname": "doe",
        "roles": roles,
    }
    data.update(overrides)
    return data


def png_data_uri(size: tuple[int, int] = (300, 200)) -> str:
    """A real PNG image encoded as a data URI."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 30, 30)).save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")
