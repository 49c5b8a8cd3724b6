from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from jose import jwt

from sprintboard.config import settings
from sprintboard.core.auth import create_access_token, decode_access_token, get_current_user, get_sprint_manager
from sprintboard.models.user import User


class Credentials:
    def __init__(self, token):
        self.credentials = token


def test_token_round_trips_user_id():
    assert decode_access_token(create_access_token("USER001")) == "USER001"


def test_expired_token_is_rejected():
    token = create_access_token("USER001", expires_delta=timedelta(minutes=-5))

    with pytest.raises(HTTPException) as exc_info:
        decode_access_token(token)
    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Token has expired"


def test_token_without_subject_is_rejected():
    token = jwt.encode(
        {"exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        settings.secret_key,
        algorithm=settings.algorithm
    )

    with pytest.raises(HTTPException) as exc_info:
        decode_access_token(token)
    assert exc_info.value.status_code == 401


def test_token_signed_with_other_key_is_rejected():
    token = jwt.encode({"sub": "USER001"}, "some-other-key", algorithm=settings.algorithm)

    with pytest.raises(HTTPException):
        decode_access_token(token)


async def test_inactive_user_is_rejected(db, factory):
    await factory.user(id="USER009", is_active=False)

    with pytest.raises(HTTPException) as exc_info:
        await get_current_user(Credentials(create_access_token("USER009")), db)
    assert exc_info.value.status_code == 401


async def test_active_user_is_loaded(db, factory):
    await factory.user(id="USER001")

    user = await get_current_user(Credentials(create_access_token("USER001")), db)
    assert user.id == "USER001"


def test_sprint_manager_roles_come_from_settings(monkeypatch):
    developer = User(id="USER002", email="dev@example.com", full_name="Dev", role="developer")

    with pytest.raises(HTTPException) as exc_info:
        get_sprint_manager(developer)
    assert exc_info.value.status_code == 403

    monkeypatch.setattr(settings, "sprint_manager_roles", ["scrum_master", "developer"])
    assert get_sprint_manager(developer) is developer
