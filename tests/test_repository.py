from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from parently.core.exceptions import ConflictError
from parently.database.repository import get_repository
from parently.models.common import to_payload
from parently.models.records import ParentCheckin


def create_parent(email="dana@family.com", name="Dana"):
    return get_repository().create_user(
        email=email, name=name, password_hash="hash", user_type="parent",
    )


def test_duplicate_email_is_a_conflict():
    create_parent()

    with pytest.raises(ConflictError, match="already exists"):
        create_parent()


def test_other_constraint_failures_are_not_reported_as_duplicate_email():
    with pytest.raises(IntegrityError):
        create_parent(name=None)


def test_stored_timestamps_come_back_as_utc():
    user = create_parent()

    assert user.created_at.utcoffset() == timedelta(0)
    assert user.to_api()["createdAt"].endswith("Z")
    assert get_repository().get_user_by_id(user.id).to_api()["createdAt"].endswith("Z")


def test_offset_timestamps_are_converted_to_utc():
    checkin = ParentCheckin(
        id="c1", user_id="p1", checkin_type="morning",
        emotional_state=5, financial_stress=5,
        created_at=datetime(2024, 5, 1, 10, 0, tzinfo=timezone(timedelta(hours=2))),
    )

    assert checkin.to_api()["createdAt"] == "2024-05-01T08:00:00.000Z"


def test_raw_datetimes_in_payloads_are_utc():
    assert to_payload({"at": datetime(2024, 5, 1, 8, 0)}) == {"at": "2024-05-01T08:00:00.000Z"}
