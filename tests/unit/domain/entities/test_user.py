import pytest

from src.domain.entities.user import Role
from tests.factories.user import build_fake_user


def test_role_labels():
    assert [role.label for role in Role] == ["Admin", "Supervisor", "Agent"]
    assert Role.values() == [1, 2, 3]


@pytest.mark.parametrize("value, label", [(1, "Admin"), (3, "Agent"), (9, "Unknown"), (None, "Unknown")])
def test_label_for_stored_values(value, label):
    assert Role.label_for(value) == label


def test_computed_properties():
    user = build_fake_user(first_name="John", last_name="Doe", role=Role.SUPERVISOR, latitude=1.5, longitude=-2.25)

    assert user.full_name == "John Doe"
    assert user.role_name == "Supervisor"
    assert user.location == {"latitude": 1.5, "longitude": -2.25}
    assert user.is_supervisor()
    assert not user.is_admin()
    assert not user.is_agent()


def test_touch_moves_updated_at_forward():
    user = build_fake_user()
    before = user.updated_at
    user.touch()
    assert user.updated_at >= before
