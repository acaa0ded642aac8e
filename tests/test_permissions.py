# tests/test_permissions.py
import pytest

from userbase.core.errors import AccessDenied
from userbase.services.permissions import authorize, can


def test_admin_manages_everybody_else(admin, user_factory):
    other = user_factory()

    for action in ("index", "show", "create", "update", "destroy"):
        assert can(admin, action, other)


def test_admin_cannot_delete_themselves(admin):
    assert not can(admin, "destroy", admin)
    assert can(admin, "update", admin)


def test_regular_user_reads_and_edits_self(user_factory):
    user = user_factory()
    other = user_factory()

    assert can(user, "index")
    assert can(user, "show", other)
    assert can(user, "update", user)
    assert not can(user, "update", other)
    assert not can(user, "create")
    assert not can(user, "destroy", other)


def test_anonymous_can_do_nothing():
    assert not can(None, "index")


def test_authorize_raises_access_denied(user_factory):
    user = user_factory()

    with pytest.raises(AccessDenied, match="create users"):
        authorize(user, "create")

    authorize(user, "index")
