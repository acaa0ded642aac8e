# tests/test_user_query.py
from userbase.schemas.user import UserFilter
from userbase.services.role_annotation import annotate_roles
from userbase.services.user_query import list_users


def names(users):
    return [u.name for u in users]


def test_empty_store_returns_empty_list(db):
    users = list_users(db)

    assert users == []
    assert annotate_roles(users) == []


def test_no_filter_returns_all_in_insertion_order(db, user_factory):
    user_factory(name="eva")
    user_factory(name="anne")
    user_factory(name="marianne")

    assert names(list_users(db)) == ["eva", "anne", "marianne"]
    assert names(list_users(db, UserFilter())) == ["eva", "anne", "marianne"]


def test_name_contains_filter(db, user_factory):
    user_factory(name="anne", email="anne@example.com")
    user_factory(name="marianne", email="marianne@example.com")
    user_factory(name="eva", email="eva@example.com")

    assert names(list_users(db, UserFilter(name_cont="anne"))) == ["anne", "marianne"]
    assert names(list_users(db, UserFilter(name_cont=None))) == ["anne", "marianne", "eva"]


def test_filter_is_case_insensitive(db, user_factory):
    user_factory(name="Anne")
    user_factory(name="MARIANNE")
    user_factory(name="eva")

    assert names(list_users(db, UserFilter(name_cont="aNNe"))) == ["Anne", "MARIANNE"]


def test_filter_folds_non_ascii_case(db, user_factory):
    user_factory(name="ÄNNE")
    user_factory(name="Émile")
    user_factory(name="eva")

    assert names(list_users(db, UserFilter(name_cont="änne"))) == ["ÄNNE"]
    assert names(list_users(db, UserFilter(name_cont="ÉMI"))) == ["Émile"]


def test_blank_filter_means_no_filter(db, user_factory):
    user_factory(name="anne")
    user_factory(name="eva")

    assert names(list_users(db, UserFilter(name_cont=""))) == ["anne", "eva"]
    assert names(list_users(db, UserFilter(name_cont="   "))) == ["anne", "eva"]


def test_wildcards_match_literally(db, user_factory):
    user_factory(name="100% real")
    user_factory(name="under_score")
    user_factory(name="plain")

    assert names(list_users(db, UserFilter(name_cont="%"))) == ["100% real"]
    assert names(list_users(db, UserFilter(name_cont="_"))) == ["under_score"]


def test_no_match_is_empty_not_an_error(db, user_factory):
    user_factory(name="anne")

    assert list_users(db, UserFilter(name_cont="zzz")) == []


def test_filtering_is_idempotent(db, user_factory):
    for name in ("anne", "marianne", "eva", "joanne"):
        user_factory(name=name)
    filters = UserFilter(name_cont="anne")

    first = [u.id for u in list_users(db, filters)]
    second = [u.id for u in list_users(db, filters)]

    assert first == second


def test_email_filter(db, user_factory):
    user_factory(name="a", email="a@corp.example")
    user_factory(name="b", email="b@home.example")

    assert names(list_users(db, UserFilter(email_cont="CORP"))) == ["a"]


def test_roles_come_back_with_users(db, user_factory):
    user_factory(name="admin", roles=["admin"])
    user_factory(name="another admin", roles=["admin"])

    annotated = annotate_roles(list_users(db))

    assert [(u.name, m.kind.value, m.label) for u, m in annotated] == [
        ("admin", "first_occurrence", "Administrator"),
        ("another admin", "recurrent_occurrence", "Administrator"),
    ]
