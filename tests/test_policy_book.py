"""Per-user policy collection."""

import pytest

from taylor_insurance.models import Policy, PolicyKind
from taylor_insurance.policy_book import PolicyBook, PolicyIndexError


@pytest.fixture
def book(auto_risk, home_risk):
    book = PolicyBook()
    book.add(Policy(kind=PolicyKind.AUTO, risk=auto_risk(), policy_number="AUT100001"))
    book.add(Policy(kind=PolicyKind.HOME, risk=home_risk(), policy_number="HOM100002"))
    book.add(Policy(kind=PolicyKind.AUTO, risk=auto_risk(), policy_number="AUT100003"))
    return book


def test_preserves_insertion_order(book):
    assert [p.policy_number for p in book] == ["AUT100001", "HOM100002", "AUT100003"]
    assert len(book) == 3


def test_policies_view_is_read_only(book):
    view = book.policies
    assert isinstance(view, tuple)
    assert len(view) == 3


def test_add_does_not_deduplicate(auto_risk):
    book = PolicyBook()
    policy = Policy(kind=PolicyKind.AUTO, risk=auto_risk())
    book.add(policy)
    book.add(policy)
    assert len(book) == 2


def test_active_queries(book):
    assert book.has_active(PolicyKind.AUTO)
    assert book.has_active(PolicyKind.HOME)
    assert book.count_active(PolicyKind.AUTO) == 2
    assert book.count_active("home") == 1

    book.get(0).cancel_policy()
    assert book.count_active(PolicyKind.AUTO) == 1
    assert book.has_active(PolicyKind.AUTO)

    book.get(1).cancel_policy()
    assert not book.has_active(PolicyKind.HOME)
    assert book.count_active(PolicyKind.HOME) == 0


def test_empty_book_has_nothing_active():
    book = PolicyBook()
    assert not book.has_active(PolicyKind.AUTO)
    assert book.count_active(PolicyKind.HOME) == 0


def test_cross_policy_context(book):
    context = book.cross_policy_context()
    assert context.has_active_auto and context.has_active_home

    book.get(1).cancel_policy()
    assert book.cross_policy_context().has_active_home is False


def test_remove_at(book):
    removed = book.remove_at(1)
    assert removed.policy_number == "HOM100002"
    assert [p.policy_number for p in book] == ["AUT100001", "AUT100003"]


@pytest.mark.parametrize("index", [3, 10, -1, -3])
def test_remove_at_out_of_range_leaves_book_unchanged(book, index):
    before = book.policies

    with pytest.raises(PolicyIndexError) as excinfo:
        book.remove_at(index)

    assert excinfo.value.index == index
    assert book.policies == before


def test_index_error_is_an_index_error():
    with pytest.raises(IndexError):
        PolicyBook().remove_at(0)


def test_get_out_of_range(book):
    with pytest.raises(PolicyIndexError):
        book.get(-1)


def test_find(book):
    assert book.find("hom100002 ").policy_number == "HOM100002"
    assert book.find("AUT999999") is None
