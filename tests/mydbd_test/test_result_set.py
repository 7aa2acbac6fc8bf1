# tests/mydbd_test/test_result_set.py
from types import SimpleNamespace

import pytest

from mydbd import FetchMode, InvalidArgumentError, OutOfRangeError, ResultSet, StoredResult

FIELDS = ('id', 'name', 'email')
ROWS = [
    (1, 'alice', 'alice@example.com'),
    (2, 'bob', None),
    (3, 'carol', 'carol@example.com'),
]


class User:
    def __init__(self, id, name, email):
        self.id = id
        self.name = name
        self.email = email


@pytest.fixture
def res():
    return ResultSet(StoredResult(FIELDS, ROWS))


@pytest.mark.parametrize("mode", [FetchMode.ORDERED, FetchMode.ASSOC, FetchMode.OBJECT, FetchMode.COLUMN])
def test_next_returns_every_row_then_none(res, mode):
    res.set_fetch_mode(mode)
    count = 0
    for _ in range(len(ROWS)):
        assert res.row_count() == len(ROWS)
        assert res.next() is not None
        count += 1
    assert count == len(ROWS)
    assert res.next() is None
    assert res.next() is None
    assert res.row_count() == len(ROWS)


def test_row_shapes(res):
    assert res.next() == [1, 'alice', 'alice@example.com']
    assert res.next(FetchMode.ASSOC) == {'id': 2, 'name': 'bob', 'email': None}
    obj = res.next(FetchMode.OBJECT)
    assert isinstance(obj, SimpleNamespace)
    assert obj.name == 'carol'


def test_ordered_row_is_a_copy(res):
    row = res.next()
    row[0] = 99
    res.seek(0)
    assert res.next()[0] == 1


def test_object_mode_with_custom_class(res):
    res.set_fetch_mode(FetchMode.OBJECT, User)
    user = res.next()
    assert isinstance(user, User)
    assert (user.id, user.name) == (1, 'alice')
    assert res.get_fetch_class() is User


def test_object_mode_rejects_non_callable(res):
    with pytest.raises(InvalidArgumentError):
        res.set_fetch_mode(FetchMode.OBJECT, 'not a class')


def test_column_mode(res):
    res.set_fetch_mode(FetchMode.COLUMN, 'name')
    assert res.fetch_all() == ['alice', 'bob', 'carol']


def test_column_mode_keeps_nulls(res):
    res.set_fetch_mode(FetchMode.COLUMN, 2)
    assert res.fetch_all() == ['alice@example.com', None, 'carol@example.com']


def test_set_fetch_mode_chains_and_validates(res):
    assert res.set_fetch_mode(FetchMode.ASSOC) is res
    assert res.get_fetch_mode() is FetchMode.ASSOC
    assert res.set_fetch_mode(1).get_fetch_mode() is FetchMode.ORDERED
    with pytest.raises(InvalidArgumentError):
        res.set_fetch_mode(42)
    with pytest.raises(InvalidArgumentError):
        res.set_fetch_mode('assoc')
    with pytest.raises(InvalidArgumentError):
        res.set_fetch_mode(FetchMode.COLUMN, 1.5)


def test_current_does_not_consume(res):
    assert res.current() == res.next()
    assert res.key() == 1
    assert res.current() == [2, 'bob', None]
    assert res.next() == [2, 'bob', None]


def test_current_past_end(res):
    res.seek(2)
    res.next()
    assert res.current() is None
    assert res.key() == 3


def test_seek(res):
    res.seek(2)
    assert res.next()[0] == 3
    res.seek(0)
    assert res.next()[0] == 1
    assert res.key() == 1


@pytest.mark.parametrize("position", [-1, 3, 1.0, True])
def test_seek_out_of_range(res, position):
    with pytest.raises(OutOfRangeError):
        res.seek(position)


def test_out_of_range_is_an_index_error(res):
    with pytest.raises(IndexError):
        res.seek(len(ROWS))


def test_rewind_and_valid(res):
    res.fetch_all()
    assert not res.valid()
    res.rewind()
    assert res.valid()
    assert res.key() == 0


def test_rewind_on_empty_result():
    empty = ResultSet(StoredResult(FIELDS, []))
    empty.rewind()
    assert empty.next() is None
    assert len(empty) == 0
    assert empty.field_count() == 3


def test_fetch_column(res):
    assert res.fetch_column() == 1
    assert res.fetch_column('email') is None
    assert res.fetch_column(1) == 'carol'
    assert res.fetch_column() is None


def test_fetch_column_errors(res):
    with pytest.raises(InvalidArgumentError):
        res.fetch_column(True)
    with pytest.raises(InvalidArgumentError):
        res.fetch_column(None)
    with pytest.raises(OutOfRangeError):
        res.fetch_column(5)
    with pytest.raises(OutOfRangeError):
        res.fetch_column('missing')


def test_explicit_mode_fetches(res):
    assert res.fetch_array() == [1, 'alice', 'alice@example.com']
    assert res.fetch_assoc()['name'] == 'bob'
    assert res.fetch_object().id == 3
    assert res.fetch_assoc() is None


def test_duplicate_names_collapse_to_last():
    res = ResultSet(StoredResult(('id', 'id'), [(1, 2)]))
    assert res.next(FetchMode.ASSOC) == {'id': 2}


def test_iteration_starts_at_position(res):
    res.next()
    assert [row[0] for row in res] == [2, 3]


def test_fetch_all_in_assoc_mode(res):
    rows = res.set_fetch_mode(FetchMode.ASSOC).fetch_all()
    assert [row['id'] for row in rows] == [1, 2, 3]
