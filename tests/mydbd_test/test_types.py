# tests/mydbd_test/test_types.py
from decimal import Decimal

import pytest

from mydbd.errors import InvalidArgumentError, TypeMismatchError
from mydbd.types import FetchMode, ParamType, coerce_param, infer_param_type


def test_fetch_mode_coerce():
    assert FetchMode.coerce(2) is FetchMode.ASSOC
    assert FetchMode.coerce(FetchMode.COLUMN) is FetchMode.COLUMN
    for invalid in (0, 5, True, '1', None, 1.0):
        with pytest.raises(InvalidArgumentError):
            FetchMode.coerce(invalid)


def test_param_type_coerce():
    assert ParamType.coerce('blob') is ParamType.BLOB
    assert ParamType.coerce(ParamType.DOUBLE) is ParamType.DOUBLE
    with pytest.raises(TypeMismatchError):
        ParamType.coerce('datetime')


@pytest.mark.parametrize("value, expected", [
    (1, ParamType.INTEGER),
    (False, ParamType.INTEGER),
    (1.5, ParamType.DOUBLE),
    ('1', ParamType.STRING),
    (Decimal('1.5'), ParamType.STRING),
    (b'raw', ParamType.STRING),
    (None, ParamType.STRING),
])
def test_infer_param_type(value, expected):
    assert infer_param_type(value) is expected


@pytest.mark.parametrize("value, param_type, expected", [
    (None, ParamType.INTEGER, None),
    ('42', ParamType.INTEGER, 42),
    ('4.9', ParamType.INTEGER, 4),
    (Decimal('7.0'), ParamType.INTEGER, 7),
    (True, ParamType.INTEGER, 1),
    (3, ParamType.DOUBLE, 3.0),
    ('0.5', ParamType.DOUBLE, 0.5),
    (12, ParamType.STRING, '12'),
    (False, ParamType.STRING, '0'),
    ('text', ParamType.STRING, 'text'),
    ('é', ParamType.BLOB, 'é'.encode('utf-8')),
    (bytearray(b'ab'), ParamType.BLOB, b'ab'),
])
def test_coerce_param(value, param_type, expected):
    assert coerce_param(value, param_type) == expected


@pytest.mark.parametrize("value, param_type", [
    ('abc', ParamType.INTEGER),
    ([1], ParamType.INTEGER),
    ('x', ParamType.DOUBLE),
])
def test_coerce_param_failure(value, param_type):
    with pytest.raises(TypeMismatchError):
        coerce_param(value, param_type)
