import pytest

from argcache.key_order import NULL, InvalidKeySpec, KeyOrder


def test_default_identity_order():
    order = KeyOrder.create(3)

    assert order.positions == (0, 1, 2)
    assert order.depth == 3
    assert order.key_path(("a", "b", "c")) == ("a", "b", "c")


def test_custom_order_and_null_substitution():
    order = KeyOrder.create(3, [2, 0])

    assert order.depth == 2
    assert order.key_path((None, "b", "c")) == ("c", NULL)
    assert order.key_path(("a",)) == (NULL, "a")


def test_empty_order_keys_single_slot():
    assert KeyOrder.create(0).key_path(()) == (NULL,)
    assert KeyOrder.create(2, []).key_path((1, 2)) == (NULL,)
    assert KeyOrder.create(2, []).depth == 1


def test_duplicates_accepted():
    order = KeyOrder.create(2, (0, 0))
    assert order.key_path((5, 6)) == (5, 5)


@pytest.mark.parametrize("key_order", [(0, 2), (-1,), ("0",), (True,)])
def test_invalid_positions_rejected(key_order):
    with pytest.raises(InvalidKeySpec):
        KeyOrder.create(2, key_order)


def test_invalid_arity_rejected():
    with pytest.raises(InvalidKeySpec):
        KeyOrder.create(-1)


def test_lenient_mode_reads_out_of_range_as_null():
    order = KeyOrder.create(1, (0, 3), strict=False)
    assert order.key_path(("x",)) == ("x", NULL)


def test_prefix():
    order = KeyOrder.create(2)

    assert order.prefix(()) == (NULL,)
    assert order.prefix((None,)) == (NULL,)
    assert order.prefix((1, 2)) == (1, 2)
    with pytest.raises(TypeError):
        order.prefix((1, 2, 3))


def test_null_is_not_none():
    assert NULL is not None
    assert repr(NULL) == "NULL"
    assert isinstance(InvalidKeySpec("x"), ValueError)
