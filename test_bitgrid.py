import pytest

from bitgrid import MAX_CELLS, Canvas, CapacityError


def test_default_dimensions():
    c = Canvas()
    assert c.dimensions() == (64, 64)
    assert c.cell_count == 4096
    assert not any(c.bits())


def test_set_and_get():
    c = Canvas(4, 3)
    assert c.set(2, 3, True)
    assert c.get(2, 3)
    assert not c.get(3, 2)
    # row-major: (2, 3) is the last cell
    assert c.bits()[-1]


def test_out_of_bounds_reads_fail_closed():
    c = Canvas(2, 2)
    for row, col in [(-1, 0), (0, -1), (2, 0), (0, 2), (100, 100)]:
        assert c.get(row, col) is False


def test_out_of_bounds_writes_are_dropped():
    c = Canvas(2, 2)
    before = c.copy()
    for row, col in [(-1, 0), (0, -1), (2, 0), (0, 2)]:
        assert c.set(row, col, True) is False
    assert c == before


def test_set_reports_change_only_once():
    c = Canvas(2, 2)
    assert c.set(0, 1, True) is True
    assert c.set(0, 1, True) is False
    assert c.set(0, 1, False) is True


def test_capacity_is_enforced():
    Canvas(256, 256)
    with pytest.raises(CapacityError):
        Canvas(257, 256)
    with pytest.raises(CapacityError):
        Canvas(10, 10, max_cells=99)
    assert issubclass(CapacityError, ValueError)
    assert MAX_CELLS == 65536


def test_rejects_non_positive_dimensions():
    with pytest.raises(ValueError):
        Canvas(0, 5)
    with pytest.raises(ValueError):
        Canvas(5, -1)


def test_from_bits_and_set_cells():
    c = Canvas.from_bits(3, 2, [1, 0, 0, 0, 1, 1])
    assert list(c.set_cells()) == [(0, 0), (1, 1), (1, 2)]


def test_copy_is_independent():
    c = Canvas(3, 3)
    c.set(1, 1, True)
    d = c.copy()
    d.set(0, 0, True)
    assert c != d
    assert not c.get(0, 0)
