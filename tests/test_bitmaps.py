import pytest

from kaaengine.bitmaps import Bitmap, BitmapView


def test_bitmap_creation_and_lookups():
    bitmap = Bitmap((5, 5))
    assert all(bitmap.at(i, j) == 0 for i in range(5) for j in range(5))

    bitmap.set(1, 2, 100)
    for i in range(5):
        for j in range(5):
            expected = 100 if (i, j) == (1, 2) else 0
            assert bitmap.at(i, j) == expected


def test_bitmap_creation_and_lookups_four_channel():
    bitmap = Bitmap((5, 5), fill=(0, 0, 0, 0))
    assert all(bitmap.at(i, j) == (0, 0, 0, 0) for i in range(5) for j in range(5))

    bitmap[1, 2] = (10, 20, 30, 100)
    for i in range(5):
        for j in range(5):
            expected = (10, 20, 30, 100) if (i, j) == (1, 2) else (0, 0, 0, 0)
            assert bitmap.at(i, j) == expected


@pytest.fixture
def src_bitmap():
    bitmap = Bitmap((3, 3))
    bitmap.set(0, 0, 10)
    bitmap.set(0, 1, 5)
    bitmap.set(1, 0, 4)
    bitmap.set(1, 1, 20)
    bitmap.set(2, 2, 30)
    return bitmap


def test_blit_copy(src_bitmap):
    bitmap = Bitmap((3, 3))
    bitmap.blit(src_bitmap, (0, 0))
    expected = {
        (0, 0): 10, (0, 1): 5, (0, 2): 0,
        (1, 0): 4, (1, 1): 20, (1, 2): 0,
        (2, 0): 0, (2, 1): 0, (2, 2): 30,
    }
    for (x, y), value in expected.items():
        assert bitmap.at(x, y) == value


def test_blit_copy_overflow(src_bitmap):
    bitmap = Bitmap((3, 3))
    with pytest.raises(ValueError, match="would overflow X"):
        bitmap.blit(src_bitmap, (1, 0))
    with pytest.raises(ValueError, match="would overflow Y"):
        bitmap.blit(src_bitmap, (0, 1))


def test_blit_with_offset(src_bitmap):
    bitmap = Bitmap((5, 5))
    bitmap.blit(src_bitmap, (1, 2))
    nonzero = {(1, 2): 10, (1, 3): 5, (2, 2): 4, (2, 3): 20, (3, 4): 30}
    for x in range(5):
        for y in range(5):
            assert bitmap.at(x, y) == nonzero.get((x, y), 0)


def test_out_of_bounds_access_raises():
    bitmap = Bitmap((3, 2))
    with pytest.raises(IndexError, match="exceeds X"):
        bitmap.at(3, 0)
    with pytest.raises(IndexError, match="exceeds Y"):
        bitmap.at(0, 2)


def test_view_writes_through_to_bitmap():
    bitmap = Bitmap((2, 2))
    view = bitmap.view()
    view.set(1, 1, 7)
    assert bitmap.at(1, 1) == 7
    assert bitmap.container == [0, 0, 0, 7]


def test_view_requires_enough_content():
    with pytest.raises(ValueError):
        BitmapView([0, 0, 0], (2, 2))
    with pytest.raises(ValueError):
        BitmapView(None, (0, 0))