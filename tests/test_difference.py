import numpy as np
import pytest

from difference import difference, symmetric_difference
from similarity import FeatureScorer
from slicer import slice_grid
from utils import Tile, InvalidInput
from synthetic import noise, flat, screenshot_pair


class ExactScorer:
    def __init__(self):
        self.compared = []

    @property
    def calls(self):
        return len(self.compared)

    def is_similar(self, a, b):
        self.compared.append((a, b))
        return np.array_equal(a.pixels, b.pixels)


def solid_tiles(*values, source='a'):
    return [Tile(flat(4, 4, (v, v, v)), source, i) for i, v in enumerate(values)]


def test_difference_with_itself_is_empty():
    tiles = solid_tiles(10, 20, 30, 40)
    assert difference(tiles, tiles, ExactScorer()) == []


def test_difference_with_nothing_is_everything():
    tiles = solid_tiles(40, 10, 30)
    result = difference(tiles, [], ExactScorer())
    assert result == tiles
    assert [t.index for t in result] == [0, 1, 2]


def test_difference_of_nothing_is_nothing():
    assert difference([], solid_tiles(1, 2), ExactScorer()) == []


def test_difference_keeps_order_of_first_collection():
    a = solid_tiles(50, 1, 40, 2, 30)
    b = solid_tiles(1, 2, source='b')
    result = difference(a, b, ExactScorer())
    assert [t.index for t in result] == [0, 2, 4]
    assert all(t.source == 'a' for t in result)


def test_difference_does_not_deduplicate():
    a = solid_tiles(7, 7, 7)
    assert len(difference(a, solid_tiles(8), ExactScorer())) == 3


def test_difference_stops_at_first_match():
    scorer = ExactScorer()
    difference(solid_tiles(1), solid_tiles(1, 2, 3, 4), scorer)
    assert scorer.calls == 1


def test_difference_accepts_generators():
    tiles = solid_tiles(1, 2, 3)
    result = difference((t for t in tiles), iter(solid_tiles(2)), ExactScorer())
    assert [t.index for t in result] == [0, 2]


@pytest.mark.parametrize('batch_size', [None, 1, 3, 100])
def test_parallel_difference_matches_sequential(batch_size):
    a = solid_tiles(*range(0, 60, 3))
    b = solid_tiles(*range(0, 60, 4), source='b')
    expected = difference(a, b, ExactScorer())
    assert difference(a, b, ExactScorer(), workers=4, batch_size=batch_size) == expected


def test_parallel_difference_stops_after_matching_batch():
    scorer = ExactScorer()
    difference(solid_tiles(1), solid_tiles(9, 1, 2, 3, 4, 5, 6, 7), scorer, workers=2, batch_size=2)
    assert scorer.calls == 2


class BrokenScorer:
    def is_similar(self, a, b):
        raise InvalidInput('broken tile')


@pytest.mark.parametrize('workers', [1, 3])
def test_scorer_errors_propagate(workers):
    with pytest.raises(InvalidInput):
        difference(solid_tiles(1, 2), solid_tiles(3), BrokenScorer(), workers=workers)


def test_symmetric_difference():
    a = solid_tiles(1, 2, 3)
    b = solid_tiles(2, 3, 4, 5, source='b')
    only_a, only_b = symmetric_difference(a, b, ExactScorer())
    assert [t.index for t in only_a] == [0]
    assert [t.index for t in only_b] == [2, 3]


@pytest.mark.parametrize('workers', [1, 4])
def test_one_changed_cell_between_screenshots(workers):
    first, second = screenshot_pair(cell=(2, 2))
    tiles_a = slice_grid(first, 5, 5, 'first.png')
    tiles_b = slice_grid(second, 5, 5, 'second.png')
    scorer = FeatureScorer(min_matches=20)

    only_a, only_b = symmetric_difference(tiles_a, tiles_b, scorer, workers=workers)

    assert [(t.source, t.index) for t in only_a] == [('first.png', 12)]
    assert [(t.source, t.index) for t in only_b] == [('second.png', 12)]


def test_unchanged_screenshots_have_no_difference():
    image = noise(500, 500, seed=11)
    tiles_a = slice_grid(image, 5, 5)
    tiles_b = slice_grid(image.copy(), 5, 5)
    assert difference(tiles_a, tiles_b, FeatureScorer(min_matches=20)) == []


@pytest.mark.parametrize('batch_size', [0, -1])
@pytest.mark.parametrize('workers', [1, 2])
def test_difference_rejects_bad_batch_size(batch_size, workers):
    tiles = solid_tiles(1, 2)
    with pytest.raises(ValueError):
        difference(tiles, tiles, ExactScorer(), workers=workers, batch_size=batch_size)
