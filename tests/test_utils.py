import numpy as np
import pytest

import utils
from utils import Tile, combine_tiles, make_same_size, load_image, save_image
from synthetic import noise, flat


def test_tile_dimensions():
    t = Tile(noise(7, 11), 'x.png', 4, (0, 0, 11, 7))
    assert (t.width, t.height, t.channels) == (11, 7, 3)
    assert Tile(np.zeros((3, 2), dtype=np.uint8)).channels == 1


def test_tiles_compare_by_identity():
    pixels = noise(3, 3)
    a = Tile(pixels)
    b = Tile(pixels.copy())
    assert a != b
    assert a == a
    assert len({a, b}) == 2


def test_tile_describe():
    t = Tile(noise(2, 2), 'x.png', 4, (10, 20, 2, 2))
    assert t.describe() == {'source': 'x.png', 'index': 4, 'region': [10, 20, 2, 2]}


def test_make_same_size_crops_to_common_area():
    a, b = make_same_size(noise(10, 20), noise(15, 12))
    assert a.shape == b.shape == (10, 12, 3)


def test_combine_tiles_lays_out_rows():
    tiles = [Tile(flat(10, 20, (v, v, v))) for v in (10, 20, 30, 40, 50)]
    mosaic = combine_tiles(tiles, columns=2)
    assert mosaic.shape == (30, 40, 3)
    assert mosaic[0, 0].tolist() == [10, 10, 10]
    assert mosaic[0, 20].tolist() == [20, 20, 20]
    assert mosaic[10, 0].tolist() == [30, 30, 30]
    assert mosaic[20, 0].tolist() == [50, 50, 50]
    # last row has a single tile, the rest stays black
    assert not mosaic[20:, 20:].any()


def test_combine_tiles_pads_smaller_tiles():
    tiles = [Tile(flat(10, 10, (255, 255, 255))), Tile(np.full((4, 6), 99, dtype=np.uint8))]
    mosaic = combine_tiles(tiles)
    assert mosaic.shape == (10, 20, 3)
    assert mosaic[0, 10].tolist() == [99, 99, 99]
    assert not mosaic[4:, 10:].any()


def test_combine_no_tiles():
    assert combine_tiles([]) is None


def test_save_and_load(tmp_path):
    image = noise(12, 9)
    path = tmp_path / 'nested' / 'image.png'
    save_image(path, image)
    assert np.array_equal(load_image(path), image)


def test_load_missing_image(tmp_path):
    with pytest.raises(ValueError):
        load_image(tmp_path / 'missing.png')


def test_log_info_respects_verbose(capsys):
    utils.set_verbose(False)
    utils.log_info('quiet')
    utils.set_verbose(True)
    utils.log_info('loud')
    utils.set_verbose(False)
    assert capsys.readouterr().out == 'loud\n'
