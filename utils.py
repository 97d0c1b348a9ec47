"""
Shared image helpers requirements:

- opencv-python
- numpy
"""

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

import cv2
import numpy as np

LOG_VERBOSE = False


class InvalidGeometry(ValueError):
	"""
	Slicing parameters or source image dimensions that cannot produce tiles.
	"""


class InvalidInput(ValueError):
	"""
	A malformed (missing, empty, zero-sized) image handed to a scorer.
	"""


@dataclass(eq=False)
class Tile:
	"""
	One rectangular cell cut out of a larger screenshot, plus where it came from.

	Tiles compare by identity rather than by pixel content, which is what lets
	the feature scorer use them as cache keys.
	"""
	pixels: np.ndarray
	source: Optional[str] = None
	index: int = 0
	region: Optional[tuple] = None # (x, y, w, h) in the source image

	@property
	def width(self):
		return self.pixels.shape[1]

	@property
	def height(self):
		return self.pixels.shape[0]

	@property
	def channels(self):
		return 1 if self.pixels.ndim == 2 else self.pixels.shape[2]

	def with_pixels(self, pixels):
		return replace(self, pixels=pixels)

	def describe(self):
		return {
			'source': self.source,
			'index': self.index,
			'region': list(self.region) if self.region is not None else None,
		}


def set_verbose(verbose):
	global LOG_VERBOSE
	LOG_VERBOSE = bool(verbose)


def log_info(*args):
	if LOG_VERBOSE is False:
		return
	print(*args)


def load_image(path):
	"""
	Load an image, or explain why that wasn't possible
	"""
	image = cv2.imread(str(path), cv2.IMREAD_COLOR)
	if image is None:
		raise ValueError(f'{path} is not an image, or does not exist')
	return image


def save_image(path, image):
	path = Path(path)
	path.parent.mkdir(parents=True, exist_ok=True)
	if not cv2.imwrite(str(path), image):
		raise ValueError(f'could not write {path}')


def pixels_of(item):
	"""
	Scorers take either a Tile or a bare image array.
	"""
	return item.pixels if isinstance(item, Tile) else item


def gray(img):
	if img.ndim == 2:
		return img
	if img.shape[2] == 4:
		return cv2.cvtColor(img, cv2.COLOR_BGRA2GRAY)
	return cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)


def bgr(img):
	if img.ndim == 3 and img.shape[2] == 1:
		img = img[:, :, 0]
	if img.ndim == 2:
		return cv2.cvtColor(np.ascontiguousarray(img), cv2.COLOR_GRAY2BGR)
	if img.shape[2] == 4:
		return cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
	return img


def make_same_size(a, b):
	"""
	Crop whichever image is larger so both share the top-left aligned common area.
	"""
	(h1, w1) = a.shape[:2]
	(h2, w2) = b.shape[:2]
	if h1 != h2:
		if h1 < h2:
			b = b[0:h1, :]
		else:
			a = a[0:h2, :]
	if w1 != w2:
		if w1 < w2:
			b = b[:, 0:w1]
		else:
			a = a[:, 0:w2]
	return (a, b, )


def combine_tiles(tiles, columns=5):
	"""
	Lay tiles out on a black canvas, row by row, so a person can eyeball
	what was found. Every cell is as big as the largest tile; smaller tiles
	sit in the top-left corner of their cell.
	"""
	tiles = list(tiles)
	if len(tiles) == 0:
		return None

	columns = max(1, min(columns, len(tiles)))
	rows = (len(tiles) + columns - 1) // columns
	cell_w = max(t.width for t in tiles)
	cell_h = max(t.height for t in tiles)

	canvas = np.zeros((rows * cell_h, columns * cell_w, 3), dtype=np.uint8)
	for num, tile in enumerate(tiles):
		r, c = divmod(num, columns)
		x, y = c * cell_w, r * cell_h
		canvas[y:y + tile.height, x:x + tile.width] = bgr(tile.pixels)

	return canvas
