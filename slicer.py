"""
Cut composite screenshots into the individual tiles we want to compare.

Slicing requirements:

- opencv-python
- imutils
"""

import cv2
import imutils

from utils import Tile, InvalidGeometry, gray, log_info


def _dimensions(image):
	if image is None or image.ndim < 2:
		raise InvalidGeometry('cannot slice a missing image')
	(h, w) = image.shape[:2]
	if w == 0 or h == 0:
		raise InvalidGeometry(f'cannot slice a {w}x{h} image')
	return w, h


def slice_grid(image, rows=5, cols=5, source=None):
	"""
	Split an image into a rows x cols grid, returned in row-major order.

	Cell size is plain integer division, so if the image doesn't divide
	evenly the leftover pixels on the right and bottom edge are simply
	not part of any tile.
	"""
	if rows <= 0 or cols <= 0:
		raise InvalidGeometry(f'grid must be at least 1x1, got {rows}x{cols}')

	w, h = _dimensions(image)
	cell_w = w // cols
	cell_h = h // rows
	if cell_w == 0 or cell_h == 0:
		raise InvalidGeometry(f'a {w}x{h} image is too small for a {rows}x{cols} grid')

	tiles = []
	for r in range(rows):
		for c in range(cols):
			x, y = c * cell_w, r * cell_h
			crop = image[y:y + cell_h, x:x + cell_w].copy()
			tiles.append(Tile(crop, source, len(tiles), (x, y, cell_w, cell_h)))

	log_info(f'sliced {source or "image"} into {len(tiles)} tiles of {cell_w}x{cell_h}')
	return tiles


def slice_contours(image, source=None, min_size=1, canny_low=50, canny_high=150):
	"""
	Find tiles by their outlines rather than by a fixed grid: edge detect,
	then cut out the bounding box of every contour we find.
	"""
	_dimensions(image)

	edges = cv2.Canny(gray(image), canny_low, canny_high)
	contours = cv2.findContours(edges, cv2.RETR_LIST, cv2.CHAIN_APPROX_SIMPLE)
	contours = imutils.grab_contours(contours)

	tiles = []
	for c in contours:
		(x, y, w, h) = cv2.boundingRect(c)
		if w < min_size or h < min_size:
			# slivers along text and anti-aliased edges, not tiles
			continue
		crop = image[y:y + h, x:x + w].copy()
		tiles.append(Tile(crop, source, len(tiles), (x, y, w, h)))

	log_info(f'found {len(tiles)} contour tiles in {source or "image"}')
	return tiles
