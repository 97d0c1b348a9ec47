"""
Blank out "decorative" colors (page backgrounds, card borders, ...) so that
two tiles don't look alike just because they share the same chrome.
"""

import cv2
import numpy as np

from utils import bgr

DEFAULT_TOLERANCE = 30.0


def parse_color(value):
	"""
	Turn a "B,G,R" command line value into a color triple.
	"""
	parts = [p.strip() for p in value.split(',')]
	if len(parts) != 3:
		raise ValueError(f'expected B,G,R but got "{value}"')
	try:
		color = tuple(int(p) for p in parts)
	except ValueError:
		raise ValueError(f'"{value}" contains a non-integer channel')
	if any(v < 0 or v > 255 for v in color):
		raise ValueError(f'"{value}" has a channel outside 0..255')
	return color


def _band(color, tolerance):
	color = np.asarray(color, dtype=np.float64)
	lower = np.clip(np.ceil(color - tolerance), 0, 255)
	upper = np.clip(np.floor(color + tolerance), 0, 255)
	return lower.astype(np.uint8), upper.astype(np.uint8)


def apply_mask(image, palette, tolerance=DEFAULT_TOLERANCE):
	"""
	Return a copy of the image where every pixel that lies within
	[color - tolerance, color + tolerance] on all three channels, for any
	color in the palette, is set to black. The input is left alone.
	"""
	tolerance = max(0.0, float(tolerance))
	result = bgr(image).copy()

	for color in palette:
		lower, upper = _band(color, tolerance)
		# inRange is inclusive on both ends, which is what we want
		hits = cv2.inRange(result, lower, upper)
		result[hits > 0] = 0

	return result


def mask_tiles(tiles, palette, tolerance=DEFAULT_TOLERANCE):
	return [t.with_pixels(apply_mask(t.pixels, palette, tolerance)) for t in tiles]
