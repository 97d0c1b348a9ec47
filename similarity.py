"""
Decide whether two tiles show the same thing.

Similarity requirements:

- opencv-python
- numpy
- scikit-image

Every scorer answers the same question through the same two calls:
score(a, b) gives the raw index, is_similar(a, b) turns it into a verdict.
Either a Tile or a plain image array can be passed in.
"""

import threading
import weakref
from abc import ABC, abstractmethod

import cv2
import numpy as np
from skimage.metrics import structural_similarity

from utils import Tile, InvalidInput, gray, make_same_size, pixels_of


def checked(item):
	"""
	Reject anything we can't meaningfully score, before doing any work on it.
	"""
	image = pixels_of(item)
	if not isinstance(image, np.ndarray):
		raise InvalidInput(f'expected an image array, got {type(image).__name__}')
	if image.ndim not in (2, 3) or (image.ndim == 3 and image.shape[2] not in (1, 3, 4)):
		raise InvalidInput(f'unsupported image shape {image.shape}')
	if image.size == 0 or image.shape[0] == 0 or image.shape[1] == 0:
		raise InvalidInput(f'cannot score a zero-sized image {image.shape}')
	if image.ndim == 3 and image.shape[2] == 1:
		image = image[:, :, 0]
	return np.ascontiguousarray(image)


class Scorer(ABC):
	name = None

	@abstractmethod
	def score(self, a, b):
		pass

	@abstractmethod
	def accepts(self, score):
		pass

	def is_similar(self, a, b):
		return self.accepts(self.score(a, b))

	def __repr__(self):
		options = ', '.join(f'{k}={v!r}' for k, v in vars(self).items() if not k.startswith('_'))
		return f'{type(self).__name__}({options})'


class StatisticalScorer(Scorer):
	"""
	A single global SSIM-style number computed from each tile's mean and
	standard deviation. Very fast, blind to where things are in the tile,
	but good at telling flat colored tiles apart.
	"""
	name = 'statistical'

	def __init__(self, threshold=0.75, c1=1.0):
		self.threshold = threshold
		self.c1 = c1

	def score(self, a, b):
		(mu1, sigma1) = cv2.meanStdDev(gray(checked(a)))
		(mu2, sigma2) = cv2.meanStdDev(gray(checked(b)))
		mu1, mu2 = float(mu1[0][0]), float(mu2[0][0])
		sigma1, sigma2 = float(sigma1[0][0]), float(sigma2[0][0])

		# c1 keeps this finite when both tiles are entirely black
		c1 = self.c1
		return ((2 * mu1 * mu2 + c1) * (2 * sigma1 * sigma2 + c1)) / ((mu1 * mu1 + mu2 * mu2 + c1) * (sigma1 * sigma1 + sigma2 * sigma2 + c1))

	def accepts(self, score):
		return score > self.threshold


class FeatureScorer(Scorer):
	"""
	ORB keypoints, brute force Hamming matching, and Lowe's ratio test.

	Tiles count as the same when more than min_matches descriptors in the
	first tile have a clear winner among the second tile's descriptors.
	min_matches depends heavily on tile size and how busy the tiles are:
	the default of 90 suits full size screenshot cells, small or flat tiles
	need a far lower value.

	Descriptors are computed once per Tile and remembered for as long as
	that Tile is alive, since the set difference compares every tile
	against every other tile.
	"""
	name = 'features'

	def __init__(self, ratio=0.75, min_matches=90, nfeatures=500, cache=True):
		self.ratio = ratio
		self.min_matches = min_matches
		self.nfeatures = nfeatures
		self.cache = cache
		self._descriptors = weakref.WeakKeyDictionary()
		self._lock = threading.Lock()

	def compute(self, image):
		if image.dtype != np.uint8:
			image = cv2.convertScaleAbs(image)
		image = gray(image)
		orb = cv2.ORB_create(nfeatures=self.nfeatures)
		keypoints, descriptors = orb.detectAndCompute(image, None)
		if descriptors is None or len(descriptors) == 0:
			return None
		return descriptors

	def descriptors(self, item, image=None):
		if image is None:
			image = checked(item)
		if not self.cache or not isinstance(item, Tile):
			return self.compute(image)

		with self._lock:
			if item in self._descriptors:
				return self._descriptors[item]

		# two threads may both get here for the same tile; they compute the
		# same descriptors, so it doesn't matter which one is stored.
		descriptors = self.compute(image)
		with self._lock:
			self._descriptors[item] = descriptors
		return descriptors

	def score(self, a, b):
		image_a, image_b = checked(a), checked(b)
		d1 = self.descriptors(a, image_a)
		d2 = self.descriptors(b, image_b)

		# A tile without any features (a flat fill, an all black tile) can't
		# be compared this way, which we treat as "not the same".
		if d1 is None or d2 is None:
			return 0

		matcher = cv2.BFMatcher(cv2.NORM_HAMMING)
		matches = matcher.knnMatch(d1, d2, k=2)

		good = 0
		for pair in matches:
			if len(pair) < 2:
				# only one candidate: nothing to compare the best match against
				continue
			best, second = pair
			if best.distance < self.ratio * second.distance:
				good += 1
		return good

	def accepts(self, score):
		return score > self.min_matches


class StructuralScorer(Scorer):
	"""
	Windowed SSIM over the tiles' common area, via scikit-image.
	"""
	name = 'structural'

	def __init__(self, threshold=0.9):
		self.threshold = threshold

	def score(self, a, b):
		(g1, g2) = make_same_size(gray(checked(a)), gray(checked(b)))

		side = min(g1.shape[:2])
		if side < 3:
			# too small to run SSIM on at all
			return 1.0 if np.array_equal(g1, g2) else 0.0

		# structural_similarity needs an odd window no larger than the image
		win_size = min(7, side if side % 2 == 1 else side - 1)
		return float(structural_similarity(g1, g2, win_size=win_size, data_range=255))

	def accepts(self, score):
		return score >= self.threshold


METHODS = {
	StatisticalScorer.name: StatisticalScorer,
	FeatureScorer.name: FeatureScorer,
	StructuralScorer.name: StructuralScorer,
}


def make_scorer(method='features', **options):
	"""
	Build a scorer by name. Options left as None fall back to that scorer's defaults.
	"""
	try:
		cls = METHODS[method]
	except KeyError:
		raise ValueError(f'unknown similarity method "{method}", use one of: {", ".join(METHODS)}')
	return cls(**{k: v for k, v in options.items() if v is not None})
