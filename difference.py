"""
Find the tiles in one collection that have no counterpart in another.

Similarity isn't transitive, so there is no way to bucket or hash tiles:
every tile in A gets checked against the tiles in B until one of them
matches, or until we run out of tiles in B.
"""

from concurrent.futures import ThreadPoolExecutor

from utils import log_info


def has_match(tile, candidates, scorer):
	return any(scorer.is_similar(tile, other) for other in candidates)


def has_match_batched(pool, tile, candidates, scorer, batch_size):
	"""
	Score candidates a batch at a time on the pool, and stop as soon as
	a batch turns up a match.
	"""
	for start in range(0, len(candidates), batch_size):
		batch = candidates[start:start + batch_size]
		found = list(pool.map(lambda other: scorer.is_similar(tile, other), batch))
		if any(found):
			return True
	return False


def difference(collection_a, collection_b, scorer, workers=1, batch_size=None):
	"""
	Everything in collection_a for which nothing in collection_b is similar,
	in collection_a's original order.

	With workers > 1 the comparisons for each tile in A run concurrently,
	batch_size (default: workers) at a time. The result is the same either way.
	"""
	tiles = list(collection_a)
	candidates = list(collection_b)

	if batch_size is not None and batch_size < 1:
		raise ValueError(f'batch_size must be at least 1, got {batch_size}')

	if workers <= 1:
		unique = [t for t in tiles if not has_match(t, candidates, scorer)]
	else:
		if batch_size is None:
			batch_size = workers
		with ThreadPoolExecutor(max_workers=workers) as pool:
			unique = [t for t in tiles if not has_match_batched(pool, t, candidates, scorer, batch_size)]

	log_info(f'{len(unique)} of {len(tiles)} tiles have no match among {len(candidates)} candidates')
	return unique


def symmetric_difference(collection_a, collection_b, scorer, **kwargs):
	"""
	Returns (only in a, only in b). The two directions are computed
	independently, and need not mirror each other exactly.
	"""
	collection_a = list(collection_a)
	collection_b = list(collection_b)
	return (
		difference(collection_a, collection_b, scorer, **kwargs),
		difference(collection_b, collection_a, scorer, **kwargs),
	)
