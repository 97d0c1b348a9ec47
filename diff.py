"""
Check whether two tile images count as the same tile.

Exits with 1 when they don't, so this can be dropped into a shell script.
"""

import sys
import argparse

import utils
from similarity import METHODS, make_scorer

parser = argparse.ArgumentParser(description='Compare two tile images.')
parser.add_argument('first', help='The path for the first tile.')
parser.add_argument('second', help='The path for the second tile.')
parser.add_argument('-m', '--method', choices=sorted(METHODS), default='features', help='Similarity method. Defaults to features.')
parser.add_argument('-t', '--threshold', type=float, help='statistical/structural: minimum score for a match.')
parser.add_argument('--ratio', type=float, help='features: ratio test constant. Defaults to 0.75.')
parser.add_argument('--min-matches', type=int, help='features: good matches needed for a match. Defaults to 90.')
parser.add_argument('-v', '--verbose', action='store_true', help='Log progress to stdout.')


def main(argv=None):
	args = parser.parse_args(argv)
	utils.set_verbose(args.verbose)

	try:
		first = utils.load_image(args.first)
		second = utils.load_image(args.second)
	except ValueError as err:
		parser.error(str(err))

	if args.method == 'features':
		scorer = make_scorer(args.method, ratio=args.ratio, min_matches=args.min_matches)
	else:
		scorer = make_scorer(args.method, threshold=args.threshold)

	utils.log_info(f'scoring {args.first} against {args.second} using {scorer}')
	score = scorer.score(first, second)
	similar = scorer.accepts(score)

	print(f'{scorer.name} score: {score}')
	if not similar:
		print('tiles differ.')
		return 1
	print('tiles match.')
	return 0


if __name__ == '__main__':
	sys.exit(main())
