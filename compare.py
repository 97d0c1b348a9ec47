"""
Find the screenshot tiles that only exist in one of two directories.

Every image in both directories gets cut into tiles (a fixed grid by
default, or by contour detection), optionally has its decorative colors
masked out, and then every tile from one side is checked against the
tiles from the other side.

Compare script requires:

- argparse
- opencv-python
"""

import sys
import json
import argparse

from pathlib import Path

import utils
from utils import log_info
from mask import parse_color, mask_tiles, DEFAULT_TOLERANCE
from slicer import slice_grid, slice_contours
from similarity import METHODS, make_scorer
from difference import symmetric_difference

IMAGE_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.bmp', '.webp', '.tif', '.tiff'}

parser = argparse.ArgumentParser(description='Find screenshot tiles that are only present in one of two directories.')
parser.add_argument('dir_a', help='The first directory of screenshots.')
parser.add_argument('dir_b', help='The second directory of screenshots.')
parser.add_argument('-r', '--rows', type=int, default=5, help='Number of grid rows per screenshot. Defaults to 5.')
parser.add_argument('-c', '--cols', type=int, default=5, help='Number of grid columns per screenshot. Defaults to 5.')
parser.add_argument('-C', '--contours', action='store_true', help='Find tiles by contour detection instead of a fixed grid.')
parser.add_argument('--min-size', type=int, default=8, help='Smallest contour tile side, in pixels. Defaults to 8.')
parser.add_argument('-k', '--mask-color', action='append', type=parse_color, metavar='B,G,R', help='A decorative color to black out before comparing. May be repeated.')
parser.add_argument('-t', '--tolerance', type=float, default=DEFAULT_TOLERANCE, help=f'Per channel tolerance for masked colors. Defaults to {DEFAULT_TOLERANCE}.')
parser.add_argument('-m', '--method', choices=sorted(METHODS), default='features', help='Similarity method. Defaults to features.')
parser.add_argument('--ssim-threshold', type=float, help='statistical: minimum index for a match. Defaults to 0.75.')
parser.add_argument('--ratio', type=float, help='features: ratio test constant. Defaults to 0.75.')
parser.add_argument('--min-matches', type=int, help='features: good matches needed for a match. Defaults to 90.')
parser.add_argument('--nfeatures', type=int, help='features: maximum ORB keypoints per tile. Defaults to 500.')
parser.add_argument('--structural-threshold', type=float, help='structural: minimum SSIM for a match. Defaults to 0.9.')
parser.add_argument('-q', '--workers', type=int, default=1, help='Number of comparisons to run concurrently. Defaults to 1.')
parser.add_argument('-o', '--output-dir', default='results', help='Directory for mosaics and the report. Defaults to results.')
parser.add_argument('-n', '--mosaic-columns', type=int, default=5, help='Tiles per row in the result mosaics. Defaults to 5.')
parser.add_argument('-w', '--write', action='store_true', help='Write the result mosaics and report to disk.')
parser.add_argument('-v', '--verbose', action='store_true', help='Log progress to stdout.')


def scorer_options(args):
    if args.method == 'statistical':
        return {'threshold': args.ssim_threshold}
    if args.method == 'structural':
        return {'threshold': args.structural_threshold}
    return {
        'ratio': args.ratio,
        'min_matches': args.min_matches,
        'nfeatures': args.nfeatures,
    }


def list_images(directory):
    directory = Path(directory)
    if not directory.is_dir():
        raise NotADirectoryError(directory)
    return sorted(
        p for p in directory.iterdir()
        if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
    )


def process_directory(directory, rows=5, cols=5, contours=False, min_size=8, palette=(), tolerance=DEFAULT_TOLERANCE):
    """
    Turn every screenshot in a directory into tiles, in file name order.
    Files that can't be read as images are logged and skipped.
    """
    tiles = []
    for path in list_images(directory):
        try:
            image = utils.load_image(path)
        except ValueError as err:
            log_info(f'Skipping {path}: {err}')
            continue

        if contours:
            found = slice_contours(image, str(path), min_size=min_size)
        else:
            found = slice_grid(image, rows, cols, str(path))

        if palette:
            found = mask_tiles(found, palette, tolerance)
        tiles.extend(found)

    log_info(f'{len(tiles)} tiles from {directory}')
    return tiles


def write_results(output_dir, only_in_a, only_in_b, columns=5):
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    for name, tiles in (('only_in_a', only_in_a), ('only_in_b', only_in_b)):
        mosaic = utils.combine_tiles(tiles, columns)
        if mosaic is not None:
            log_info(f'Creating {output_dir / name}.png')
            utils.save_image(output_dir / f'{name}.png', mosaic)

    report = {
        'only_in_a': [t.describe() for t in only_in_a],
        'only_in_b': [t.describe() for t in only_in_b],
    }
    with open(output_dir / 'diffs.json', 'w') as result_file:
        result_file.write(json.dumps(report, indent=2))


def print_missing(label, tiles):
    print(f'Only in {label}:')
    for t in tiles:
        print(f'  tile {t.index} {tuple(t.region)} in {t.source}')


def main(argv=None):
    args = parser.parse_args(argv)
    utils.set_verbose(args.verbose)

    for directory in (args.dir_a, args.dir_b):
        if not Path(directory).is_dir():
            parser.error(f'{directory} is not a directory')

    slicing = {
        'rows': args.rows,
        'cols': args.cols,
        'contours': args.contours,
        'min_size': args.min_size,
        'palette': args.mask_color or [],
        'tolerance': args.tolerance,
    }

    try:
        tiles_a = process_directory(args.dir_a, **slicing)
        tiles_b = process_directory(args.dir_b, **slicing)
    except utils.InvalidGeometry as err:
        parser.error(str(err))

    scorer = make_scorer(args.method, **scorer_options(args))
    log_info(f'comparing {len(tiles_a)} tiles against {len(tiles_b)} tiles using {scorer}')
    only_in_a, only_in_b = symmetric_difference(tiles_a, tiles_b, scorer, workers=args.workers)

    print_missing(args.dir_a, only_in_a)
    print_missing(args.dir_b, only_in_b)

    if args.write:
        write_results(args.output_dir, only_in_a, only_in_b, args.mosaic_columns)

    differences = len(only_in_a) + len(only_in_b)
    if differences > 0:
        print(f'{differences} unique tiles found.')
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
