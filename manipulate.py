#!/usr/bin/env python3
"""
Run an image through an imgflow pipeline and write the result.
Tasks come from a YAML recipe (--config) and from the command line options,
recipe first.
"""

import asyncio
import logging
import sys

from imgflow.errors import ImgflowError
from imgflow.pipeline import Pipeline
from imgflow.recipe import load_recipe, apply_recipe, validate_recipe


def parse_size(s):
    (w, _, h) = s.lower().partition('x')
    return (int(w), int(h or w))


def build_pipeline(args):
    """Returns (pipeline, export options)"""
    p = Pipeline(verbose=args.verbose, debug=args.debug)
    p.load_blob(args.input, {'fix_orientation': not args.keep_orientation, 'read_exif': args.exif})

    recipe = load_recipe(args.config) if args.config else validate_recipe(None)
    apply_recipe(p, recipe)

    if args.square:
        p.to_square(args.square)
    if args.resize:
        p.resize(*parse_size(args.resize))
    if args.grayscale:
        p.to_grayscale()
    if args.blur:
        p.gaussian_blur(args.blur)
    if args.pixelize:
        p.pixelize(args.pixelize)

    export = dict(recipe.export)
    if args.mime_type:
        export['mime_type'] = args.mime_type
    if args.quality:
        export['quality'] = args.quality
    return (p, export)


async def run(args):
    (p, export) = build_pipeline(args)
    blob = await p.save_as_blob(export['mime_type'], export['quality'])
    path = blob.save(args.output)
    logging.info("wrote %s (%s, %d bytes)", path, blob.mime_type, blob.size)
    if args.exif:
        for (k, v) in sorted(p.get_exif().items(), key=str):
            print(f"{k}: {v}")
    if args.stats:
        p.print_stats()
    return blob


def main(argv=None):
    import argparse
    parser = argparse.ArgumentParser(description="Transform an image with an imgflow pipeline",
                                     formatter_class=argparse.ArgumentDefaultsHelpFormatter)

    parser.add_argument("input", help='Image to read.')
    parser.add_argument("output", help="Where to write the result.")
    parser.add_argument("--config", help='Yaml recipe of steps to apply')
    parser.add_argument("--mime-type", help="Output type; default comes from the recipe, else image/jpeg")
    parser.add_argument("--quality", help="Output quality between 0 and 1")
    parser.add_argument("--square", type=int, help="Crop and scale to an NxN square")
    parser.add_argument("--resize", help="Scale down to fit WxH")
    parser.add_argument("--grayscale", help="Convert to grayscale", action='store_true')
    parser.add_argument("--blur", type=float, help="Gaussian blur radius")
    parser.add_argument("--pixelize", type=float, help="Pixelize with this block fraction")
    parser.add_argument("--keep-orientation", help="Do not apply the EXIF orientation", action='store_true')
    parser.add_argument("--exif", help="Read and print EXIF tags", action='store_true')
    parser.add_argument("--stats", help="Print task timing", action='store_true')
    parser.add_argument("--verbose", help="Log each flush", action='store_true')
    parser.add_argument("--debug", help="Log each task", action='store_true')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO if args.verbose else logging.WARNING)
    try:
        asyncio.run(run(args))
    except (ImgflowError, OSError, ValueError) as e:
        print(f"{args.input}: {e}", file=sys.stderr)
        return 1
    return 0


if __name__=="__main__":
    sys.exit(main())
