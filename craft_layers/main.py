# -*- Mode:Python; indent-tabs-mode:nil; tab-width:4 -*-
#
# Copyright 2025 Canonical Ltd.
#
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU Lesser General Public
# License version 3 as published by the Free Software Foundation.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
# Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

"""Image inspection command line tool.

This is the main entry point for the craft_layers package, invoked
when running `python -mcraft_layers`. It loads an image saved with
`docker save` and displays its metadata, the files visible at a layer,
or the contents of a file.
"""

import argparse
import logging
import shutil
import sys

import pydantic
import yaml

import craft_layers
import craft_layers.errors
from craft_layers import EngineConfig, Image
from craft_layers.sources import load_docker_archive


def main() -> None:
    """Run the command-line interface."""
    options = _parse_arguments()

    if options.version:
        print(f"craft-layers {craft_layers.__version__}")
        sys.exit()

    if options.trace:
        log_level = logging.DEBUG
    else:
        log_level = logging.INFO

    logging.basicConfig(level=log_level)

    if not options.archive:
        print("Error: an image archive must be specified.", file=sys.stderr)
        sys.exit(2)

    try:
        _inspect_image(options)
    except OSError as err:
        msg = err.strerror
        if err.filename:
            msg = f"{err.filename}: {msg}"
        print(f"Error: {msg}.", file=sys.stderr)
        sys.exit(1)
    except pydantic.ValidationError as err:
        print(f"Error: invalid configuration: {err}", file=sys.stderr)
        sys.exit(2)
    except craft_layers.errors.LayersError as err:
        print(f"Error: {err}", file=sys.stderr)
        sys.exit(3)
    except (ValueError, TypeError) as err:
        print(f"Error: {err}", file=sys.stderr)
        sys.exit(4)


def _inspect_image(options: argparse.Namespace) -> None:
    config = _load_config(options.config)

    with load_docker_archive(options.archive, config=config) as image:
        if options.metadata:
            _print_metadata(image)

        if options.list:
            _print_files(image, options.layer)

        if options.cat:
            if options.layer is None:
                reader = image.resolve(options.cat)
            else:
                reader = image.resolve_at_layer(options.layer, options.cat)
            with reader:
                shutil.copyfileobj(reader, sys.stdout.buffer)
            sys.stdout.flush()


def _load_config(filename: str | None) -> EngineConfig:
    if not filename:
        return EngineConfig()

    with open(filename) as config_file:
        data = yaml.safe_load(config_file) or {}

    return EngineConfig.model_validate(data)


def _print_metadata(image: Image) -> None:
    data = {
        "id": image.metadata.id,
        "media-type": image.metadata.media_type,
        "size": image.metadata.size,
        "tags": list(image.metadata.tags),
        "layers": [
            layer.metadata.model_dump(by_alias=True) for layer in image.layers
        ],
    }
    print(yaml.safe_dump(data, sort_keys=False), end="")


def _print_files(image: Image, layer: int | None) -> None:
    tree = image.squashed_tree if layer is None else image.squash_tree(layer)
    for path, node in tree.walk():
        if node.link_target is not None:
            print(f"{path} -> {node.link_target}")
        else:
            print(path)


def _parse_arguments() -> argparse.Namespace:
    prog = "python -m craft_layers"
    description = (
        "A command line interface for the craft_layers module to inspect "
        "the filesystem of container images."
    )

    parser = argparse.ArgumentParser(prog=prog, description=description, add_help=False)
    parser.add_argument(
        "-h",
        "--help",
        action="help",
        default=argparse.SUPPRESS,
        help="Show this help message and exit.",
    )
    parser.add_argument(
        "archive",
        metavar="archive",
        nargs="?",
        help="The image archive created by 'docker save'.",
    )
    parser.add_argument(
        "--config",
        metavar="filename",
        help="The engine configuration file.",
    )
    parser.add_argument(
        "--layer",
        metavar="index",
        type=int,
        help="Inspect the filesystem as seen at the given layer index.",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List the paths visible in the filesystem.",
    )
    parser.add_argument(
        "--cat",
        metavar="path",
        help="Write the contents of a file to standard output.",
    )
    parser.add_argument(
        "--metadata",
        action="store_true",
        help="Display the image and layer metadata.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Display the craft-layers version and exit.",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Display debugging information.",
    )
    return parser.parse_args()
