"""LayerConf command line."""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .builder import ConfigBuilder
from .deserialize import deserialize
from .exceptions import LayerConfError
from .files import SUPPORTED_SUFFIXES
from .schema import describe_target
from .sources import OverrideSource
from .utils import dump_yaml, import_object

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser of the ``layerconf`` command."""
    parser = argparse.ArgumentParser(
        prog="layerconf", description="Merge configuration sources and resolve ${...} references"
    )
    parser.add_argument(
        "configs",
        nargs="*",
        help="Configuration file (.yaml, .yml, .json, .toml) or parameter override in format <key path>=<value in yaml>.",
    )
    parser.add_argument("--env", dest="env_prefix", help="Load environment variables starting with PREFIX")
    parser.add_argument("--separator", default="__", help="Separator between path segments of environment variables")
    parser.add_argument("--target", help="Deserialize into this class or function (module.Name) to validate")
    parser.add_argument("--describe", help="Show the parameters of a class or function (module.Name) and exit")
    parser.add_argument("--format", choices=["yaml", "json"], default="yaml", help="Output format")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log the build steps")
    return parser


def create_builder(configs: List[str], env_prefix: Optional[str] = None, separator: str = "__") -> ConfigBuilder:
    """Create a builder from command line items.

    Args:
        configs: Files and overrides, in precedence order  # (later items win)
        env_prefix: Prefix of environment variables applied after all items, skipped if None
        separator: Separator between path segments of environment variables

    Returns:
        Builder holding one source per item
    """
    builder = ConfigBuilder()
    for item in configs:
        if item.lower().endswith(SUPPORTED_SUFFIXES) and "=" not in item:
            builder.with_file(item)
        else:
            builder.with_source(OverrideSource([item]))
    if env_prefix:
        builder.with_env(env_prefix, separator)
    return builder


def main(args: Optional[List[str]] = None) -> int:
    """Run the ``layerconf`` command.

    Args:
        args: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit status  # (0 on success, 1 on configuration errors)
    """
    parsed_args = build_parser().parse_args(args)
    if parsed_args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        if parsed_args.describe:
            print(describe_target(import_object(parsed_args.describe)))
            return 0

        builder = create_builder(parsed_args.configs, parsed_args.env_prefix, parsed_args.separator)
        tree = builder.build_tree()
        if parsed_args.target:
            deserialize(tree, import_object(parsed_args.target), strict=builder.strict)
            logger.info("Configuration is valid for %s", parsed_args.target)
    except (LayerConfError, ImportError) as e:
        print(f"layerconf: error: {e}", file=sys.stderr)
        return 1

    if parsed_args.format == "json":
        print(json.dumps(tree, indent=2, default=str))
    else:
        print(dump_yaml(tree), end="")
    return 0
