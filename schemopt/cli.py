#!/usr/bin/env python3
"""
Remove hidden blocks from a Litematica schematic.

A flood fill starts at a seed block placed outside the build (default
minecraft:blue_wool) and spreads through air and other see-through blocks.
Solid blocks the flood never touches are sealed inside the structure and are
replaced with air.

Diagnostic modes:
  --rainbow       paint the flood in discovery order instead of pruning
  --inside BLOCK  place BLOCK inside a cavity that should be sealed; if the
                  flood reaches it, the leak path is marked with red wool

Examples:
  schemopt optimize house.litematic house-opt.litematic minecraft:blue_wool
  schemopt optimize house.litematic leak.litematic minecraft:blue_wool --inside minecraft:gold_block
  schemopt materials house-opt.litematic --json
  schemopt replace house.litematic clean.litematic minecraft:lime_wool minecraft:air
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .blocks import BlockState
from .errors import EXIT_IO, EXIT_OK, EXIT_TARGET_NOT_REACHED, EXIT_USAGE, OptimizerError
from .litematic import read_litematic, write_litematic
from .materials import count_materials, materials_json, replace_blocks
from .optimizer import optimize
from .settings import LogSettings, OptimizeSettings, configure_logging


def _output_name(path: Path) -> str:
    return path.name.replace(".litematic", "")


def _cmd_optimize(args: argparse.Namespace) -> int:
    overrides: Dict[str, Any] = {
        "seed_block": args.seed_block,
        "inside_block": args.inside,
        "rainbow": True if args.rainbow else None,
        "margin": args.margin,
        "path_block": args.path_block,
        "trace_key": args.trace_key,
        "default_passable": False if args.no_default_passable else None,
    }
    try:
        settings = OptimizeSettings.load(
            config_path=Path(args.config) if args.config else None,
            overrides=overrides,
        )
        if args.passable:
            extra = [*settings.passable_blocks, *args.passable]
            settings = OptimizeSettings.model_validate({**settings.model_dump(), "passable_blocks": extra})
    except ValidationError as e:
        print(f"ERROR: invalid settings: {e}", file=sys.stderr)
        return EXIT_USAGE
    except (OSError, ValueError) as e:
        print(f"ERROR: cannot load config: {e}", file=sys.stderr)
        return EXIT_USAGE

    schematic = read_litematic(Path(args.input))
    report = optimize(schematic.grid(), settings)

    print("== schemopt optimize ==")
    print(f"mode: {report.mode}")
    print(f"seed: {report.seed}")
    if report.target is not None:
        print(f"inside marker: {report.target}")
    print(f"flood: {report.state} (visited {report.visited}, exposed {report.exposed})")
    if report.mode == "prune":
        print(f"pruned: {report.pruned}")
    elif report.painted:
        print(f"painted: {report.painted}")
    if args.json:
        print("json:")
        print(report.to_json())

    if report.mode == "inside" and not report.target_reached:
        print(
            f"inside marker at {report.target} was not reached: the cavity is sealed, nothing written",
            file=sys.stderr,
        )
        return EXIT_TARGET_NOT_REACHED

    out = Path(args.output)
    write_litematic(out, schematic, name=_output_name(out))
    print(f"wrote: {out}")
    return EXIT_OK


def _cmd_materials(args: argparse.Namespace) -> int:
    schematic = read_litematic(Path(args.input))
    materials = count_materials(schematic.grid())
    if args.json:
        print(materials_json(materials))
        return EXIT_OK
    print("====== materials =======")
    for name, n in materials:
        print(f"{name} {n}")
    return EXIT_OK


def _cmd_replace(args: argparse.Namespace) -> int:
    try:
        replacement = BlockState.parse(args.replacement)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_USAGE
    schematic = read_litematic(Path(args.input))
    n = replace_blocks(schematic.grid(), args.block, replacement)
    out = Path(args.output)
    write_litematic(out, schematic, name=_output_name(out))
    print(f"replaced {n} block(s); wrote: {out}")
    return EXIT_OK


def _parse_args(argv: List[str]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(prog="schemopt", description="Remove blocks sealed inside a Litematica build.")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")
    sub = ap.add_subparsers(dest="command", required=True)

    opt = sub.add_parser("optimize", help="Flood from the seed block and remove unreachable blocks")
    opt.add_argument("input", help="Input .litematic")
    opt.add_argument("output", help="Output .litematic")
    opt.add_argument("seed_block", help="Block id whose first placement is the flood seed (eg minecraft:blue_wool)")
    mode = opt.add_mutually_exclusive_group()
    mode.add_argument("--rainbow", action="store_true", help="Paint the flood order instead of pruning")
    mode.add_argument("--inside", default=None, metavar="BLOCK", help="Unique block id marking a cavity; mark the leak path if reached")
    opt.add_argument("--passable", action="append", default=[], metavar="BLOCK", help="Extra block id the flood may pass through (repeatable)")
    opt.add_argument("--no-default-passable", action="store_true", help="Only air and the passable block list let the flood through")
    opt.add_argument("--margin", type=int, default=None, help="Cells of virtual air around each region (default: 1)")
    opt.add_argument("--path-block", default=None, help="Block used to mark the leak path (default: minecraft:red_wool)")
    opt.add_argument("--trace-key", default=None, choices=["index", "depth"], help="Rainbow colour by discovery index or BFS depth")
    opt.add_argument("--config", default=None, help="JSON settings file")
    opt.add_argument("--json", action="store_true", help="Also print the run report as JSON")
    opt.set_defaults(func=_cmd_optimize)

    mat = sub.add_parser("materials", help="List the blocks needed to build a schematic")
    mat.add_argument("input", help="Input .litematic")
    mat.add_argument("--json", action="store_true", help="Output JSON")
    mat.set_defaults(func=_cmd_materials)

    rep = sub.add_parser("replace", help="Replace every placement of one block")
    rep.add_argument("input", help="Input .litematic")
    rep.add_argument("output", help="Output .litematic")
    rep.add_argument("block", help="Block id to replace (bare name matches any properties)")
    rep.add_argument("replacement", help="Replacement block state")
    rep.set_defaults(func=_cmd_replace)
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(LogSettings.from_env(verbose=args.verbose))

    if not Path(args.input).exists():
        print(f"ERROR: schematic not found: {args.input}", file=sys.stderr)
        return EXIT_IO
    try:
        return args.func(args)
    except OptimizerError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return e.exit_code
    except OSError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_IO


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
