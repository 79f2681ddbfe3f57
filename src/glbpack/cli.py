"""Command line interface for glbpack."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .api import (
    EMBED_CHOICES,
    BuildOptions,
    EmbedOptions,
    build_glb,
    inspect_glb,
)
from .logging import configure_logging
from .packing.errors import GlbError
from .packing.inspector import validate_glb
from .reporting import (
    REPORTER_CHOICES,
    JsonLinesReporter,
    PlainReporter,
    RichReporter,
    SilentReporter,
    get_reporter,
    set_reporter,
    set_verbosity,
)

FAILURE_BANNER = "Failed to create binary glTF file:"


def _build_cmd(args: argparse.Namespace) -> int:
    opts = BuildOptions(
        input_path=args.file,
        output_path=args.output,
        embed=EmbedOptions.from_values(args.embed),
        compat_mode=args.cesium,
        use_builtin_shaders=args.shaders,
        workers=args.workers,
    )
    try:
        build_glb(opts)
    except GlbError as exc:
        rep = get_reporter()
        rep.flush()
        rep.error(FAILURE_BANNER)
        rep.error(str(exc), code=exc.code)
        return 1
    return 0


def _inspect_cmd(args: argparse.Namespace) -> int:
    rep = get_reporter()
    try:
        info = inspect_glb(args.glb)
    except GlbError as exc:
        rep.error(f"Cannot inspect {args.glb}: {exc}", code=exc.code)
        return 1
    problems = validate_glb(info)
    header = info["header"]
    if args.json:
        print(
            json.dumps(
                {
                    "header": header,
                    "body_length": info["body_length"],
                    "scene": info["scene"],
                    "problems": problems,
                },
                indent=2,
                sort_keys=True,
            )
        )
    rep.status(
        "Inspect summary: "
        + f"file={args.glb.name} version={header['version']} "
        + f"file_length={header['file_length']} scene_length={header['scene_length']} "
        + f"body_length={info['body_length']} problems={len(problems)}"
    )
    for problem in problems:
        rep.warning(problem)
    return 1 if problems else 0


def _embed_type(value: str) -> str:
    if value not in EMBED_CHOICES:
        raise argparse.ArgumentTypeError(
            f"invalid choice: {value!r} (choose from {', '.join(EMBED_CHOICES)})"
        )
    return value


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="glbpack",
        description="Pack a glTF scene into a binary glTF (.glb) container",
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=REPORTER_CHOICES,
        default="plain",
        help="Select reporter backend: plain (default), rich, json (JSONL events), silent",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    b = sub.add_parser("build", help="Convert a .gltf file into a .glb file")
    b.add_argument("file", type=Path, help="Input scene (.gltf)")
    b.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output path (default: input with the .glb extension)",
    )
    b.add_argument(
        "-e",
        "--embed",
        nargs="*",
        type=_embed_type,
        metavar="{" + ",".join(EMBED_CHOICES) + "}",
        help="Embed textures and/or shaders into the body (bare flag: all)",
    )
    b.add_argument(
        "--cesium",
        action="store_true",
        help="Name the body buffer KHR_binary_glTF for older Cesium clients",
    )
    b.add_argument(
        "--shaders",
        action="store_true",
        help="Replace the scene's shaders with the built-in ones",
    )
    b.add_argument(
        "-j",
        "--workers",
        type=int,
        default=1,
        help="Number of concurrent resource reads (default: 1)",
    )
    b.set_defaults(func=_build_cmd)

    i = sub.add_parser("inspect", help="Inspect and validate a .glb file")
    i.add_argument("glb", type=Path)
    i.add_argument("--json", action="store_true", help="Emit JSON details")
    i.set_defaults(func=_inspect_cmd)

    return p


def _select_reporter(requested: str) -> None:
    if requested == "json":
        set_reporter(JsonLinesReporter())
    elif requested == "silent":
        set_reporter(SilentReporter())
    elif requested == "rich" and sys.stderr.isatty():
        set_reporter(RichReporter())
    else:
        # plain, or rich without a terminal
        set_reporter(PlainReporter())


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    _select_reporter(args.reporter)
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    try:
        return args.func(args)
    finally:
        get_reporter().flush()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
