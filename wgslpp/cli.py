"""Command-line interface for the WGSL preprocessor."""

import argparse
import logging
import re
import sys
from pathlib import Path

from wgslpp.formatting import Literal, U32

_INT_RE = re.compile(r"[+-]?\d+")
_UINT_RE = re.compile(r"(\d+)u")
_FLOAT_RE = re.compile(r"[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?f?")


def parse_define(text: str) -> tuple[str, object]:
    """Parse a ``NAME=VALUE`` command-line define.

    true/false -> bool, 12 -> i32, 12u -> u32, 1.5 -> f32; anything else is
    passed through as literal text.
    """
    name, sep, raw = text.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got '{text}'")
    if raw in ("true", "false"):
        return name, raw == "true"
    if _INT_RE.fullmatch(raw):
        return name, int(raw)
    m = _UINT_RE.fullmatch(raw)
    if m:
        return name, U32(int(m.group(1)))
    if _FLOAT_RE.fullmatch(raw):
        return name, float(raw.rstrip("f"))
    return name, Literal(raw)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="wgslpp",
        description="WGSL preprocessor: expands //!include and //!define directives",
    )
    parser.add_argument("input", help="Root .wgsl file")
    parser.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Write the result here (default: stdout)",
    )
    parser.add_argument(
        "--base-dir", type=Path, default=None,
        help="Directory relative includes are resolved against (default: input's directory)",
    )
    parser.add_argument(
        "-D", "--define", dest="defines", action="append", default=[],
        type=parse_define, metavar="NAME=VALUE",
        help="Define a constant macro (repeatable)",
    )
    parser.add_argument(
        "--validate", action="store_true",
        help="Compile the result with wgpu and report WGSL errors",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log preprocessing steps"
    )
    parser.add_argument(
        "--version", action="version", version="wgslpp 0.1.0"
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    from wgslpp.errors import BuildError
    from wgslpp.loader import FileSourceLoader
    from wgslpp.session import build

    input_path = Path(args.input)
    loader = None
    root = input_path
    if args.base_dir is not None:
        loader = FileSourceLoader(args.base_dir)
        root = input_path.resolve()

    try:
        result = build(root, constants=dict(args.defines), loader=loader,
                       label=input_path.stem)
    except BuildError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.validate:
        from wgslpp.validation import ShaderValidationError, validate_wgsl
        try:
            validate_wgsl(result.code, label=result.label)
        except (ImportError, ShaderValidationError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

    if args.output is None:
        sys.stdout.write(result.code)
    else:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(result.code, encoding="utf-8")
        print(f"Wrote {args.output}")


if __name__ == "__main__":
    main()
