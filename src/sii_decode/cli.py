"""sii-decode CLI: decode ScsC/BSII/SiiN files to SiiNunit text."""

import argparse
import logging
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path


def _configure_logging(verbose: bool, quiet: bool) -> None:
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s | %(levelname)s | %(name)s | %(message)s',
        datefmt='%H:%M:%S',
        stream=sys.stderr,
    )


def main():
    """Main CLI entry point for sii-decode."""
    try:
        package_version = get_version("sii-decode")
    except PackageNotFoundError:
        package_version = "dev"

    parser = argparse.ArgumentParser(
        prog="sii-decode",
        description="Decode encrypted or binary SII files into SiiNunit text"
    )
    parser.add_argument("--version", action="version", version=f"sii-decode {package_version}")
    parser.add_argument(
        "input",
        type=Path,
        help="Path to the SII file (ScsC, BSII or SiiN)"
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Write decoded text here instead of stdout"
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print a JSON summary of layers and block counts instead of the text"
    )
    parser.add_argument(
        "--strict-prototypes",
        action="store_true",
        help="Fail on prototypes redefined with an already used id"
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--verbose",
        action="store_true",
        help="Log every parsed prototype and data block."
    )
    verbosity.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )

    args = parser.parse_args()
    _configure_logging(args.verbose, args.quiet)

    from .api import decode, summarize
    from .kernel.bsii_parse import ParseOptions
    from .kernel.errors import SiiDecodeError
    from ._internal.canonical_json import canonical_dumps

    options = ParseOptions(
        duplicate_prototypes="reject" if args.strict_prototypes else "replace"
    )

    try:
        content = Path(args.input).read_bytes()
        if args.summary:
            result = canonical_dumps(summarize(content, options).model_dump(), pretty=True) + "\n"
        else:
            result = decode(content, options)

        if args.output:
            args.output.write_text(result, encoding="utf-8")
            if not args.quiet:
                print(f"[OK] Decoded {args.input} -> {args.output}", file=sys.stderr)
        else:
            sys.stdout.write(result)
        sys.exit(0)
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename}", file=sys.stderr)
        sys.exit(1)
    except SiiDecodeError as e:
        print(f"Error [{e.code.value}]: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
