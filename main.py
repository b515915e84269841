import argparse
import logging
import sys
from typing import List, Optional

from compiler import compile_file
from lexical import format_lexical_error, format_token_table, tokenize


def setup_logging(verbosity: int) -> None:
    logging.basicConfig(format="{message}", style="{")
    root_logger = logging.getLogger()
    if verbosity >= 2:
        root_logger.setLevel(logging.DEBUG)
    elif verbosity == 1:
        root_logger.setLevel(logging.INFO)
    else:
        root_logger.setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    argparser = argparse.ArgumentParser(
        description="lexical, syntax and type checker for the teaching language")
    argparser.add_argument("FILE", nargs="?", help="source file to check")
    argparser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="trace scopes and symbols (-vv also traces every token)"
    )
    argparser.add_argument(
        "--encoding",
        default="utf-8",
        help="encoding of FILE (default: %(default)s)"
    )
    argparser.add_argument(
        "--tokens",
        action="store_true",
        help="print the token table of FILE instead of compiling it"
    )
    argparser.add_argument(
        "--symbols",
        action="store_true",
        help="print the symbol table after a successful compilation"
    )
    argparser.add_argument(
        "--ide",
        action="store_true",
        help="open the graphical editor (requires PyQt5)"
    )
    return argparser


def dump_tokens(path: str, encoding: str) -> int:
    with open(path, "r", encoding=encoding) as f:
        rows, error = tokenize(f.read())
    print(format_token_table(rows), end="")
    print(format_lexical_error(error))
    return 0 if error is None else 1


def main(argv: Optional[List[str]] = None) -> int:
    argparser = build_parser()
    args = argparser.parse_args(argv)
    setup_logging(args.verbose)

    if args.ide:
        import ide
        return ide.main(args.FILE)
    if not args.FILE:
        argparser.error("FILE is required unless --ide is given")

    try:
        if args.tokens:
            return dump_tokens(args.FILE, args.encoding)
        result = compile_file(args.FILE, args.encoding)
    except OSError as exc:
        print(f"Cannot read {args.FILE}: {exc.strerror or exc}", file=sys.stderr)
        return 2

    if not result.accepted:
        print(result.message, file=sys.stderr)
        return 1
    print(result.message)
    if args.symbols:
        print(result.symbol_table_text, end="")
    return 0


if __name__ == "__main__":
    sys.exit(main())
