"""Command line entry point: render every block-mode transform of each input image."""

import os as _os_module
import sys as _sys_module

from .ciphers import CipherSuite, CipherSuiteError
from .pipeline import process_file
from .transforms import get_transform, select_transforms, transform_names


def _cli_plain_mode() -> bool:
    if _os_module.getenv("ECBPENGUIN_CLI_PLAIN"):
        return True
    if _os_module.getenv("NO_COLOR"):
        return True
    style = (_os_module.getenv("ECBPENGUIN_CLI_STYLE") or "").strip().lower()
    return style in {"plain", "boring", "0", "false", "off"}


class _CliTheme:
    def __init__(self, plain: bool):
        self.plain = plain
        self.reset = "" if plain else "\033[0m"
        self.bold = "" if plain else "\033[1m"
        self.red = "" if plain else "\033[31m"
        self.cyan = "" if plain else "\033[36m"

    def _wrap(self, msg: str, color: str) -> str:
        if self.plain:
            return msg
        return f"{self.bold}{color}{msg}{self.reset}"

    def err(self, msg: str) -> str:
        return self._wrap(msg, self.red)

    def info(self, msg: str) -> str:
        return self._wrap(msg, self.cyan)


def cli(argv=None) -> int:
    import argparse

    theme = _CliTheme(_cli_plain_mode())

    def _transform_name(value: str) -> str:
        try:
            get_transform(value)
        except KeyError as exc:
            raise argparse.ArgumentTypeError(exc.args[0]) from None
        return value

    parser = argparse.ArgumentParser(
        prog="ecbpenguin",
        description="Apply block-cipher modes to the pixels of images and save the results as PNG",
    )
    parser.add_argument("paths", nargs="*", help="Image files to process")
    parser.add_argument(
        "--only",
        action="append",
        default=[],
        metavar="NAME",
        type=_transform_name,
        help="Run only this transform (repeatable, keeps the given order)",
    )
    parser.add_argument("--list", action="store_true", help="List transform names and exit")
    parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Continue with the next file after a failure",
    )
    args = parser.parse_args(argv)

    if args.list:
        for name in transform_names(include_extra=True):
            print(name)
        return 0

    try:
        suite = CipherSuite.from_key()
    except CipherSuiteError as exc:
        print(theme.err(str(exc)), file=_sys_module.stderr)
        return 1

    transforms = select_transforms(args.only)

    def _report(line: str) -> None:
        print(theme.info(line), file=_sys_module.stderr)

    failures = 0
    for path in args.paths:
        try:
            process_file(path, suite, transforms, report=_report)
        except Exception as exc:
            print(theme.err(f"failed to process file '{path}': {exc}"), file=_sys_module.stderr)
            failures += 1
            if not args.keep_going:
                return 1
    return 0 if failures == 0 else 1


def main(argv=None) -> int:
    try:
        return cli(argv)
    except KeyboardInterrupt:
        print("Exiting...")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
