"""Parsing of single-letter command-line flags."""

from __future__ import annotations

from collections.abc import Sequence


class UnknownOptionError(ValueError):
    """A flag outside the allowed set was given.

    ``preceding`` holds the flags accepted before the unknown one, in order.
    """

    def __init__(self, option: str, preceding: Sequence[str]) -> None:
        super().__init__(f"unknown option: -{option}")
        self.option = option
        self.preceding = list(preceding)


def parse_options(argv: Sequence[str], allowed: str) -> tuple[list[str], list[str]]:
    """Split ``argv`` (without the program name) into flags and operands.

    Flags may be grouped, as in ``-ab``. Parsing stops at the first argument
    that does not start with ``-``, at a lone ``-``, or after ``--``.
    """
    arguments = list(argv)
    flags: list[str] = []
    position = 0
    while position < len(arguments):
        argument = arguments[position]
        if not argument.startswith("-") or argument == "-":
            break
        position += 1
        if argument == "--":
            break
        for option in argument[1:]:
            if option not in allowed:
                raise UnknownOptionError(option, flags)
            flags.append(option)
    return flags, arguments[position:]