"""Listing of the symbols of ELF objects, in the style of nm."""

from __future__ import annotations

import enum
import sys
from dataclasses import dataclass
from typing import TextIO

from elfnm.elf import (
    ET_DYN,
    ET_EXEC,
    SHF_ALLOC,
    SHF_EXECINSTR,
    SHF_WRITE,
    SHN_ABS,
    SHN_COMMON,
    SHN_LORESERVE,
    SHN_UNDEF,
    SHT_NOBITS,
    SHT_PROGBITS,
    STB_GLOBAL,
    STB_GNU_UNIQUE,
    STB_WEAK,
    STT_FILE,
    STT_GNU_IFUNC,
    STT_OBJECT,
    STT_SECTION,
    DirectoryError,
    ElfClass,
    ElfError,
    ElfFile,
    NotRegularFileError,
    RawSymbol,
    UnknownFormatError,
)
from elfnm.options import UnknownOptionError, parse_options
from elfnm.symbols import iter_symbols, symbol_count

DEFAULT_PROGRAM = "a.out"

USAGE = (
    "Usage: elfnm [option(s)] [file(s)]\n"
    " List symbols in [file(s)] (a.out by default).\n"
    " The options are:\n"
    "  -a              Display all symbols (no filter)\n"
    "  -D              Display dynamic symbols instead of normal symbols\n"
    "  -g              Display only external symbols\n"
    "  -p              Do not sort the symbols\n"
    "  -r              Reverse the sort order of the symbols\n"
    "  -u              Display only undefined symbols\n"
    "  -h              Display this help message\n"
)

_ALLOWED_FLAGS = "prugDah"
_VALUE_MASK = 0xFFFFFFFFFFFFFFFF


class SymbolType(str, enum.Enum):
    """The one-letter symbol classes; upper case marks a global symbol."""

    ABSOLUTE_G = "A"
    ABSOLUTE_L = "a"
    BSS_G = "B"
    BSS_L = "b"
    COMMON_G = "C"
    COMMON_L = "c"
    INITD_G = "D"
    INITD_L = "d"
    INDIR = "i"
    DEBUG = "N"
    RD_ONLY = "n"
    UNWIND = "p"
    RD_ONLY_DATA_G = "R"
    RD_ONLY_DATA_L = "r"
    UNINIT_DATA_G = "S"
    UNINIT_DATA_L = "s"
    CODE_G = "T"
    CODE_L = "t"
    UNDEFINED = "U"
    UNIQUE_GLOBAL = "u"
    WEAK_OBJ_G = "V"
    WEAK_OBJ_L = "v"
    WEAK_G = "W"
    WEAK_L = "w"
    UNKNOWN = "?"


@dataclass(frozen=True)
class NmSymbol:
    """A symbol as listed: its class, displayed value and table position."""

    name: str
    version: str | None
    version_hidden: bool
    type: SymbolType
    value: int
    raw: RawSymbol
    pos: int


@dataclass(frozen=True)
class Options:
    no_sort: bool = False
    reverse: bool = False
    only_undefined: bool = False
    only_external: bool = False
    dynamic: bool = False
    no_filter: bool = False


def section_type(elf: ElfFile, index: int) -> SymbolType:
    """Classify a symbol by the section at ``index`` it is defined in."""
    if index != SHN_UNDEF and index >= SHN_LORESERVE:
        return SymbolType.UNKNOWN
    # A symbol whose section does not exist is taken as absolute.
    if index > elf.header.e_shnum:
        return SymbolType.ABSOLUTE_L
    try:
        section = elf.section(index)
    except (ElfError, IndexError):
        return SymbolType.UNKNOWN

    header = section.header
    name = elf.string_at(elf.header.e_shstrndx, header.sh_name)
    read_only = (header.sh_flags & SHF_WRITE) == 0
    allocated = (header.sh_flags & SHF_ALLOC) != 0
    code = (header.sh_flags & SHF_EXECINSTR) != 0

    if header.sh_type == SHT_PROGBITS and code:
        return SymbolType.CODE_L
    if header.sh_type == SHT_NOBITS and not read_only and allocated:
        return SymbolType.BSS_L
    if not read_only and allocated:
        return SymbolType.INITD_L
    if allocated and read_only:
        return SymbolType.RD_ONLY_DATA_L
    if name is not None and name.startswith(".debug"):
        return SymbolType.DEBUG
    if not code and not allocated and read_only:
        return SymbolType.RD_ONLY
    return SymbolType.UNKNOWN


def symbol_type(elf: ElfFile, raw: RawSymbol) -> SymbolType:
    """The one-letter class nm shows for ``raw``."""
    kind = raw.type()
    bind = raw.bind()

    if raw.st_shndx == SHN_COMMON:
        return SymbolType.COMMON_G
    if raw.st_shndx == SHN_UNDEF:
        if bind == STB_WEAK:
            return SymbolType.WEAK_OBJ_L if kind == STT_OBJECT else SymbolType.WEAK_L
        return SymbolType.UNDEFINED

    if kind == STT_GNU_IFUNC:
        return SymbolType.INDIR
    if bind == STB_GNU_UNIQUE:
        return SymbolType.UNIQUE_GLOBAL
    if bind == STB_WEAK:
        return SymbolType.WEAK_OBJ_G if kind == STT_OBJECT else SymbolType.WEAK_G

    stype = (
        SymbolType.ABSOLUTE_L
        if raw.st_shndx == SHN_ABS
        else section_type(elf, raw.st_shndx)
    )
    if stype is not SymbolType.UNKNOWN and bind == STB_GLOBAL:
        return SymbolType(stype.value.upper())
    return stype


def keep_symbol(raw: RawSymbol, options: Options) -> bool:
    """Whether ``raw`` passes the filters selected by ``options``."""
    if not options.no_filter and raw.type() in (STT_FILE, STT_SECTION):
        return False
    if options.only_undefined:
        return raw.st_shndx == SHN_UNDEF
    if options.only_external:
        return raw.bind() in (STB_GLOBAL, STB_WEAK, STB_GNU_UNIQUE)
    return True


def collect_symbols(elf: ElfFile, options: Options) -> list[NmSymbol] | None:
    """The listed symbols of the selected table, unsorted.

    None is returned when the object has no usable symbol table or the table
    holds nothing but its null entry.
    """
    table = elf.dynsymtab() if options.dynamic else elf.symtab()
    if table is None:
        return None
    try:
        total = symbol_count(elf, table)
        entries = iter_symbols(elf, table)
    except (ValueError, ElfError):
        return None

    relocatable = elf.header.e_type not in (ET_EXEC, ET_DYN)
    unvalued = (SymbolType.UNDEFINED, SymbolType.WEAK_OBJ_L, SymbolType.WEAK_L)
    symbols = []
    for entry in entries:
        if not keep_symbol(entry.raw, options):
            continue
        stype = symbol_type(elf, entry.raw)
        offset = entry.sh_addr if relocatable else 0
        value = 0 if stype in unvalued else (entry.raw.st_value + offset) & _VALUE_MASK
        symbols.append(
            NmSymbol(
                name=entry.name,
                version=entry.version,
                version_hidden=entry.version_hidden,
                type=stype,
                value=value,
                raw=entry.raw,
                pos=entry.index + 1,
            )
        )
    return symbols if total > 1 else None


def _sort_key(symbol: NmSymbol) -> tuple[bytes, int]:
    return symbol.name.encode("utf-8", "surrogateescape"), symbol.pos


def sort_symbols(symbols: list[NmSymbol], reverse: bool = False) -> list[NmSymbol]:
    """Symbols ordered by name bytes, then by table position."""
    return sorted(symbols, key=_sort_key, reverse=reverse)


def format_symbol(symbol: NmSymbol, bits64: bool) -> str:
    """The output line for ``symbol``, without its newline."""
    width = 16 if bits64 else 8
    if symbol.raw.st_shndx != SHN_UNDEF:
        value = f"{symbol.value:0{width}x}"[-width:]
    else:
        value = " " * width
    line = f"{value} {symbol.type.value} {symbol.name}"
    if symbol.version:
        separator = "@" if symbol.version_hidden else "@@"
        line += separator + symbol.version
    return line


def list_symbols(elf: ElfFile, options: Options, out: TextIO) -> bool:
    """Write the symbol listing to ``out``; False if there were no symbols."""
    symbols = collect_symbols(elf, options)
    if symbols is None:
        return False
    if not options.no_sort:
        symbols = sort_symbols(symbols, options.reverse)
    bits64 = elf.elf_class is ElfClass.CLASS64
    for symbol in symbols:
        out.write(format_symbol(symbol, bits64) + "\n")
    return True


def process_file(
    path: str,
    options: Options,
    print_filename: bool = False,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """List the symbols of one file; return the exit status for it."""
    out = sys.stdout if out is None else out
    err = sys.stderr if err is None else err

    def error(message: str) -> None:
        err.write(f"nm: {path}: {message}\n")

    def warn(message: str, prefix: str = "") -> None:
        err.write(f"nm: {prefix}'{path}' {message}\n")

    try:
        elf = ElfFile.from_path(path)
    except FileNotFoundError:
        warn("No such file")
        return 1
    except (IsADirectoryError, DirectoryError):
        warn("is a directory", "Warning: ")
        return 1
    except NotRegularFileError:
        warn("is not an ordinary file", "Warning: ")
        return 1
    except UnknownFormatError:
        error("file format not recognized")
        return 1
    except OSError as exc:
        error(exc.strerror or str(exc))
        return 1
    except ElfError:
        return 1

    if print_filename:
        out.write(f"\n{path}:\n")
    if not list_symbols(elf, options, out):
        error("no symbols")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the command line; return the exit status."""
    arguments = sys.argv[1:] if argv is None else list(argv)
    try:
        flags, files = parse_options(arguments, _ALLOWED_FLAGS)
    except UnknownOptionError as exc:
        sys.stdout.write(USAGE)
        return 0 if "h" in exc.preceding else 1
    if "h" in flags:
        sys.stdout.write(USAGE)
        return 0

    options = Options(
        no_sort="p" in flags,
        reverse="r" in flags,
        only_undefined="u" in flags,
        only_external="g" in flags,
        dynamic="D" in flags,
        no_filter="a" in flags,
    )

    if not files:
        return process_file(DEFAULT_PROGRAM, options, False)
    if len(files) == 1:
        return process_file(files[0], options, False)
    return sum(process_file(name, options, True) for name in files)


if __name__ == "__main__":
    sys.exit(main())