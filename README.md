# elfnm

`elfnm` lists the symbols of ELF object files, executables and shared
libraries, much like the classic `nm` tool. It reads 32-bit and 64-bit
objects of either byte order. For dynamic symbol tables it resolves GNU
symbol versions and shows them as `name@VERSION` or `name@@VERSION`.

## Installation

```
pip install .
```

The package has no runtime dependencies. To run the tests:

```
pip install ".[test]"
pytest
```

## Command line

```
elfnm [option(s)] [file(s)]
```

The same command can also be started with `python -m elfnm.nm`.

If no file is given, `a.out` is read. If more than one file is given, each
listing starts with a blank line and then the file name followed by a colon.

| Option | Meaning                                               |
|--------|-------------------------------------------------------|
| `-a`   | Display all symbols, including file and section ones  |
| `-D`   | Display dynamic symbols instead of normal symbols     |
| `-g`   | Display only external (global, weak, unique) symbols  |
| `-p`   | Do not sort the symbols                               |
| `-r`   | Reverse the sort order of the symbols                 |
| `-u`   | Display only undefined symbols                        |
| `-h`   | Display the help message                              |

Options may be grouped, as in `-gr`. Option parsing stops at the first
argument that does not start with `-`, at a lone `-`, and after `--`.
An unknown option prints the help message and exits with status 1.

Each line holds three things:

- the symbol value in hexadecimal: 16 digits for 64-bit objects and 8 for
  32-bit ones, or blanks for undefined symbols
- the one-letter symbol type, in upper case for global symbols
- the name

For example:

```
0000000000001139 T main
                 U puts@GLIBC_2.2.5
```

Symbols are sorted by the bytes of their names. Symbols with the same name
keep their order from the symbol table. In relocatable objects the address
of the symbol's section is added to the value.

Problems with a file are reported on standard error and the next file is
read:

- `nm: 'FILE' No such file`
- `nm: Warning: 'FILE' is a directory`
- `nm: FILE: file format not recognized`
- `nm: FILE: no symbols`

The exit status is 0 when every file could be opened and parsed. Otherwise
it is the number of files that could not be. A file with no symbols does
not count as a failure.

## Library use

```python
from elfnm.elf import ElfFile
from elfnm.nm import Options, collect_symbols, sort_symbols, format_symbol

elf = ElfFile.from_path("a.out")
symbols = collect_symbols(elf, Options()) or []
for symbol in sort_symbols(symbols, reverse=False):
    print(format_symbol(symbol, bits64=True))
```

### `elfnm.elf`

`ElfFile(data)` parses an object held in bytes. `ElfFile.from_path(path)`
reads one from disk.

It raises these errors:

- `UnknownFormatError` for data that is not ELF.
- `MalformedError` for a truncated header.
- `DirectoryError` and `NotRegularFileError` for paths that are not ordinary
  files.

All of these derive from `ElfError`. An `OSError` is raised for a path that
cannot be opened.

Methods:

- `section(index)` returns a `Section`. It raises `IndexError` or
  `MalformedError`.
- `find_section(sh_type)`, `symtab()` and `dynsymtab()` return the first
  matching `Section`, or `None`.
- `section_name(index)` and `string_at(index, offset)` return a string, or
  `None`.
- `read_symbol(offset)` decodes a `RawSymbol`.

### `elfnm.symbols`

`symbol_count(elf, section)` gives the number of entries in a symbol table.
`iter_symbols(elf, section)` yields a `Symbol` for every entry after the
null one. Each `Symbol` has its name, version string and hidden flag
resolved, plus the address of its section.

### `elfnm.options`

`parse_options(argv, allowed)` splits arguments into flags and operands. It
raises `UnknownOptionError` for a flag that is not in `allowed`.

### `elfnm.nm`

This module provides:

- The classification functions `section_type` and `symbol_type`, which
  return a `SymbolType`.
- The filter `keep_symbol`.
- `collect_symbols`, `sort_symbols` and `format_symbol`.
- `list_symbols(elf, options, out)` and `process_file(path, options, ...)`,
  which write a listing to a stream.
- `main(argv=None)`, the command line.

## Limitations

`elfnm` reads only plain ELF files. It does not:

- open static archives (`.a` files)
- demangle C++ names
- show symbol sizes
- offer nm's other output formats or sorting keys