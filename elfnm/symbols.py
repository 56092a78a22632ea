"""Iteration over ELF symbol tables, with GNU symbol version lookup."""

from __future__ import annotations

import struct
from collections.abc import Iterator
from dataclasses import dataclass

from elfnm.elf import (
    SHN_LORESERVE,
    SHN_UNDEF,
    SHT_DYNSYM,
    SHT_GNU_VERDEF,
    SHT_GNU_VERNEED,
    SHT_GNU_VERSYM,
    SHT_SYMTAB,
    STT_SECTION,
    ElfError,
    ElfFile,
    MalformedError,
    RawSymbol,
    Section,
)

_VERSYM_HIDDEN = 0x8000
_VERSYM_VERSION = 0x7FFF
_VER_NDX_LOCAL = 0
_VER_NDX_GLOBAL = 1

_CORRUPT = "<corrupt>"


@dataclass(frozen=True)
class Symbol:
    """A symbol table entry with its resolved name and version."""

    name: str
    version: str | None
    version_hidden: bool
    sh_addr: int
    raw: RawSymbol
    index: int


@dataclass(frozen=True)
class _Versions:
    versym: Section
    verneed: Section | None
    verdef: Section | None


def symbol_count(elf: ElfFile, section: Section) -> int:
    """The number of entries in ``section``, the leading null entry included.

    ValueError is raised if the section is not a symbol table, MalformedError
    if its entry size does not match the object class.
    """
    header = section.header
    if header.sh_type not in (SHT_SYMTAB, SHT_DYNSYM):
        raise ValueError(f"section {section.index} is not a symbol table")
    if header.sh_entsize != elf.symbol_entry_size:
        raise MalformedError(
            f"symbol table entry size {header.sh_entsize} does not match "
            f"{elf.symbol_entry_size}"
        )
    return header.sh_size // header.sh_entsize


def iter_symbols(elf: ElfFile, section: Section) -> Iterator[Symbol]:
    """Iterate over the symbols of ``section``, skipping the null entry.

    The table is validated before iteration starts. Iteration stops early at
    the first entry that lies outside the file.
    """
    count = symbol_count(elf, section)
    versions = _find_versions(elf) if section.header.sh_type == SHT_DYNSYM else None
    return _generate(elf, section, count, versions)


def _find_versions(elf: ElfFile) -> _Versions | None:
    versym = elf.find_section(SHT_GNU_VERSYM)
    if versym is None:
        return None
    return _Versions(
        versym=versym,
        verneed=elf.find_section(SHT_GNU_VERNEED),
        verdef=elf.find_section(SHT_GNU_VERDEF),
    )


def _generate(
    elf: ElfFile, section: Section, count: int, versions: _Versions | None
) -> Iterator[Symbol]:
    entry_size = elf.symbol_entry_size
    for index in range(1, count):
        try:
            raw = elf.read_symbol(section.header.sh_offset + index * entry_size)
        except MalformedError:
            return
        version, hidden = (
            _symbol_version(elf, versions, raw, index) if versions else (None, False)
        )
        yield Symbol(
            name=_symbol_name(elf, section, raw),
            version=version,
            version_hidden=hidden,
            sh_addr=_section_address(elf, raw.st_shndx),
            raw=raw,
            index=index,
        )


def _symbol_name(elf: ElfFile, section: Section, raw: RawSymbol) -> str:
    if raw.type() == STT_SECTION and raw.st_shndx < SHN_LORESERVE:
        return elf.section_name(raw.st_shndx) or _CORRUPT
    name = elf.string_at(section.header.sh_link, raw.st_name)
    return _CORRUPT if name is None else name


def _section_address(elf: ElfFile, index: int) -> int:
    try:
        return elf.section(index).header.sh_addr
    except (ElfError, IndexError):
        return 0


def _symbol_version(
    elf: ElfFile, versions: _Versions, raw: RawSymbol, index: int
) -> tuple[str | None, bool]:
    data = versions.versym.data
    offset = index * 2
    if data is None or versions.versym.header.sh_size < offset + 2 or len(data) < offset + 2:
        return None, False

    (version,) = struct.unpack_from(elf.byte_order + "H", data, offset)
    if (version & _VERSYM_VERSION) in (_VER_NDX_LOCAL, _VER_NDX_GLOBAL):
        return None, False

    hidden = (version & _VERSYM_HIDDEN) != 0

    if (
        raw.st_shndx != SHN_UNDEF
        and version != (_VERSYM_HIDDEN | 0x1)
        and versions.verdef is not None
    ):
        name = _version_from_verdef(elf, versions.verdef, raw, version & _VERSYM_VERSION)
        if name:
            return name, hidden

    # Version requirements describe undefined symbols, which are always hidden.
    if versions.verneed is None:
        return None, True
    return _version_from_verneed(elf, versions.verneed, version), True


def _version_from_verdef(
    elf: ElfFile, verdef: Section, raw: RawSymbol, version: int
) -> str | None:
    header = verdef.header
    base = header.sh_offset
    end = base + header.sh_size
    if header.sh_size == 0 or elf.size < end:
        return None

    definition = struct.Struct(elf.byte_order + "HHHHIII")
    auxiliary = struct.Struct(elf.byte_order + "II")
    next_offset = 0
    for _ in range(header.sh_info):
        cursor = base + next_offset
        if end < cursor + definition.size:
            return None
        _, _, ndx, _, _, vd_aux, vd_next = definition.unpack_from(elf.data, cursor)
        if ndx == version:
            cursor += vd_aux
            if end < cursor + auxiliary.size:
                return None
            name, _ = auxiliary.unpack_from(elf.data, cursor)
            # A definition named like the symbol itself is redundant and left out.
            if name == raw.st_name:
                return None
            return elf.string_at(header.sh_link, name)
        next_offset += vd_next
    return None


def _version_from_verneed(elf: ElfFile, verneed: Section, version: int) -> str | None:
    header = verneed.header
    base = header.sh_offset
    end = base + header.sh_size
    if header.sh_size == 0 or elf.size < end:
        return None

    need = struct.Struct(elf.byte_order + "HHIII")
    auxiliary = struct.Struct(elf.byte_order + "IHHII")
    next_offset = 0
    for _ in range(header.sh_info):
        cursor = base + next_offset
        if end < cursor + need.size:
            return None
        _, vn_cnt, _, vn_aux, vn_next = need.unpack_from(elf.data, cursor)
        cursor += vn_aux
        for _ in range(vn_cnt):
            if end < cursor + auxiliary.size:
                return None
            _, _, other, name, vna_next = auxiliary.unpack_from(elf.data, cursor)
            if other == version:
                return elf.string_at(header.sh_link, name)
            cursor += vna_next
        next_offset += vn_next
    return None