"""Reading of ELF object files: headers, sections, string tables and symbols."""

from __future__ import annotations

import enum
import os
import stat
import struct
from dataclasses import dataclass

EI_NIDENT = 16
EV_CURRENT = 1

ET_REL = 1
ET_EXEC = 2
ET_DYN = 3

SHN_UNDEF = 0
SHN_LORESERVE = 0xFF00
SHN_ABS = 0xFFF1
SHN_COMMON = 0xFFF2

SHT_PROGBITS = 1
SHT_SYMTAB = 2
SHT_STRTAB = 3
SHT_NOBITS = 8
SHT_DYNSYM = 11
SHT_GNU_VERDEF = 0x6FFFFFFD
SHT_GNU_VERNEED = 0x6FFFFFFE
SHT_GNU_VERSYM = 0x6FFFFFFF

SHF_WRITE = 0x1
SHF_ALLOC = 0x2
SHF_EXECINSTR = 0x4

STT_NOTYPE = 0
STT_OBJECT = 1
STT_FUNC = 2
STT_SECTION = 3
STT_FILE = 4
STT_GNU_IFUNC = 10

STB_LOCAL = 0
STB_GLOBAL = 1
STB_WEAK = 2
STB_GNU_UNIQUE = 10

_MAGIC = b"\x7fELF"


class ElfError(Exception):
    """Base class for errors raised while reading an ELF object."""


class UnknownFormatError(ElfError):
    """The data is not an ELF object this reader understands."""


class MalformedError(ElfError):
    """The ELF object refers to data outside of its bounds."""


class NotRegularFileError(ElfError):
    """The path does not name an ordinary file."""


class DirectoryError(ElfError):
    """The path names a directory."""


class ElfClass(enum.IntEnum):
    NONE = 0
    CLASS32 = 1
    CLASS64 = 2


class Endian(enum.IntEnum):
    NONE = 0
    LITTLE = 1
    BIG = 2


@dataclass(frozen=True)
class ElfHeader:
    e_type: int
    e_machine: int
    e_version: int
    e_entry: int
    e_phoff: int
    e_shoff: int
    e_flags: int
    e_ehsize: int
    e_phentsize: int
    e_phnum: int
    e_shentsize: int
    e_shnum: int
    e_shstrndx: int


@dataclass(frozen=True)
class SectionHeader:
    sh_name: int
    sh_type: int
    sh_flags: int
    sh_addr: int
    sh_offset: int
    sh_size: int
    sh_link: int
    sh_info: int
    sh_addralign: int
    sh_entsize: int


@dataclass(frozen=True)
class Section:
    """A section header with its contents; ``data`` is None for SHT_NOBITS."""

    index: int
    header: SectionHeader
    data: bytes | None


@dataclass(frozen=True)
class RawSymbol:
    st_name: int
    st_info: int
    st_other: int
    st_shndx: int
    st_value: int
    st_size: int

    def type(self) -> int:
        """The symbol type (STT_*) held in the low nibble of st_info."""
        return self.st_info & 0xF

    def bind(self) -> int:
        """The symbol binding (STB_*) held in the high nibble of st_info."""
        return self.st_info >> 4


_EHDR_FORMAT = {
    ElfClass.CLASS32: "HHIIIIIHHHHHH",
    ElfClass.CLASS64: "HHIQQQIHHHHHH",
}
_SHDR_FORMAT = {
    ElfClass.CLASS32: "IIIIIIIIII",
    ElfClass.CLASS64: "IIQQQQIIQQ",
}
_SYM_FORMAT = {
    ElfClass.CLASS32: "IIIBBH",
    ElfClass.CLASS64: "IBBHQQ",
}


class ElfFile:
    """An ELF object held in memory."""

    def __init__(self, data: bytes) -> None:
        self.data = bytes(data)
        self.size = len(self.data)
        self.elf_class, self.endian = self._read_ident()
        self.byte_order = "<" if self.endian is Endian.LITTLE else ">"
        self._ehdr = struct.Struct(self.byte_order + _EHDR_FORMAT[self.elf_class])
        self._shdr = struct.Struct(self.byte_order + _SHDR_FORMAT[self.elf_class])
        self._sym = struct.Struct(self.byte_order + _SYM_FORMAT[self.elf_class])
        self.symbol_entry_size = self._sym.size
        self.header = self._read_header()

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> ElfFile:
        """Read the object stored at ``path``; OSError is raised if it cannot be opened."""
        fd = os.open(path, os.O_RDONLY)
        with os.fdopen(fd, "rb") as handle:
            mode = os.fstat(handle.fileno()).st_mode
            if stat.S_ISDIR(mode):
                raise DirectoryError(f"{os.fspath(path)}: is a directory")
            if not stat.S_ISREG(mode):
                raise NotRegularFileError(f"{os.fspath(path)}: is not an ordinary file")
            data = handle.read()
        if not data:
            raise ElfError(f"{os.fspath(path)}: cannot map an empty file")
        return cls(data)

    def _read_ident(self) -> tuple[ElfClass, Endian]:
        if self.size < EI_NIDENT or self.data[:4] != _MAGIC:
            raise UnknownFormatError("file format not recognized")
        elf_class, endian, version = self.data[4], self.data[5], self.data[6]
        if (
            version != EV_CURRENT
            or elf_class not in (ElfClass.CLASS32, ElfClass.CLASS64)
            or endian not in (Endian.LITTLE, Endian.BIG)
        ):
            raise UnknownFormatError("file format not recognized")
        return ElfClass(elf_class), Endian(endian)

    def _read_header(self) -> ElfHeader:
        if self.size < EI_NIDENT + self._ehdr.size:
            raise MalformedError("truncated ELF header")
        return ElfHeader(*self._ehdr.unpack_from(self.data, EI_NIDENT))

    def section(self, index: int) -> Section:
        """Return the section at ``index``.

        IndexError is raised for an index outside the section table, MalformedError
        when the header or contents lie outside the file.
        """
        if index < 0 or index >= self.header.e_shnum:
            raise IndexError(f"section index {index} out of range")
        entsize = self.header.e_shentsize
        offset = self.header.e_shoff + index * entsize
        if self.size < offset + max(entsize, self._shdr.size):
            raise MalformedError(f"section header {index} lies outside the file")
        header = SectionHeader(*self._shdr.unpack_from(self.data, offset))
        if header.sh_type == SHT_NOBITS:
            return Section(index, header, None)
        end = header.sh_offset + header.sh_size
        if self.size < end:
            raise MalformedError(f"section {index} lies outside the file")
        return Section(index, header, self.data[header.sh_offset:end])

    def find_section(self, sh_type: int) -> Section | None:
        """Return the first section of type ``sh_type``.

        The search stops, returning None, at the first section that cannot be read.
        """
        for index in range(self.header.e_shnum):
            try:
                section = self.section(index)
            except (ElfError, IndexError):
                return None
            if section.header.sh_type == sh_type:
                return section
        return None

    def symtab(self) -> Section | None:
        """The first SHT_SYMTAB section, if any."""
        return self.find_section(SHT_SYMTAB)

    def dynsymtab(self) -> Section | None:
        """The first SHT_DYNSYM section, if any."""
        return self.find_section(SHT_DYNSYM)

    def section_name(self, index: int) -> str | None:
        """The name of section ``index``, or None if it cannot be resolved."""
        try:
            section = self.section(index)
        except (ElfError, IndexError):
            return None
        return self.string_at(self.header.e_shstrndx, section.header.sh_name)

    def string_at(self, index: int, offset: int) -> str | None:
        """The NUL-terminated string at ``offset`` in string table ``index``."""
        try:
            table = self.section(index)
        except (ElfError, IndexError):
            return None
        if table.data is None or offset < 0:
            return None
        header = table.header
        start = header.sh_offset + offset
        if self.size < start or header.sh_size == 0:
            return None
        table_end = header.sh_offset + header.sh_size
        if self.data[table_end - 1] != 0 and self._byte_at(table_end) != 0:
            return None
        end = self.data.find(b"\0", start)
        if end < 0:
            end = self.size
        return self.data[start:end].decode("utf-8", "surrogateescape")

    def _byte_at(self, offset: int) -> int:
        return self.data[offset] if offset < self.size else 0

    def read_symbol(self, offset: int) -> RawSymbol:
        """Decode the symbol table entry at file ``offset``."""
        if offset < 0 or self.size < offset + self._sym.size:
            raise MalformedError(f"symbol at offset {offset} lies outside the file")
        fields = self._sym.unpack_from(self.data, offset)
        if self.elf_class is ElfClass.CLASS32:
            name, value, size, info, other, shndx = fields
        else:
            name, info, other, shndx, value, size = fields
        return RawSymbol(
            st_name=name,
            st_info=info,
            st_other=other,
            st_shndx=shndx,
            st_value=value,
            st_size=size,
        )