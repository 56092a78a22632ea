"""List the symbols of ELF object files: an ELF reader, symbol iteration and an nm-style command."""

__version__ = "0.1.0"
__all__ = ["elf", "symbols", "options", "nm"]