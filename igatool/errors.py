class IgaError(Exception):
    """Base class for igatool-specific errors."""


# Format errors
class SignatureError(IgaError):
    def __init__(self, signature: bytes):
        self.signature = signature
        super().__init__("Unexpected signature: 0x" + "".join(f"{b:02X}" for b in signature))


class EntryTableError(IgaError):
    pass


class NameTableError(IgaError):
    pass


class VarUintError(IgaError, ValueError):
    pass


# I/O errors
class TruncatedReadError(IgaError, OSError):
    pass


# Range errors
class EntryRangeError(IgaError):
    def __init__(self, offset: int, size: int, file_size: int):
        self.offset = offset
        self.size = size
        self.file_size = file_size
        super().__init__(f"Entry offset: {offset}, size: {size}, file size: {file_size}")


class ArchiveSizeError(IgaError):
    pass


# Argument errors
class InvalidEntryNameError(IgaError, ValueError):
    pass
