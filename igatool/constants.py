# Fixed header (16 bytes): signature, reserved field, padding pattern
IGA_SIGNATURE = b"IGA0"
IGA_UNKNOWN = b"\x00\x00\x00\x00"  # meaning unknown; always zero in observed archives
IGA_PADDING = b"\x02\x00\x00\x00\x02\x00\x00\x00"
IGA_HEADER_SIZE = len(IGA_SIGNATURE) + len(IGA_UNKNOWN) + len(IGA_PADDING)
IGA_ENTRIES_OFFSET = IGA_HEADER_SIZE

UINT32_MAX = 0xFFFFFFFF

# VarUint byte layout: 7 payload bits above a terminator flag in bit 0
VARUINT_GROUP_BITS = 7
VARUINT_GROUP_MASK = 0x7F
VARUINT_END_FLAG = 0x01

# Payload transform
KEY_PERIOD = 256
KEY_INDEX_BIAS = 2
KEY_PLAIN = 0x00
KEY_ENCRYPTED = 0xFF
ENCRYPTED_SUFFIX = ".s"

DEFAULT_BUFFER_SIZE = 4096


def check_buffer_size(buffer_size: int) -> int:
    if buffer_size <= 0 or buffer_size % KEY_PERIOD != 0:
        raise ValueError(f"buffer_size must be a positive multiple of {KEY_PERIOD}, got {buffer_size}")
    return buffer_size


check_buffer_size(DEFAULT_BUFFER_SIZE)
