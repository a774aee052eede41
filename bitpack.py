from typing import Tuple


def pack_bits(bits: str) -> Tuple[bytes, int]:
    """
    Packs a string of '0'/'1' characters into bytes, most significant bit first
    Returns (packed_bytes, pad_bits) where pad_bits is number of 0 bits added at the end
    """
    out = bytearray()
    acc = 0
    acc_bits = 0

    for ch in bits:
        if ch not in ("0", "1"):
            raise ValueError(f"not a bit: {ch!r}")
        acc = (acc << 1) | (1 if ch == "1" else 0)
        acc_bits += 1
        if acc_bits == 8:
            out.append(acc)
            acc = 0
            acc_bits = 0

    pad_bits = 0
    if acc_bits != 0:
        pad_bits = 8 - acc_bits
        out.append((acc << pad_bits) & 0xFF)

    return bytes(out), pad_bits


def unpack_bits(packed: bytes, pad_bits: int) -> str:
    """
    Inverse of pack_bits: drops the trailing pad bits of the last byte
    """
    if not 0 <= pad_bits <= 7:
        raise ValueError(f"pad_bits must be in 0..7, got {pad_bits}")
    if not packed and pad_bits:
        raise ValueError("pad_bits given for an empty byte string")

    total_bits = len(packed) * 8 - pad_bits
    bits = "".join(format(byte, "08b") for byte in packed)
    return bits[:total_bits]
