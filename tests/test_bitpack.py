import pytest

from bitpack import pack_bits, unpack_bits


def test_pack_empty():
    assert pack_bits("") == (b"", 0)
    assert unpack_bits(b"", 0) == ""


def test_pack_full_byte():
    assert pack_bits("10100101") == (b"\xa5", 0)


def test_pack_pads_last_byte_with_zeros():
    assert pack_bits("1") == (b"\x80", 7)
    assert pack_bits("111111111") == (b"\xff\x80", 7)


@pytest.mark.parametrize("bits", ["0", "1", "0110", "10100101", "101001011", "0" * 17, "1" * 24])
def test_unpack_restores_bits(bits):
    packed, pad_bits = pack_bits(bits)
    assert len(packed) == (len(bits) + 7) // 8
    assert unpack_bits(packed, pad_bits) == bits


def test_pack_rejects_non_bits():
    with pytest.raises(ValueError):
        pack_bits("0120")


def test_unpack_rejects_bad_pad():
    with pytest.raises(ValueError):
        unpack_bits(b"\x00", 8)
    with pytest.raises(ValueError):
        unpack_bits(b"", 3)
