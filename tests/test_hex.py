import pytest

from alchemy_web3.utils.hex import decode_integer, format_block, from_hex, to_hex


def test_to_hex():
    assert to_hex(0) == "0x0"
    assert to_hex(255) == "0xff"
    with pytest.raises(ValueError):
        to_hex(-1)
    with pytest.raises(TypeError):
        to_hex(True)


def test_from_hex_pads_odd_length():
    assert from_hex("0x1") == b"\x01"
    assert from_hex("abcd") == b"\xab\xcd"
    assert from_hex("0x") == b""
    with pytest.raises(ValueError):
        from_hex("0xzz")


@pytest.mark.parametrize(
    "block, expected",
    [
        (16, "0x10"),
        ("100", "0x64"),
        ("latest", "latest"),
        ("finalized", "finalized"),
        ("0xabc", "0xabc"),
    ],
)
def test_format_block(block, expected):
    assert format_block(block) == expected


def test_format_block_rejects_bool():
    with pytest.raises(TypeError):
        format_block(True)


def test_decode_integer_unsigned():
    word = "0x" + "00" * 31 + "2a"
    assert decode_integer("uint256", word) == "42"
    assert decode_integer("uint", word) == "42"
    assert decode_integer("uint256", "0x" + "ff" * 32) == str(2**256 - 1)


def test_decode_integer_signed():
    assert decode_integer("int8", "0xff") == "-1"
    assert decode_integer("int256", "0x" + "ff" * 32) == "-1"
    assert decode_integer("int16", "0x7fff") == "32767"


def test_decode_integer_empty_is_zero():
    assert decode_integer("uint256", "0x") == "0"


@pytest.mark.parametrize("type_name", ["uint7", "int264", "bytes32", "address"])
def test_decode_integer_rejects_non_integer_types(type_name):
    with pytest.raises(ValueError):
        decode_integer(type_name, "0x01")
