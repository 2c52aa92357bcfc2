"""Tests for the decoder and encoder."""

import io

import pytest

from bencodec.bencode import Decoder, decode, dumps, encode, loads
from bencodec.errors import (
	BencodeSyntaxError,
	DecodeError,
	KeyTypeError,
	ShapeMismatchError,
	TruncatedInputError,
)
from bencodec.tree import Absent, Bytes, Dict, Int, List, UInt


# ---------------------------------------------------------------------------
# decoding
# ---------------------------------------------------------------------------

def test_decode_string():
	assert loads(b"4:spam") == Bytes(b"spam")

def test_decode_empty_string():
	assert loads(b"0:") == Bytes(b"")

def test_decode_binary_string():
	assert loads(b"4:\x00\xff\x80e") == Bytes(b"\x00\xff\x80e")

def test_decode_unsigned_int():
	assert loads(b"i3e") == UInt(3)

def test_decode_signed_int():
	assert loads(b"i-3e") == Int(-3)

def test_decode_zero_is_unsigned():
	assert loads(b"i0e") == UInt(0)

def test_decode_int_limits():
	assert loads(b"i18446744073709551615e") == UInt(2**64 - 1)
	assert loads(b"i-9223372036854775808e") == Int(-(2**63))

def test_decode_list():
	assert loads(b"l4:spam4:eggse") == List((Bytes(b"spam"), Bytes(b"eggs")))

def test_decode_dict():
	assert loads(b"d3:cow3:moo4:spam4:eggse") == Dict((
		(b"cow", Bytes(b"moo")),
		(b"spam", Bytes(b"eggs")),
	))

def test_decode_nested():
	res = loads(b"d4:listli1ei-1edee1:xl0:ee")
	assert res == Dict((
		(b"list", List((UInt(1), Int(-1), Dict()))),
		(b"x", List((Bytes(b""),))),
	))

def test_decode_keeps_key_order_and_duplicates():
	res = loads(b"d1:b1:x1:a1:y1:b1:ze")
	assert res.keys() == [b"b", b"a", b"b"]
	assert res.get(b"b") == Bytes(b"x")

def test_decode_from_stream():
	assert decode(io.BytesIO(b"l1:ae")) == List((Bytes(b"a"),))

def test_decoder_leaves_trailing_bytes():
	stream = io.BytesIO(b"i1e4:spamrest")
	decoder = Decoder(stream)
	assert decoder.decode() == UInt(1)
	assert stream.tell() == 3
	assert decoder.decode() == Bytes(b"spam")
	assert stream.read() == b"rest"

def test_loads_not_strict_ignores_trailer():
	assert loads(b"i1exyz", strict=False) == UInt(1)


# ---------------------------------------------------------------------------
# decoding errors
# ---------------------------------------------------------------------------

def test_non_digit_in_int():
	with pytest.raises(BencodeSyntaxError):
		loads(b"i3:xe")

def test_short_string():
	with pytest.raises(TruncatedInputError):
		loads(b"5:ab")

def test_short_string_offset():
	with pytest.raises(TruncatedInputError) as exc_info:
		loads(b"5:ab")
	assert exc_info.value.offset == 4

@pytest.mark.parametrize("data", [b"e", b"x", b"-1:a", b":"])
def test_unexpected_leading_byte(data):
	with pytest.raises(BencodeSyntaxError):
		loads(data)

@pytest.mark.parametrize("data", [b"ie", b"i-e", b"i1-2e", b"i--1e"])
def test_malformed_int(data):
	with pytest.raises(BencodeSyntaxError):
		loads(data)

@pytest.mark.parametrize("data", [b"i18446744073709551616e", b"i-9223372036854775809e"])
def test_int_out_of_range(data):
	with pytest.raises(BencodeSyntaxError):
		loads(data)

def test_non_digit_in_length():
	with pytest.raises(BencodeSyntaxError):
		loads(b"3x:abc")

@pytest.mark.parametrize("data", [b"", b"l", b"li1e", b"d1:a", b"d1:ai1e", b"i12", b"12"])
def test_truncated(data):
	with pytest.raises(TruncatedInputError):
		loads(data)

def test_missing_dict_value():
	with pytest.raises(BencodeSyntaxError):
		loads(b"d1:ae")

@pytest.mark.parametrize("data", [b"di1e1:ae", b"dle1:ae", b"dde1:ae"])
def test_non_string_key(data):
	with pytest.raises(KeyTypeError):
		loads(data)

def test_trailing_bytes_rejected():
	with pytest.raises(BencodeSyntaxError):
		loads(b"i1ei2e")

def test_errors_share_base():
	for cls in (BencodeSyntaxError, TruncatedInputError, KeyTypeError):
		assert issubclass(cls, DecodeError)
		assert issubclass(cls, ValueError)


# ---------------------------------------------------------------------------
# encoding
# ---------------------------------------------------------------------------

def test_encode_scalars():
	assert dumps(Bytes(b"spam")) == b"4:spam"
	assert dumps(UInt(3)) == b"i3e"
	assert dumps(Int(-3)) == b"i-3e"
	assert dumps(Int(0)) == b"i0e"

def test_encode_containers():
	assert dumps(List((Bytes(b"spam"), Bytes(b"eggs")))) == b"l4:spam4:eggse"
	assert dumps(List()) == b"le"
	assert dumps(Dict()) == b"de"

def test_encode_keeps_dict_order():
	value = Dict(((b"spam", Bytes(b"eggs")), (b"cow", Bytes(b"moo"))))
	assert dumps(value) == b"d4:spam4:eggs3:cow3:mooe"

def test_encode_into_stream():
	out = io.BytesIO()
	encode(List((UInt(1), UInt(2))), out)
	assert out.getvalue() == b"li1ei2ee"

def test_encode_absent():
	with pytest.raises(ShapeMismatchError):
		dumps(Absent)

def test_encode_foreign_object():
	with pytest.raises(ShapeMismatchError):
		dumps({b"a": 1})


# ---------------------------------------------------------------------------
# round trips
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("data", [
	b"4:spam",
	b"i-42e",
	b"i18446744073709551615e",
	b"l4:spam4:eggse",
	b"d3:cow3:moo4:spam4:eggse",
	b"d4:spaml1:a1:bee",
	b"d1:zi1e1:ai2e1:zi3ee",
	b"lledee",
	b"d8:announce18:http://tracker/ann4:infod6:lengthi12e4:name5:a.txt12:piece lengthi16384e6:pieces20:" + b"a" * 20 + b"ee",
])
def test_roundtrip(data):
	assert dumps(loads(data)) == data


# ---------------------------------------------------------------------------
# oversized declared lengths
# ---------------------------------------------------------------------------

def test_huge_length_in_bytes():
	with pytest.raises(TruncatedInputError):
		loads(b"100000000000000000000:ab")

def test_huge_length_in_file(tmp_path):
	path = tmp_path / "huge.bin"
	path.write_bytes(b"1000000000000000:ab")
	with open(path, "rb") as f:
		with pytest.raises(TruncatedInputError) as exc_info:
			decode(f)
	assert exc_info.value.offset == 19

def test_long_string_across_chunks():
	body = bytes(range(256)) * 1000
	assert loads(b"256000:" + body) == Bytes(body)
