from typing import BinaryIO, Optional
import io

from . import tree
from .errors import BencodeSyntaxError, KeyTypeError, ShapeMismatchError, TruncatedInputError

DIGITS = b"0123456789"
INT_CHARS = DIGITS + b"-"
READ_CHUNK = 1 << 16


# one top-level value per decode(); a peeked byte is pushed back, so the
# stream is left right behind the value. Not safe for concurrent use.
class Decoder:
	def __init__(self, stream: BinaryIO):
		self.stream = stream
		self.offset = 0
		self._pushback: Optional[bytes] = None

	def _read1(self) -> bytes:
		if self._pushback is not None:
			char, self._pushback = self._pushback, None
		else:
			char = self.stream.read(1)
			if not char:
				raise TruncatedInputError("unexpected end of input", self.offset)
		self.offset += 1
		return char

	def _unread(self, char: bytes) -> None:
		self._pushback = char
		self.offset -= 1

	def _is_delim(self, delim: bytes) -> bool:
		char = self._read1()
		if char == delim:
			return True
		self._unread(char)
		return False

	def _read_token(self, delim: bytes, allowed: bytes) -> bytes:
		buf = bytearray()
		while not self._is_delim(delim):
			char = self._read1()
			if char not in allowed:
				raise BencodeSyntaxError(f"expected digit or {delim!r}, read {char!r}", self.offset - 1)
			buf += char
		return bytes(buf)

	def _read_bytes(self) -> bytes:
		length = int(self._read_token(b":", DIGITS))
		value = bytearray()
		# bounded reads, the declared length is untrusted
		while len(value) < length:
			chunk = self.stream.read(min(length - len(value), READ_CHUNK))
			if not chunk:
				self.offset += len(value)
				raise TruncatedInputError(f"string underread: wanted {length} bytes, got {len(value)}", self.offset)
			value += chunk
		self.offset += length
		return bytes(value)

	def _read_int(self) -> tree.Int | tree.UInt:
		start = self.offset
		token = self._read_token(b"e", INT_CHARS)
		digits = token[1:] if token.startswith(b"-") else token
		if not digits or b"-" in digits:
			raise BencodeSyntaxError(f"malformed integer {token!r}", start)
		try:
			if token.startswith(b"-"):
				return tree.Int(int(token))
			return tree.UInt(int(token))
		except ValueError:
			raise BencodeSyntaxError(f"integer out of range: {token.decode()}", start) from None

	def _decode(self) -> tree.Value:
		start = self.offset
		char = self._read1()

		if char in DIGITS: # byte string, the digits are its length
			self._unread(char)
			return tree.Bytes(self._read_bytes())

		elif char == b"i":
			return self._read_int()

		elif char == b"l":
			items = []
			while not self._is_delim(b"e"):
				items.append(self._decode())
			return tree.List(items)

		elif char == b"d":
			items = []
			while not self._is_delim(b"e"):
				key_start = self.offset
				k = self._decode()
				if not isinstance(k, tree.Bytes):
					raise KeyTypeError(f"dict key must be a byte string, got {type(k).__name__}", key_start)
				items.append((k.value, self._decode()))
			return tree.Dict(items)

		else:
			raise BencodeSyntaxError(f"unexpected character {char!r}", start)

	def decode(self) -> tree.Value:
		return self._decode()


def decode(stream: BinaryIO) -> tree.Value:
	return Decoder(stream).decode()


def loads(data: bytes, strict: bool = True) -> tree.Value:
	stream = io.BytesIO(data)
	decoder = Decoder(stream)
	res = decoder.decode()
	if strict and stream.read(1):
		raise BencodeSyntaxError("trailing bytes", decoder.offset)
	return res


class Encoder:
	def __init__(self, stream: BinaryIO):
		self.stream = stream

	def encode(self, obj: tree.Value) -> None:
		stream = self.stream
		match obj:
			case tree.Bytes():
				stream.write(str(len(obj.value)).encode())
				stream.write(b":")
				stream.write(obj.value)
			case tree.Int() | tree.UInt():
				stream.write(b"i")
				stream.write(str(obj.value).encode())
				stream.write(b"e")
			case tree.List():
				stream.write(b"l")
				for item in obj.items:
					self.encode(item)
				stream.write(b"e")
			case tree.Dict():
				stream.write(b"d")
				for k, v in obj.items: # stored order, never re-sorted
					stream.write(str(len(k)).encode())
					stream.write(b":")
					stream.write(k)
					self.encode(v)
				stream.write(b"e")
			case _:
				raise ShapeMismatchError(f"don't know how to bencode {obj!r}")


def encode(obj: tree.Value, stream: BinaryIO) -> None:
	Encoder(stream).encode(obj)


def dumps(obj: tree.Value) -> bytes:
	res = io.BytesIO()
	encode(obj, res)
	return res.getvalue()
