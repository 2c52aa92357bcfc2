from typing import List, Optional


class BencodeError(ValueError):
	pass


class DecodeError(BencodeError):
	# offset: bytes consumed when the problem was found
	def __init__(self, message: str, offset: Optional[int] = None):
		if offset is not None:
			message = f"{message} (at offset {offset})"
		super().__init__(message)
		self.offset = offset


class BencodeSyntaxError(DecodeError):
	pass


class TruncatedInputError(DecodeError):
	pass


class KeyTypeError(DecodeError):
	pass


class ShapeMismatchError(BencodeError):
	pass


class KindMismatchError(BencodeError):
	def __init__(self, expected: str, got: str, detail: str = ""):
		message = f"mismatched kind: want {expected}, got {got}"
		if detail:
			message += f" ({detail})"
		super().__init__(message)
		self.expected = expected
		self.got = got


class FieldPathError(BencodeError):
	def __init__(self, path: List[str], cause: BencodeError):
		self.path = path
		self.cause = cause
		super().__init__(f"{self.dotted_path}: {cause}")

	@property
	def dotted_path(self) -> str:
		out = ""
		for segment in self.path:
			if segment.startswith("["):
				out += segment
			elif out:
				out += "." + segment
			else:
				out = segment
		return out

	@classmethod
	def wrap(cls, segment: str, err: BencodeError) -> "FieldPathError":
		# extend an existing path rather than nesting wrappers
		if isinstance(err, FieldPathError):
			return cls([segment] + err.path, err.cause)
		return cls([segment], err)
