from .bencode import Decoder, Encoder, decode, dumps, encode, loads
from .errors import (
	BencodeError,
	BencodeSyntaxError,
	DecodeError,
	FieldPathError,
	KeyTypeError,
	KindMismatchError,
	ShapeMismatchError,
	TruncatedInputError,
)
from .record import Int64, UInt64, inject, marshal, marshals, project, unmarshal, unmarshals, wire
from .tree import Absent, Bytes, Dict, Int, List, UInt, Value, canonical, render

__all__ = [
	"Decoder",
	"Encoder",
	"decode",
	"dumps",
	"encode",
	"loads",
	"BencodeError",
	"BencodeSyntaxError",
	"DecodeError",
	"FieldPathError",
	"KeyTypeError",
	"KindMismatchError",
	"ShapeMismatchError",
	"TruncatedInputError",
	"Int64",
	"UInt64",
	"inject",
	"marshal",
	"marshals",
	"project",
	"unmarshal",
	"unmarshals",
	"wire",
	"Absent",
	"Bytes",
	"Dict",
	"Int",
	"List",
	"UInt",
	"Value",
	"canonical",
	"render",
]
