# Dict entries are an ordered list of pairs, not a Python dict, so duplicate
# keys and non-canonical key order survive a round trip.

from dataclasses import dataclass
from typing import Iterator, Tuple, Union
import json

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1
UINT64_MAX = (1 << 64) - 1


class Node:
	def is_scalar(self) -> bool:
		return False

	def is_list(self) -> bool:
		return False

	def is_dict(self) -> bool:
		return False

	def is_absent(self) -> bool:
		return False

	def __str__(self) -> str:
		return render(self)


class _Scalar(Node):
	def is_scalar(self) -> bool:
		return True


@dataclass(frozen=True)
class Int(_Scalar):
	# every wire integer with a leading '-'
	value: int

	def __post_init__(self):
		if type(self.value) is not int or not INT64_MIN <= self.value <= INT64_MAX:
			raise ValueError(f"not a signed 64-bit integer: {self.value!r}")


@dataclass(frozen=True)
class UInt(_Scalar):
	value: int

	def __post_init__(self):
		if type(self.value) is not int or not 0 <= self.value <= UINT64_MAX:
			raise ValueError(f"not an unsigned 64-bit integer: {self.value!r}")


@dataclass(frozen=True)
class Bytes(_Scalar):
	value: bytes

	def __post_init__(self):
		if isinstance(self.value, (bytearray, memoryview)):
			object.__setattr__(self, "value", bytes(self.value))
		elif not isinstance(self.value, bytes):
			raise ValueError(f"not a byte string: {self.value!r}")


@dataclass(frozen=True)
class List(Node):
	items: Tuple["Value", ...] = ()

	def __post_init__(self):
		items = tuple(self.items)
		for item in items:
			if not isinstance(item, Node) or item.is_absent():
				raise ValueError(f"not a list item: {item!r}")
		object.__setattr__(self, "items", items)

	def is_list(self) -> bool:
		return True

	def __len__(self) -> int:
		return len(self.items)

	def __iter__(self) -> Iterator["Value"]:
		return iter(self.items)


@dataclass(frozen=True)
class Dict(Node):
	items: Tuple[Tuple[bytes, "Value"], ...] = ()

	def __post_init__(self):
		items = tuple((k, v) for k, v in self.items)
		for k, v in items:
			if not isinstance(k, bytes):
				raise ValueError(f"dict keys must be bytes, got {k!r}")
			if not isinstance(v, Node) or v.is_absent():
				raise ValueError(f"not a dict value: {v!r}")
		object.__setattr__(self, "items", items)

	def is_dict(self) -> bool:
		return True

	def __len__(self) -> int:
		return len(self.items)

	def __iter__(self) -> Iterator[Tuple[bytes, "Value"]]:
		return iter(self.items)

	def keys(self) -> list[bytes]:
		return [k for k, _ in self.items]

	def get(self, key: bytes) -> "Value":
		# first match wins, the same entry a reader scanning the wire would see first
		for k, v in self.items:
			if k == key:
				return v
		return Absent


class _AbsentType(Node):
	_instance: "_AbsentType | None" = None

	def __new__(cls) -> "_AbsentType":
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def is_absent(self) -> bool:
		return True

	def __repr__(self) -> str:
		return "Absent"

	def __bool__(self) -> bool:
		return False


Absent = _AbsentType()

Value = Union[Int, UInt, Bytes, List, Dict]


def canonical(node: Node) -> Node:
	# sorted copy, for callers that hash what they encode
	match node:
		case List():
			return List(canonical(item) for item in node.items)
		case Dict():
			return Dict(sorted(((k, canonical(v)) for k, v in node.items), key=lambda kv: kv[0]))
		case _:
			return node


def _bytes_for_humans(b: bytes) -> str:
	try:
		return b.decode()
	except UnicodeDecodeError:
		return "0x" + b.hex()


def to_debug(node: Node):
	match node:
		case Int() | UInt():
			return {"pod": node.value}
		case Bytes():
			return {"pod": _bytes_for_humans(node.value)}
		case List():
			return {"l": [to_debug(item) for item in node.items]}
		case Dict():
			return {"d": [{"k": _bytes_for_humans(k), "v": to_debug(v)} for k, v in node.items]}
		case _:
			return None


def render(node: Node, indent: int | None = 2) -> str:
	# debugging only, lossy
	return json.dumps(to_debug(node), indent=indent)
