from dataclasses import MISSING, dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, BinaryIO, Dict, NewType, Optional, Tuple, Union, get_args, get_origin, get_type_hints
import io
import logging
import types

from . import tree
from .bencode import decode, encode, loads
from .errors import BencodeError, FieldPathError, KindMismatchError, ShapeMismatchError

logger = logging.getLogger(__name__)

TAG = "ben"

Int64 = NewType("Int64", int)
UInt64 = NewType("UInt64", int)


def wire(name: str, **kwargs) -> Any:
	metadata = dict(kwargs.pop("metadata", None) or {})
	metadata[TAG] = name
	return field(metadata=metadata, **kwargs)


# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------

class Kind(Enum):
	INT = "signed integer"
	UINT = "unsigned integer"
	BYTES = "byte string"
	STR = "text string"


@dataclass(frozen=True)
class Scalar:
	kind: Kind


@dataclass(frozen=True)
class Sequence:
	item: "Shape"


@dataclass(frozen=True)
class Record:
	cls: type


@dataclass(frozen=True)
class Opaque:
	pass


Shape = Union[Scalar, Sequence, Record, Opaque]

_SCALARS = {
	int: Kind.INT,
	Int64: Kind.INT,
	UInt64: Kind.UINT,
	bytes: Kind.BYTES,
	str: Kind.STR,
}

_OPAQUE_ARGS = frozenset(get_args(tree.Value))


def shape_of(hint) -> Shape:
	if hint in _SCALARS:
		return Scalar(_SCALARS[hint])
	if hint is tree.Node:
		return Opaque()

	origin = get_origin(hint)
	if origin in (Union, types.UnionType):
		args = [a for a in get_args(hint) if a is not type(None)]
		if frozenset(args) == _OPAQUE_ARGS:
			return Opaque()
		if len(args) == 1: # Optional[X]
			return shape_of(args[0])
	elif origin is list:
		args = get_args(hint)
		if len(args) == 1:
			return Sequence(shape_of(args[0]))
	elif isinstance(hint, type) and is_dataclass(hint):
		return Record(hint)

	raise ShapeMismatchError(f"unsupported type {hint!r}: want int, Int64, UInt64, bytes, str, list, a dataclass or Value")


def _zero(shape: Shape):
	match shape:
		case Scalar(kind=Kind.INT | Kind.UINT):
			return 0
		case Scalar(kind=Kind.BYTES):
			return b""
		case Scalar(kind=Kind.STR):
			return ""
		case Sequence():
			return []
		case _:
			return None


def _is_zero(shape: Shape, obj) -> bool:
	if obj is None or obj is tree.Absent:
		return True
	if isinstance(shape, Opaque) or type(obj) is bool:
		return False
	# a wrongly-typed value is left for _project to reject
	return isinstance(obj, (int, bytes, bytearray, str, list, tuple)) and not obj


@dataclass(frozen=True)
class FieldSpec:
	name: str
	key: bytes
	shape: Shape


_schemas: Dict[type, Tuple[FieldSpec, ...]] = {}


def schema(cls: type) -> Tuple[FieldSpec, ...]:
	try:
		return _schemas[cls]
	except KeyError:
		pass

	try:
		hints = get_type_hints(cls)
	except NameError as e:
		raise ShapeMismatchError(f"cannot resolve type hints of {cls.__name__}: {e}") from e
	specs = []
	for f in fields(cls):
		if f.name.startswith("_"):
			continue # private
		key = f.metadata.get(TAG) or f.name
		if isinstance(key, str):
			key = key.encode()
		try:
			shape = shape_of(hints[f.name])
		except ShapeMismatchError as e:
			raise FieldPathError.wrap(f.name, e) from e
		specs.append(FieldSpec(f.name, key, shape))

	logger.debug("compiled %s: %s", cls.__name__, ", ".join(f"{s.name}={s.key!r}" for s in specs))
	_schemas[cls] = res = tuple(specs)
	return res


def _kind_of(node: tree.Node) -> str:
	match node:
		case tree.Int():
			return Kind.INT.value
		case tree.UInt():
			return Kind.UINT.value
		case tree.Bytes():
			return Kind.BYTES.value
		case tree.List():
			return "list"
		case tree.Dict():
			return "dict"
		case _:
			return "nothing"


# ---------------------------------------------------------------------------
# Projection (typed -> tree)
# ---------------------------------------------------------------------------

def _project_scalar(obj, kind: Kind) -> tree.Value:
	got = type(obj).__name__
	if kind in (Kind.INT, Kind.UINT):
		if type(obj) is not int:
			raise KindMismatchError(kind.value, got)
		try:
			return tree.Int(obj) if kind is Kind.INT else tree.UInt(obj)
		except ValueError:
			raise KindMismatchError(kind.value, got, f"{obj} out of range") from None
	if kind is Kind.STR:
		if not isinstance(obj, str):
			raise KindMismatchError(kind.value, got)
		return tree.Bytes(obj.encode())
	if not isinstance(obj, (bytes, bytearray)):
		raise KindMismatchError(kind.value, got)
	return tree.Bytes(bytes(obj))


def _project_list(obj, item: Optional[Shape]) -> tree.List:
	items = []
	for i, elem in enumerate(obj):
		try:
			items.append(_project(elem, item) if item is not None else _infer(elem))
		except BencodeError as e:
			raise FieldPathError.wrap(f"[{i}]", e) from e
	return tree.List(items)


def _project_record(obj, cls: type) -> tree.Dict:
	items = []
	for spec in schema(cls):
		value = getattr(obj, spec.name)
		if _is_zero(spec.shape, value):
			continue
		try:
			items.append((spec.key, _project(value, spec.shape)))
		except BencodeError as e:
			raise FieldPathError.wrap(spec.name, e) from e
	return tree.Dict(items)


def _project(obj, shape: Shape) -> tree.Value:
	match shape:
		case Opaque():
			if not isinstance(obj, tree.Node) or obj.is_absent():
				raise KindMismatchError("bencode value", type(obj).__name__)
			return obj
		case Scalar(kind=kind):
			return _project_scalar(obj, kind)
		case Sequence(item=item):
			if not isinstance(obj, (list, tuple)):
				raise KindMismatchError("list", type(obj).__name__)
			return _project_list(obj, item)
		case Record(cls=cls):
			if not isinstance(obj, cls):
				raise KindMismatchError(cls.__name__, type(obj).__name__)
			return _project_record(obj, cls)
	raise ShapeMismatchError(f"not a shape: {shape!r}")


def _infer(obj) -> tree.Value:
	if isinstance(obj, tree.Node):
		if obj.is_absent():
			raise ShapeMismatchError("Absent cannot be a list item")
		return obj
	if is_dataclass(obj) and not isinstance(obj, type):
		return _project_record(obj, type(obj))
	if type(obj) is int:
		if obj <= tree.INT64_MAX:
			return _project_scalar(obj, Kind.INT)
		return _project_scalar(obj, Kind.UINT)
	if isinstance(obj, str):
		return _project_scalar(obj, Kind.STR)
	if isinstance(obj, (bytes, bytearray)):
		return _project_scalar(obj, Kind.BYTES)
	if isinstance(obj, (list, tuple)):
		return _project_list(obj, None)
	raise ShapeMismatchError(f"don't know how to project {type(obj).__name__}")


def project(obj, hint=None) -> tree.Node:
	# zero top-level values project to Absent, which marshal() writes as nothing
	if hint is None:
		if obj is None or obj is tree.Absent:
			return tree.Absent
		if type(obj) is not bool and isinstance(obj, (int, bytes, bytearray, str, list, tuple)) and not obj:
			return tree.Absent
		return _infer(obj)

	shape = shape_of(hint)
	if _is_zero(shape, obj):
		return tree.Absent
	return _project(obj, shape)


# ---------------------------------------------------------------------------
# Injection (tree -> typed)
# ---------------------------------------------------------------------------

def _inject_scalar(node: tree.Node, kind: Kind):
	match node, kind:
		case tree.Int(value=v), Kind.INT:
			return v
		case tree.UInt(value=v), Kind.INT:
			# reinterpreted as two's complement, like a cast to int64
			return v - (1 << 64) if v > tree.INT64_MAX else v
		case tree.UInt(value=v), Kind.UINT:
			return v
		case tree.Bytes(value=v), Kind.BYTES:
			return v
		case tree.Bytes(value=v), Kind.STR:
			try:
				return v.decode()
			except UnicodeDecodeError as e:
				raise KindMismatchError(kind.value, _kind_of(node), f"not valid UTF-8: {e.reason}") from None
	raise KindMismatchError(kind.value, _kind_of(node))


def _inject_list(node: tree.Node, item: Shape) -> list:
	if not isinstance(node, tree.List):
		raise KindMismatchError("list", _kind_of(node))
	res = []
	for i, elem in enumerate(node.items):
		try:
			res.append(_inject(elem, item))
		except BencodeError as e:
			raise FieldPathError.wrap(f"[{i}]", e) from e
	return res


def _allocate(cls: type, specs: Tuple[FieldSpec, ...], values: Dict[str, Any]):
	zeros = {spec.name: _zero(spec.shape) for spec in specs}
	kwargs = {}
	late = {}
	for f in fields(cls):
		if f.name in values:
			value = values[f.name]
		elif f.default is not MISSING or f.default_factory is not MISSING:
			continue
		else:
			value = zeros.get(f.name)
		if f.init:
			kwargs[f.name] = value
		else:
			late[f.name] = value
	obj = cls(**kwargs)
	for name, value in late.items():
		setattr(obj, name, value)
	return obj


def _inject_record(node: tree.Node, cls: type, target=None):
	if node is tree.Absent:
		node = tree.Dict()
	if not isinstance(node, tree.Dict):
		raise KindMismatchError("dict", _kind_of(node))

	specs = schema(cls)
	by_key = {spec.key: spec for spec in specs}
	values = {}
	for k, v in node.items: # wire order, so a repeated key overwrites the earlier one
		spec = by_key.get(k)
		if spec is None:
			logger.debug("%s: dropping unknown key %r", cls.__name__, k)
			continue
		try:
			values[spec.name] = _inject(v, spec.shape)
		except BencodeError as e:
			raise FieldPathError.wrap(spec.name, e) from e

	if target is None:
		return _allocate(cls, specs, values)
	for name, value in values.items():
		setattr(target, name, value)
	return target


def _inject(node: tree.Node, shape: Shape):
	match shape:
		case Opaque():
			return node
		case Scalar(kind=kind):
			return _inject_scalar(node, kind)
		case Sequence(item=item):
			return _inject_list(node, item)
		case Record(cls=cls):
			return _inject_record(node, cls)
	raise ShapeMismatchError(f"not a shape: {shape!r}")


def inject(node: tree.Node, target):
	# target: a dataclass instance (filled in place), a dataclass type or another type hint
	if is_dataclass(target):
		if isinstance(target, type):
			return _inject_record(node, target)
		return _inject_record(node, type(target), target)

	shape = shape_of(target)
	if node is tree.Absent and not isinstance(shape, Record):
		return _zero(shape)
	return _inject(node, shape)


# ---------------------------------------------------------------------------
# marshal / unmarshal
# ---------------------------------------------------------------------------

def marshal(obj, stream: BinaryIO, hint=None) -> None:
	node = project(obj, hint)
	if not node.is_absent():
		encode(node, stream)


def marshals(obj, hint=None) -> bytes:
	res = io.BytesIO()
	marshal(obj, res, hint)
	return res.getvalue()


def unmarshal(stream: BinaryIO, target):
	return inject(decode(stream), target)


def unmarshals(data: bytes, target):
	return inject(loads(data), target)
