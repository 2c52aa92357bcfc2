from dataclasses import dataclass, field
from typing import BinaryIO, List, Optional
import hashlib
import io

from . import bencode
from .record import UInt64, inject, wire

PIECE_HASH_LENGTH = 20


@dataclass
class File:
	length: UInt64 = wire("length", default=0)
	path: List[str] = wire("path", default_factory=list)
	md5sum: str = wire("md5sum", default="")


@dataclass
class Info:
	piece_length: UInt64 = wire("piece length", default=0)
	pieces: bytes = wire("pieces", default=b"")
	name: str = wire("name", default="")
	length: UInt64 = wire("length", default=0) # single file
	md5sum: str = wire("md5sum", default="") # single file
	files: List[File] = wire("files", default_factory=list) # multiple files
	private: UInt64 = wire("private", default=0)

	def piece_hashes(self) -> List[bytes]:
		if len(self.pieces) % PIECE_HASH_LENGTH:
			raise ValueError(f"pieces is {len(self.pieces)} bytes, not a multiple of {PIECE_HASH_LENGTH}")
		return [self.pieces[i:i+PIECE_HASH_LENGTH] for i in range(0, len(self.pieces), PIECE_HASH_LENGTH)]

	def total_length(self) -> int:
		if self.files:
			return sum(f.length for f in self.files)
		return self.length


@dataclass
class MetaInfo:
	info: Optional[Info] = wire("info", default=None)
	announce: str = wire("announce", default="")
	announce_list: List[List[str]] = wire("announce-list", default_factory=list)
	creation_date: int = wire("creation date", default=0)
	comment: str = wire("comment", default="")
	created_by: str = wire("created by", default="")
	_info_hash: bytes = field(default=b"", init=False, repr=False, compare=False)

	@property
	def info_hash(self) -> bytes:
		return self._info_hash

	@classmethod
	def from_bencoded(cls, stream: BinaryIO | bytes):
		if isinstance(stream, bytes):
			stream = io.BytesIO(stream)
		parsed = bencode.decode(stream)
		meta = inject(parsed, cls) # rejects anything but a dict
		# the last "info" entry, the one inject() kept
		info_dict = next((v for k, v in reversed(parsed.items) if k == b"info"), None)
		if info_dict is not None:
			# keys are kept in wire order, so this reproduces the original bytes
			meta._info_hash = hashlib.sha1(bencode.dumps(info_dict)).digest()
		return meta
