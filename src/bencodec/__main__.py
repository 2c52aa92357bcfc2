import argparse
import logging
import sys

from tqdm import tqdm

from . import bencode, tree
from .errors import BencodeError
from .metainfo import MetaInfo

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger("bencodec")


def cmd_dump(args) -> int:
	with open(args.file, "rb") as f:
		res = bencode.decode(f)
	print(tree.render(res))
	return 0


def cmd_check(args) -> int:
	failed = 0
	for path in tqdm(args.files, desc="Checking round trips", disable=len(args.files) < 2):
		with open(path, "rb") as f:
			data = f.read()
		try:
			roundtrip = bencode.dumps(bencode.loads(data))
		except BencodeError as e:
			logger.error("%s: %s", path, e)
			failed += 1
			continue
		if roundtrip != data:
			logger.error("%s: re-encoded bytes differ", path)
			failed += 1
		else:
			logger.debug("%s: ok (%d bytes)", path, len(data))
	print(f"{len(args.files) - failed}/{len(args.files)} files round-tripped byte for byte")
	return 1 if failed else 0


def cmd_info(args) -> int:
	with open(args.file, "rb") as f:
		meta = MetaInfo.from_bencoded(f)
	info = meta.info
	print("announce:     ", meta.announce)
	if info is not None:
		print("name:         ", info.name)
		print("length:       ", info.total_length())
		print("piece length: ", info.piece_length)
		print("pieces:       ", len(info.piece_hashes()))
		print("infohash:     ", meta.info_hash.hex())
	return 0


def main(argv=None) -> int:
	parser = argparse.ArgumentParser(prog="bencodec", description="Inspect bencoded files")
	parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
	sub = parser.add_subparsers(dest="command", required=True)

	p = sub.add_parser("dump", help="print the decoded value tree")
	p.add_argument("file")
	p.set_defaults(func=cmd_dump)

	p = sub.add_parser("check", help="verify decode/encode reproduces each file exactly")
	p.add_argument("files", nargs="+")
	p.set_defaults(func=cmd_check)

	p = sub.add_parser("info", help="summarise a .torrent file")
	p.add_argument("file")
	p.set_defaults(func=cmd_info)

	args = parser.parse_args(argv)
	logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=LOG_FORMAT)

	try:
		return args.func(args)
	except (ValueError, OSError) as e:
		logger.error("%s", e)
		return 1


if __name__ == "__main__":
	sys.exit(main())
