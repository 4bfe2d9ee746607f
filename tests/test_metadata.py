"""Tests for torrent metadata extraction."""

import hashlib

import pytest

from decoding import KeyOrderViolation, decode, encode
from metadata import (
	AmbiguousFileShape,
	EmptyPathSegment,
	InvalidPieceLength,
	InvalidPiecesLength,
	MissingField,
	MissingFileShape,
	TypeMismatch,
	extract,
	file_entry,
	parse,
	to_hex,
)

INFO_SPAN = b"d6:lengthi12345e4:name8:file.bin12:piece lengthi16384e6:pieces20:AAAAAAAAAAAAAAAAAAAAe"
SINGLE_FILE = b"d8:announce18:http://tracker.x/a4:info" + INFO_SPAN + b"e"


def single_info(**extra):
	info = {
		b"name": b"file.bin",
		b"piece length": 16384,
		b"pieces": b"A" * 20,
		b"length": 12345,
	}
	for key, val in extra.items():
		info[key.encode()] = val
	return info

def multi_info():
	return {
		b"name": b"album",
		b"piece length": 32768,
		b"pieces": b"A" * 20 + b"B" * 20,
		b"files": [
			{b"length": 100, b"path": [b"disc1", b"01.flac"]},
			{b"length": 250, b"path": [b"cover.jpg"]},
		],
	}

def torrent(info, **top):
	root = {b"info": info}
	for key, val in top.items():
		root[key.replace("_", " ").encode()] = val
	return encode(root)


class TestSingleFile:
	def test_single_file_torrent(self):
		metadata = parse(SINGLE_FILE)

		assert metadata.name == b"file.bin"
		assert metadata.announce == b"http://tracker.x/a"
		assert metadata.total_length == 12345
		assert metadata.length == 12345
		assert metadata.files == []
		assert metadata.piece_length == 16384
		assert metadata.pieces == [b"A" * 20]
		assert metadata.info_hash == hashlib.sha1(INFO_SPAN).digest()

	def test_file_list(self):
		metadata = parse(SINGLE_FILE)

		assert not metadata.is_multi_file()
		assert metadata.num_files() == 1
		assert metadata.file_list() == [file_entry([b"file.bin"], 12345)]

	def test_info_hash_hex(self):
		metadata = parse(SINGLE_FILE)

		assert metadata.info_hash_hex() == hashlib.sha1(INFO_SPAN).hexdigest()
		assert len(metadata.info_hash_hex()) == 40

	def test_announce_is_optional(self):
		metadata = parse(torrent(single_info()))

		assert metadata.announce is None
		assert metadata.announce_list == []
		assert metadata.trackers() == []

	def test_zero_length_file(self):
		metadata = parse(torrent(single_info(length = 0)))

		assert metadata.total_length == 0


class TestMultiFile:
	def test_multi_file_torrent(self):
		metadata = parse(torrent(multi_info()))

		assert metadata.is_multi_file()
		assert metadata.length is None
		assert metadata.total_length == 350
		assert metadata.files == [
			file_entry([b"disc1", b"01.flac"], 100),
			file_entry([b"cover.jpg"], 250),
		]
		assert metadata.num_files() == 2
		assert metadata.pieces == [b"A" * 20, b"B" * 20]

	def test_path_text(self):
		metadata = parse(torrent(multi_info()))

		assert metadata.files[0].path_text() == "disc1/01.flac"

	def test_md5sum(self):
		info = multi_info()
		info[b"files"][0][b"md5sum"] = b"d41d8cd98f00b204e9800998ecf8427e"
		metadata = parse(torrent(info))

		assert metadata.files[0].md5sum == b"d41d8cd98f00b204e9800998ecf8427e"
		assert metadata.files[1].md5sum is None

	def test_empty_path_segment(self):
		info = multi_info()
		info[b"files"][1][b"path"] = [b"dir", b""]

		with pytest.raises(EmptyPathSegment) as exc:
			parse(torrent(info))
		assert exc.value.index == 1

	def test_empty_path(self):
		info = multi_info()
		info[b"files"][0][b"path"] = []

		with pytest.raises(EmptyPathSegment):
			parse(torrent(info))

	def test_file_missing_length(self):
		info = multi_info()
		del info[b"files"][0][b"length"]

		with pytest.raises(MissingField) as exc:
			parse(torrent(info))
		assert exc.value.field == "files[0].length"

	def test_negative_file_length(self):
		info = multi_info()
		info[b"files"][0][b"length"] = -1

		with pytest.raises(TypeMismatch):
			parse(torrent(info))

	def test_path_segment_type(self):
		info = multi_info()
		info[b"files"][0][b"path"] = [b"dir", 7]

		with pytest.raises(TypeMismatch) as exc:
			parse(torrent(info))
		assert exc.value.field == "files[0].path[1]"
		assert exc.value.actual == "integer"

	def test_file_entry_not_a_dictionary(self):
		info = multi_info()
		info[b"files"] = [b"file"]

		with pytest.raises(TypeMismatch):
			parse(torrent(info))


class TestInfoHash:
	def test_decoding_twice_gives_same_hash(self):
		assert parse(SINGLE_FILE).info_hash == parse(SINGLE_FILE).info_hash

	def test_reordering_top_level_keys_keeps_hash(self):
		reordered = b"d4:info" + INFO_SPAN + b"8:announce18:http://tracker.x/ae"

		assert parse(reordered, strict = False).info_hash == parse(SINGLE_FILE).info_hash

	def test_unrelated_top_level_change_keeps_hash(self):
		changed = SINGLE_FILE.replace(b"tracker.x", b"tracker.y")

		assert parse(changed).info_hash == parse(SINGLE_FILE).info_hash

	def test_byte_change_inside_info_changes_hash(self):
		changed = SINGLE_FILE.replace(b"file.bin", b"file.bim")

		assert parse(changed).info_hash != parse(SINGLE_FILE).info_hash

	def test_hash_covers_source_bytes_not_reencoding(self):
		"""An unsorted info dictionary hashes as it was written."""
		info_span = b"d4:name1:x6:lengthi1e12:piece lengthi1e6:pieces0:e"
		data = b"d4:info" + info_span + b"e"
		root = decode(data, strict = False)[0]
		metadata = extract(root, data)

		assert metadata.info_hash == hashlib.sha1(info_span).digest()
		assert metadata.info_hash != hashlib.sha1(encode(root[b"info"])).digest()

	def test_hash_of_trailing_data_buffer(self):
		metadata = parse(SINGLE_FILE + b"\n\x00garbage", strict = False)

		assert metadata.info_hash == hashlib.sha1(INFO_SPAN).digest()

	def test_needs_decoded_tree(self):
		with pytest.raises(TypeError):
			extract({b"info": single_info()}, torrent(single_info()))


class TestPieces:
	@pytest.mark.parametrize("length", [19, 21, 1])
	def test_invalid_length(self, length):
		with pytest.raises(InvalidPiecesLength) as exc:
			parse(torrent(single_info(pieces = b"A" * length)))
		assert exc.value.length == length

	def test_zero_pieces(self):
		metadata = parse(torrent(single_info(pieces = b"")))

		assert metadata.pieces == []

	def test_split_in_order(self):
		raw = bytes(range(60))
		metadata = parse(torrent(single_info(pieces = raw)))

		assert metadata.pieces == [raw[0:20], raw[20:40], raw[40:60]]

	def test_pieces_wrong_type(self):
		with pytest.raises(TypeMismatch) as exc:
			parse(torrent(single_info(pieces = 20)))
		assert exc.value.field == "pieces"
		assert exc.value.expected == "byte string"
		assert exc.value.actual == "integer"

	@pytest.mark.parametrize("piece_length", [0, -16384])
	def test_piece_length_must_be_positive(self, piece_length):
		with pytest.raises(InvalidPieceLength):
			parse(torrent(single_info(**{"piece length": piece_length})))


class TestSchemaErrors:
	def test_keys_out_of_order(self):
		data = b"d4:infod4:name1:x4:abcdi1ee8:announce1:xe"

		with pytest.raises(KeyOrderViolation):
			parse(data)

	def test_missing_pieces(self):
		info = single_info()
		del info[b"pieces"]

		with pytest.raises(MissingField) as exc:
			parse(torrent(info))
		assert exc.value.field == "pieces"

	@pytest.mark.parametrize("key, field", [
		(b"name", "name"),
		(b"piece length", "piece length"),
	])
	def test_missing_info_fields(self, key, field):
		info = single_info()
		del info[key]

		with pytest.raises(MissingField) as exc:
			parse(torrent(info))
		assert exc.value.field == field

	def test_missing_info(self):
		with pytest.raises(MissingField) as exc:
			parse(b"d8:announce1:xe")
		assert exc.value.field == "info"

	def test_info_not_a_dictionary(self):
		with pytest.raises(TypeMismatch) as exc:
			parse(b"d4:infoli1eee")
		assert exc.value.field == "info"
		assert exc.value.actual == "list"

	def test_root_not_a_dictionary(self):
		with pytest.raises(TypeMismatch) as exc:
			parse(b"li1ee")
		assert exc.value.field == "<root>"

	def test_both_file_shapes(self):
		info = multi_info()
		info[b"length"] = 350

		with pytest.raises(AmbiguousFileShape):
			parse(torrent(info))

	def test_neither_file_shape(self):
		info = single_info()
		del info[b"length"]

		with pytest.raises(MissingFileShape):
			parse(torrent(info))

	def test_message_names_field(self):
		with pytest.raises(TypeMismatch) as exc:
			parse(torrent(single_info(name = 5)))
		assert "'name'" in str(exc.value)
		assert "byte string" in str(exc.value)


class TestTrackers:
	def test_announce_list(self):
		tiers = [[b"udp://a:1", b"udp://b:2"], [b"http://c/announce"]]
		metadata = parse(torrent(single_info(), announce = b"udp://a:1", **{"announce-list": tiers}))

		assert metadata.announce_list == tiers
		assert metadata.trackers() == [b"udp://a:1", b"udp://b:2", b"http://c/announce"]

	def test_tier_not_a_list(self):
		with pytest.raises(TypeMismatch) as exc:
			parse(torrent(single_info(), **{"announce-list": [b"udp://a:1"]}))
		assert exc.value.field == "announce-list[0]"

	def test_url_not_a_byte_string(self):
		with pytest.raises(TypeMismatch) as exc:
			parse(torrent(single_info(), **{"announce-list": [[b"udp://a:1", 3]]}))
		assert exc.value.field == "announce-list[0][1]"

	def test_announce_wrong_type(self):
		with pytest.raises(TypeMismatch):
			parse(torrent(single_info(), announce = [b"udp://a:1"]))


class TestOptionalFields:
	def test_present(self):
		data = torrent(
			single_info(private = 1),
			comment = b"a comment",
			created_by = b"mktorrent 1.1",
			creation_date = 1514764800,
			encoding = b"UTF-8",
			httpseeds = [b"http://seed/"],
			nodes = [[b"router.example", 6881]],
		)
		metadata = parse(data)

		assert metadata.comment == b"a comment"
		assert metadata.created_by == b"mktorrent 1.1"
		assert metadata.creation_date == 1514764800
		assert metadata.encoding == b"UTF-8"
		assert metadata.private == 1
		assert metadata.httpseeds == [b"http://seed/"]
		assert metadata.nodes == [(b"router.example", 6881)]

	def test_absent(self):
		metadata = parse(torrent(single_info()))

		assert metadata.comment is None
		assert metadata.created_by is None
		assert metadata.creation_date is None
		assert metadata.private is None
		assert metadata.httpseeds == []
		assert metadata.nodes == []

	def test_creation_date_wrong_type(self):
		with pytest.raises(TypeMismatch) as exc:
			parse(torrent(single_info(), creation_date = b"2018"))
		assert exc.value.field == "creation date"

	def test_malformed_node(self):
		with pytest.raises(TypeMismatch):
			parse(torrent(single_info(), nodes = [[b"router.example"]]))


def test_to_hex():
	assert to_hex(b"foobar") == "666f6f626172"
