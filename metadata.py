import hashlib
from struct import iter_unpack

from decoding import decode

HASH_LENGTH = 20

TYPE_NAMES = {
	int: 'integer',
	bytes: 'byte string',
	list: 'list',
	dict: 'dictionary',
}


#_____________________________Schema Errors:______________________________________________________________________________________
class SchemaError(Exception):
	"""Buffer is valid bencode but not a valid torrent file."""
	pass

class MissingField(SchemaError):
	def __init__(self, field):
		self.field = field
		super().__init__(f"missing mandatory field '{field}'")

class TypeMismatch(SchemaError):
	def __init__(self, field, expected, actual):
		self.field = field
		self.expected = expected
		self.actual = actual
		super().__init__(f"field '{field}' should be {expected}, found {actual}")

class InvalidPiecesLength(SchemaError):
	def __init__(self, length):
		self.length = length
		super().__init__(f"'pieces' is {length} bytes long, not a multiple of {HASH_LENGTH}")

class InvalidPieceLength(SchemaError):
	def __init__(self, value):
		self.value = value
		super().__init__(f"'piece length' must be positive, found {value}")

class AmbiguousFileShape(SchemaError):
	def __init__(self):
		super().__init__("'info' has both a single-file 'length' and a multi-file 'files' list")

class MissingFileShape(SchemaError):
	def __init__(self):
		super().__init__("'info' has neither a single-file 'length' nor a multi-file 'files' list")

class EmptyPathSegment(SchemaError):
	def __init__(self, index):
		self.index = index
		super().__init__(f"file {index} has an empty path or path segment")


#_____________________________Metadata Records:__________________________________________________________________________________
class file_entry():
	__slots__ = ('path', 'length', 'md5sum')

	def __init__(self, path, length, md5sum = None):
		self.path = path
		self.length = length
		self.md5sum = md5sum

	def __eq__(self, other):
		if not isinstance(other, file_entry):
			return NotImplemented
		return (self.path, self.length, self.md5sum) == (other.path, other.length, other.md5sum)

	def __repr__(self):
		return f"file_entry(path={self.path!r}, length={self.length!r})"

	# Path segments joined for display, undecodable bytes replaced
	def path_text(self, sep = '/'):
		return sep.join(x.decode('utf-8', errors = 'replace') for x in self.path)


class torrent_metadata():
	__slots__ = (
		'announce',
		'announce_list',
		'name',
		'piece_length',
		'pieces',
		'files',
		'length',
		'info_hash',
		'total_length',
		'private',
		'comment',
		'created_by',
		'creation_date',
		'encoding',
		'httpseeds',
		'nodes',
	)

	def __init__(self, name, piece_length, pieces, info_hash, total_length,
			announce = None, announce_list = None, files = None, length = None,
			private = None, comment = None, created_by = None, creation_date = None,
			encoding = None, httpseeds = None, nodes = None):
		self.name = name
		self.piece_length = piece_length
		self.pieces = pieces
		self.info_hash = info_hash
		self.total_length = total_length
		self.announce = announce
		self.announce_list = announce_list if announce_list is not None else []
		self.files = files if files is not None else []
		self.length = length
		self.private = private
		self.comment = comment
		self.created_by = created_by
		self.creation_date = creation_date
		self.encoding = encoding
		self.httpseeds = httpseeds if httpseeds is not None else []
		self.nodes = nodes if nodes is not None else []

	def __repr__(self):
		return f"torrent_metadata(name={self.name!r}, info_hash={self.info_hash_hex()})"

	def is_multi_file(self):
		return self.length is None

	def num_files(self):
		if self.is_multi_file():
			return len(self.files)
		return 1

	# Files as a list, single-file torrents give one entry named after the torrent
	def file_list(self):
		if self.is_multi_file():
			return list(self.files)
		return [file_entry([self.name], self.length)]

	# Every tracker url, announce first, without duplicates
	def trackers(self):
		urls = []
		if self.announce is not None:
			urls.append(self.announce)
		for tier in self.announce_list:
			for url in tier:
				if url not in urls:
					urls.append(url)
		return urls

	def info_hash_hex(self):
		return to_hex(self.info_hash)


def to_hex(data):
	return data.hex()


#_____________________________Field Helpers:_____________________________________________________________________________________
def type_name(value):
	for t, name in TYPE_NAMES.items():
		if isinstance(value, t):
			return name
	return type(value).__name__

# Function returns dict_var[key] checked against the expected type
def get_field(dict_var, key, expected, field, required = True):
	if key not in dict_var:
		if required:
			raise MissingField(field)
		return None
	val = dict_var[key]
	if not isinstance(val, expected):
		raise TypeMismatch(field, TYPE_NAMES[expected], type_name(val))
	return val

# Function checks a list holds only byte strings
def byte_string_list(list_var, field):
	for i, x in enumerate(list_var):
		if not isinstance(x, bytes):
			raise TypeMismatch(f"{field}[{i}]", 'byte string', type_name(x))
	return list(list_var)

def split_pieces(raw):
	if len(raw) % HASH_LENGTH:
		raise InvalidPiecesLength(len(raw))
	# pieces is a string whose length is a multiple of 20, one SHA1 hash of each piece in order
	return [p for (p,) in iter_unpack(f"{HASH_LENGTH}s", raw)]

def announce_list_decoding(list_var):
	tiers = []
	for i, tier in enumerate(list_var):
		if not isinstance(tier, list):
			raise TypeMismatch(f"announce-list[{i}]", 'list', type_name(tier))
		tiers.append(byte_string_list(tier, f"announce-list[{i}]"))
	return tiers

def nodes_decoding(list_var):
	nodes = []
	for i, node in enumerate(list_var):
		field = f"nodes[{i}]"
		if not isinstance(node, list):
			raise TypeMismatch(field, 'list', type_name(node))
		if len(node) != 2 or not isinstance(node[0], bytes) or not isinstance(node[1], int):
			raise TypeMismatch(field, '[host, port] pair', f"list of {len(node)} items")
		nodes.append((node[0], node[1]))
	return nodes

def files_decoding(list_var):
	files = []
	for i, entry in enumerate(list_var):
		field = f"files[{i}]"
		if not isinstance(entry, dict):
			raise TypeMismatch(field, 'dictionary', type_name(entry))

		length = get_field(entry, b'length', int, f"{field}.length")
		if length < 0:
			raise TypeMismatch(f"{field}.length", 'non-negative integer', str(length))

		path = byte_string_list(get_field(entry, b'path', list, f"{field}.path"), f"{field}.path")
		if not path or not all(path):
			raise EmptyPathSegment(i)

		md5sum = get_field(entry, b'md5sum', bytes, f"{field}.md5sum", required = False)
		files.append(file_entry(path, length, md5sum))
	return files


#_____________________________Extractor:_________________________________________________________________________________________
def extract(root, raw_buffer):
	"""
	Map a decoded value tree onto a torrent_metadata record.

	raw_buffer must be the buffer root was decoded from: the info-hash is the
	SHA1 of the exact bytes the info dictionary occupied there, never of a
	re-encoded copy.
	"""
	if not isinstance(root, dict):
		raise TypeMismatch('<root>', 'dictionary', type_name(root))
	info = get_field(root, b'info', dict, 'info')
	if not hasattr(root, 'spans'):
		raise TypeError("extract needs a value tree produced by decoding.decode")

	start, end = root.spans[b'info']
	info_hash = hashlib.sha1(raw_buffer[start:end]).digest()

	announce = get_field(root, b'announce', bytes, 'announce', required = False)
	announce_list = get_field(root, b'announce-list', list, 'announce-list', required = False)
	if announce_list is not None:
		announce_list = announce_list_decoding(announce_list)

	name = get_field(info, b'name', bytes, 'name')
	piece_length = get_field(info, b'piece length', int, 'piece length')
	if piece_length <= 0:
		raise InvalidPieceLength(piece_length)
	pieces = split_pieces(get_field(info, b'pieces', bytes, 'pieces'))

	# Exactly one of single-file length and multi-file files
	if b'length' in info and b'files' in info:
		raise AmbiguousFileShape()
	if b'length' not in info and b'files' not in info:
		raise MissingFileShape()

	length = get_field(info, b'length', int, 'length', required = False)
	if length is not None:
		if length < 0:
			raise TypeMismatch('length', 'non-negative integer', str(length))
		files = []
		total_length = length
	else:
		files = files_decoding(get_field(info, b'files', list, 'files'))
		total_length = sum(f.length for f in files)

	httpseeds = get_field(root, b'httpseeds', list, 'httpseeds', required = False)
	if httpseeds is not None:
		httpseeds = byte_string_list(httpseeds, 'httpseeds')
	nodes = get_field(root, b'nodes', list, 'nodes', required = False)
	if nodes is not None:
		nodes = nodes_decoding(nodes)

	return torrent_metadata(
		name = name,
		piece_length = piece_length,
		pieces = pieces,
		info_hash = info_hash,
		total_length = total_length,
		announce = announce,
		announce_list = announce_list,
		files = files,
		length = length,
		private = get_field(info, b'private', int, 'private', required = False),
		comment = get_field(root, b'comment', bytes, 'comment', required = False),
		created_by = get_field(root, b'created by', bytes, 'created by', required = False),
		creation_date = get_field(root, b'creation date', int, 'creation date', required = False),
		encoding = get_field(root, b'encoding', bytes, 'encoding', required = False),
		httpseeds = httpseeds,
		nodes = nodes,
	)

def parse(data, strict = True):
	"""Decode a torrent buffer and extract its metadata."""
	root = decode(data, strict = strict)[0]
	return extract(root, data)
