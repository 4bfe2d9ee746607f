from datetime import datetime, timezone

INDENT = "    "
COL_WIDTH = 19

# Bytes strings longer than this are shown by size only
MAX_INLINE_BYTES = 80

BINARY_PREFIXES = ['Ki', 'Mi', 'Gi', 'Ti', 'Pi', 'Ei', 'Zi', 'Yi']

# ANSI styles
S_TITLE = "\033[1m"
S_NUMBER = "\033[36m"
S_BYTES = "\033[1;31m"
S_LABEL = "\033[1;2m"
S_LABEL_ALT = "\033[32m"
S_RESET = "\033[0m"


# Function formats a byte count with a binary prefix, "1.50 MiB" or "12 bytes"
def size_format(size):
	if size < 1024:
		return f"{size} bytes"
	n = float(size)
	prefix = None
	for prefix in BINARY_PREFIXES:
		n /= 1024
		if n < 1024:
			break
	return f"{n:.2f} {prefix}B"

# Function formats a creation date timestamp as UTC
def date_format(timestamp):
	try:
		return datetime.fromtimestamp(timestamp, timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
	except (OverflowError, OSError, ValueError):
		return str(timestamp)

def text(value):
	if isinstance(value, bytes):
		return value.decode('utf-8', errors = 'replace')
	return str(value)


class display():
	def __init__(self, colour = True):
		self.colour = colour

	def paint(self, value, style):
		if not self.colour:
			return str(value)
		return f"{style}{value}{S_RESET}"

	def disp_help(self):
		print("TORRENTINFO: a torrent file parser\n\n")
		print("User can use following flags to choose what is shown\n")
		print("1) -f, --files       show files within the torrent")
		print("2) -d, --details     show detailed information about the torrent")
		print("3) -e, --everything  print everything about the torrent")
		print("4) -n, --nocolour    no colours")
		print("5) -l, --lenient     accept unsorted keys and trailing data")
		print("6) -v, --verbose     debug logging\n\n")
		print("Here's how one can run the code:\n")
		print("torrentinfo [-f | -d | -e] [-n] [-l] [-v] file_name.torrent")

	def disp_title(self, filename):
		print(self.paint(filename, S_TITLE))

	def print_line(self, name, value):
		n = COL_WIDTH - len(name)
		print(f"{INDENT}{self.paint(name, S_LABEL)} {' ' * n}{value}")

	def disp_summary(self, metadata):
		self.print_line("name", text(metadata.name))
		if metadata.comment is not None:
			self.print_line("comment", text(metadata.comment))
		if metadata.announce is not None:
			self.print_line("announce url", text(metadata.announce))
		if metadata.created_by is not None:
			self.print_line("created by", text(metadata.created_by))
		if metadata.creation_date is not None:
			self.print_line("created on", date_format(metadata.creation_date))
		if metadata.encoding is not None:
			self.print_line("encoding", text(metadata.encoding))
		self.print_line("num files", metadata.num_files())
		self.print_line("total size", self.paint(size_format(metadata.total_length), S_NUMBER))
		self.print_line("info hash", metadata.info_hash_hex())

	def disp_list_files(self, metadata):
		print(f"{INDENT}{self.paint('files', S_LABEL)}")
		for index, f in enumerate(metadata.file_list()):
			print(f"{INDENT * 2}{self.paint(index, S_LABEL)}")
			print(f"{INDENT * 3}{f.path_text()}")
			print(f"{INDENT * 3}{self.paint(size_format(f.length), S_NUMBER)}")

	def disp_list_track(self, metadata):
		print(f"{INDENT}{self.paint('trackers', S_LABEL)}")
		for url in metadata.trackers():
			print(f"{INDENT * 2}{text(url)}")

	def disp_list_pieces(self, metadata):
		print(f"{INDENT}{self.paint('pieces', S_LABEL)}")
		print(f"{INDENT * 2}{self.paint(f'[{len(metadata.pieces) * 20} Bytes]', S_BYTES)}")
		for index, piece in enumerate(metadata.pieces):
			print(f"{INDENT * 2}{self.paint(index, S_NUMBER)} {piece.hex()}")

	def disp_details(self, metadata):
		self.disp_list_files(metadata)
		self.disp_list_track(metadata)
		print(f"{INDENT}{self.paint('piece length', S_LABEL)}")
		print(f"{INDENT * 2}{metadata.piece_length}")
		self.disp_list_pieces(metadata)
		print(f"{INDENT}{self.paint('private', S_LABEL)}")
		print(f"{INDENT * 2}{metadata.private or 0}")

	# Everything mode walks the raw value tree, not the metadata record
	def disp_everything(self, root):
		if not isinstance(root, dict):
			print("torrent file is not a dict")
			return
		self.dict_decoding(root, 1)

	def label(self, key, depth):
		if depth % 2 == 0:
			return self.paint(key, S_LABEL_ALT)
		return self.paint(key, S_LABEL)

	# Function to print dictionaries, nested lists/dictionaries
	def dict_decoding(self, dict_var, depth):
		for key, val in dict_var.items():
			print(f"{INDENT * depth}{self.label(text(key), depth)}")
			self.value_decoding(val, depth + 1)

	# Helper Function
	def list_decoding(self, list_var, depth):
		for index, val in enumerate(list_var):
			print(f"{INDENT * depth}{self.label(index, depth)}")
			self.value_decoding(val, depth + 1)

	def value_decoding(self, val, depth):
		if isinstance(val, dict):
			self.dict_decoding(val, depth)
		elif isinstance(val, list):
			self.list_decoding(val, depth)
		elif isinstance(val, bytes):
			if len(val) > MAX_INLINE_BYTES:
				print(f"{INDENT * depth}{self.paint(f'[{len(val)} Bytes]', S_BYTES)}")
			else:
				print(f"{INDENT * depth}{text(val)}")
		else:
			print(f"{INDENT * depth}{self.paint(val, S_NUMBER)}")
