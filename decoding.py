import bencodepy

# Deepest list/dictionary nesting accepted before giving up on the buffer
MAX_DEPTH = 256

DIGITS = b'0123456789'


#_____________________________Decode Errors:______________________________________________________________________________________
class DecodeError(Exception):
	"""Buffer does not conform to the bencode grammar."""

	def __init__(self, message, position):
		self.position = position
		super().__init__(f"{message} (at byte {position})")

class UnexpectedEof(DecodeError):
	pass

class InvalidInteger(DecodeError):
	pass

class InvalidStringLength(DecodeError):
	pass

class InvalidTypePrefix(DecodeError):
	pass

class MissingTerminator(DecodeError):
	pass

class KeyOrderViolation(DecodeError):
	def __init__(self, key, previous, position):
		self.key = key
		self.previous = previous
		super().__init__(f"dictionary key {key!r} does not sort after {previous!r}", position)

class TrailingData(DecodeError):
	def __init__(self, count, position):
		self.count = count
		super().__init__(f"{count} bytes of trailing data after the top-level value", position)

class DepthLimitExceeded(DecodeError):
	pass


#_____________________________Value Tree:________________________________________________________________________________________
class bdict(dict):
	"""
	Dictionary decoded from a buffer.

	spans maps every key to the [start, end) range its value occupied in the
	source buffer, span is the range of the whole dictionary.
	"""

	def __init__(self, *args, **kwargs):
		super().__init__(*args, **kwargs)
		self.spans = {}
		self.span = None


#_____________________________Decoder:___________________________________________________________________________________________
class decoder():
	def __init__(self, data, strict = True, max_depth = MAX_DEPTH):
		if not isinstance(data, (bytes, bytearray, memoryview)):
			raise TypeError("decoder expects bytes, bytearray or memoryview")
		self.data = bytes(data)
		self.strict = strict
		self.max_depth = max_depth
		self.offset = 0
		self.depth = 0

	# Decode one top-level value, returns (value, bytes consumed)
	def decode(self):
		value = self.decode_next()
		if self.strict and self.offset != len(self.data):
			raise TrailingData(len(self.data) - self.offset, self.offset)
		return value, self.offset

	# Dispatch on the leading byte of the next value
	def decode_next(self):
		if self.offset >= len(self.data):
			raise UnexpectedEof("unexpected end of buffer, expected a value", self.offset)

		c = self.data[self.offset:self.offset + 1]
		if c == b'i':
			return self.decode_int()
		elif c == b'l':
			return self.decode_list()
		elif c == b'd':
			return self.decode_dict()
		elif c in DIGITS:
			return self.decode_string()
		elif c == b'-':
			raise InvalidStringLength("negative byte string length", self.offset)
		else:
			raise InvalidTypePrefix(f"invalid type prefix {c!r}", self.offset)

	# Format: i<integer>e
	def decode_int(self):
		start = self.offset
		end = self.data.find(b'e', start + 1)
		if end == -1:
			raise MissingTerminator("integer is missing its 'e' terminator", start)

		int_bytes = self.data[start + 1:end]
		digits = int_bytes[1:] if int_bytes[:1] == b'-' else int_bytes
		if not digits:
			raise InvalidInteger("empty integer", start)
		if not all(ch in DIGITS for ch in digits):
			raise InvalidInteger(f"invalid digit in integer {int_bytes[:20]!r}", start)
		if int_bytes == b'-0':
			raise InvalidInteger("negative zero is not a valid integer", start)
		if digits[:1] == b'0' and len(digits) > 1:
			raise InvalidInteger(f"leading zero in integer {int_bytes[:20]!r}", start)

		try:
			value = int(int_bytes)
		except ValueError as e:
			raise InvalidInteger(f"integer {int_bytes[:20]!r}... is too long", start) from e

		self.offset = end + 1
		return value

	# Format: <length>:<string bytes>
	def decode_string(self):
		start = self.offset
		if self.data[start:start + 1] == b'-':
			raise InvalidStringLength("negative byte string length", start)

		colon = self.data.find(b':', start)
		if colon == -1:
			raise UnexpectedEof("byte string length is not followed by ':'", start)

		length_bytes = self.data[start:colon]
		if not length_bytes or not all(ch in DIGITS for ch in length_bytes):
			raise InvalidStringLength(f"invalid byte string length {length_bytes[:20]!r}", start)
		if length_bytes[:1] == b'0' and len(length_bytes) > 1:
			raise InvalidStringLength(f"leading zero in byte string length {length_bytes[:20]!r}", start)

		try:
			length = int(length_bytes)
		except ValueError as e:
			raise InvalidStringLength("byte string length is too long", start) from e

		end = colon + 1 + length
		if end > len(self.data):
			raise UnexpectedEof(f"byte string of length {length} runs past the end of the buffer", start)

		self.offset = end
		return self.data[colon + 1:end]

	# Format: l<item1><item2>...e
	def decode_list(self):
		start = self.offset
		self.enter(start)
		self.offset += 1
		result = []
		while True:
			if self.offset >= len(self.data):
				raise MissingTerminator("list is missing its 'e' terminator", start)
			if self.data[self.offset:self.offset + 1] == b'e':
				self.offset += 1
				break
			result.append(self.decode_next())
		self.depth -= 1
		return result

	# Format: d<key1><value1>...e, keys are byte strings in ascending order
	def decode_dict(self):
		start = self.offset
		self.enter(start)
		self.offset += 1
		result = bdict()
		previous = None
		while True:
			if self.offset >= len(self.data):
				raise MissingTerminator("dictionary is missing its 'e' terminator", start)
			if self.data[self.offset:self.offset + 1] == b'e':
				self.offset += 1
				break

			key_start = self.offset
			if self.data[key_start:key_start + 1] not in DIGITS + b'-':
				raise InvalidTypePrefix("dictionary key must be a byte string", key_start)
			key = self.decode_string()
			if self.strict and previous is not None and key <= previous:
				raise KeyOrderViolation(key, previous, key_start)

			value_start = self.offset
			result[key] = self.decode_next()
			result.spans[key] = (value_start, self.offset)
			previous = key

		result.span = (start, self.offset)
		self.depth -= 1
		return result

	def enter(self, position):
		self.depth += 1
		if self.depth > self.max_depth:
			raise DepthLimitExceeded(f"nesting deeper than {self.max_depth} levels", position)


#_____________________________Module API:________________________________________________________________________________________
def decode(data, strict = True, max_depth = MAX_DEPTH):
	"""
	Decode a bencoded buffer.

	Returns the value tree and the number of bytes it consumed. In strict mode
	dictionary keys must be strictly ascending and nothing may follow the
	top-level value, lenient mode accepts both.
	"""
	return decoder(data, strict = strict, max_depth = max_depth).decode()

# Function converts decoded dictionaries back to plain dicts, keys sorted, for bencodepy
def plain(value):
	if isinstance(value, dict):
		return {key: plain(val) for key, val in sorted(value.items())}
	elif isinstance(value, list):
		return [plain(x) for x in value]
	return value

def encode(value):
	"""Canonical bencoding (sorted keys) of a value tree."""
	return bencodepy.encode(plain(value))
