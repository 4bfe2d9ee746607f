#__________________________IMPORT LIBRARIES AND FILES____________________________________________________________________________
import sys
import os
import logging
from display import display
from settings import run, log_level, torrent_parameters, MAX_TORRENT_SIZE
from decoding import decode, DecodeError
from metadata import extract, SchemaError

logger = logging.getLogger(__name__)


#_____________________________PART 1 : Reading the Torrent File:__________________________________________________________________
# Function reads the raw torrent bytes, refusing files over the size limit
def read_torrent(filename, limit = MAX_TORRENT_SIZE):
	with open(filename, "rb") as torrent_file:
		data = torrent_file.read(limit + 1)
	if len(data) > limit:
		raise ValueError(f"{filename} is larger than {limit} bytes")
	logger.debug("read %d bytes from %s", len(data), filename)
	return data


#_____________________________PART 2 : Application:_______________________________________________________________________________
def main(argv = None):
	if argv is None:
		argv = sys.argv[1:]

	logging.basicConfig(
		level = log_level(argv),
		format = "%(levelname)s %(name)s: %(message)s",
	)

	parameters = run().start(torrent_parameters, argv)

	filename = parameters["filename"]
	try:
		data = read_torrent(filename)
	except (OSError, ValueError) as e:
		logger.debug("could not read %s", filename, exc_info = True)
		print("Application Error:", e, file = sys.stderr)
		return 1

	disp = display(colour = parameters["colour"])
	disp.disp_title(os.path.basename(filename))

	try:
		root, consumed = decode(data, strict = parameters["strict"])
		if consumed != len(data):
			logger.warning("ignored %d bytes of trailing data in %s", len(data) - consumed, filename)

		if parameters["show_everything"]:
			disp.disp_everything(root)
			return 0

		metadata = extract(root, data)
	except (DecodeError, SchemaError) as e:
		logger.debug("could not parse %s", filename, exc_info = True)
		print("Error:", e, file = sys.stderr)
		return 1

	if parameters["show_details"]:
		disp.disp_details(metadata)
	else:
		disp.disp_summary(metadata)
		if parameters["show_files"]:
			disp.disp_list_files(metadata)
	return 0


if __name__ == "__main__":
	sys.exit(main())
