import sys
import os
import logging
from display import display

logger = logging.getLogger(__name__)

# Largest torrent file read from disk
MAX_TORRENT_SIZE = 64 * 1024 * 1024

# Torrent parameters : file name / view to show / colours / strict decoding / debug logging
torrent_parameters = {
	"filename": None,
	"show_files": False,
	"show_details": False,
	"show_everything": False,
	"colour": True,
	"strict": True,
	"verbose": False,
}

# Flag -> (parameter, value it sets)
FLAGS = {
	'-f': ("show_files", True),
	'--files': ("show_files", True),
	'-d': ("show_details", True),
	'--details': ("show_details", True),
	'-e': ("show_everything", True),
	'--everything': ("show_everything", True),
	'-n': ("colour", False),
	'--nocolour': ("colour", False),
	'-l': ("strict", False),
	'--lenient': ("strict", False),
	'-v': ("verbose", True),
	'--verbose': ("verbose", True),
}

HELP_FLAGS = ('-h', '-help', '--help')
VERBOSE_FLAGS = ('-v', '--verbose')


# Function picks the log level from the raw argument list
def log_level(argv):
	if any(arg in VERBOSE_FLAGS for arg in argv):
		return logging.DEBUG
	return logging.WARNING


class run():
	def start(self, torrent_parameters, argv = None):
		if argv is None:
			argv = sys.argv[1:]
		parameters = dict(torrent_parameters)

		if any(arg in HELP_FLAGS for arg in argv):
			disp = display()
			disp.disp_help()
			sys.exit(0)

		# System Arguments: -f(files), -d(details), -e(everything), -n(no colour), -l(lenient), -v(verbose)
		try:
			for arg in argv:
				if arg in FLAGS:
					key, value = FLAGS[arg]
					parameters[key] = value
				elif arg.startswith('-'):
					raise ValueError(f"unknown flag {arg}")
				elif parameters["filename"] is None:
					parameters["filename"] = arg
				else:
					raise ValueError(f"unexpected argument {arg}")

			if parameters["filename"] is None:
				raise ValueError("no torrent file given")
			if parameters["show_files"] and (parameters["show_details"] or parameters["show_everything"]):
				raise ValueError("--files cannot be combined with --details or --everything")
			if not os.path.isfile(parameters["filename"]):
				raise ValueError(f"{parameters['filename']} is not a file")
		except ValueError as e:
			logger.debug("rejected arguments %r", argv, exc_info = True)
			print("Invalid arguments:", e, file = sys.stderr)
			sys.exit(1)

		return parameters
