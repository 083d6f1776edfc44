"""Module defining various global constants."""

# slink version
VERSION = "0.2.0"

# Exit code for when slink itself fails.
SLINK_ERROR_CODE = 254

# Exit code for when no remote host has been selected with `slink use` yet.
NO_HOST_SELECTED_CODE = 253

# Exit code for when the SSH transport could not be established. This is the same code
# that ssh itself uses for connection failures.
CONNECTION_ERROR_CODE = 255

# Name of the directory used under the XDG config and cache directories.
APP_NAME = "slink"

# Name of the file inside the config directory that holds the selected host.
HOST_FILE_NAME = "hostname"

# Name of the optional INI config file inside the config directory.
CONFIG_FILE_NAME = "config"

# How long an idle control master is kept alive after its last client has exited.
DEFAULT_CONTROL_PERSIST = "10m"
