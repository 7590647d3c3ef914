DBUS_NAME = "org.freedesktop.DBus"
DBUS_PATH = "/org/freedesktop/DBus"
DBUS_INTERFACE = "org.freedesktop.DBus"
PROPERTIES_INTERFACE = "org.freedesktop.DBus.Properties"

MPRIS_PREFIX = "org.mpris.MediaPlayer2."
MPRIS_PATH = "/org/mpris/MediaPlayer2"
PLAYER_INTERFACE = "org.mpris.MediaPlayer2.Player"

# Milliseconds.
POLL_INTERVAL = 200
CALL_TIMEOUT = 3000

RELAY_PIPE = "/tmp/mpris-bridge.pipe"
# Seconds.
RELAY_WAIT = 3.0
