"""Constants and configuration for the tilo viewer."""


class ViewerConstants:
    """Central configuration constants for the viewer."""

    # Fallback geometry when the terminal size cannot be queried
    DEFAULT_WIDTH = 80
    DEFAULT_HEIGHT = 24

    # Keyboard timing
    ESCAPE_SEQUENCE_TIMEOUT = 0.05  # Wait for the rest of an escape sequence (seconds)
    FEED_POLL_TIMEOUT = 0.03  # Key wait between follow-feed polls (seconds)

    # Follow mode
    FOLLOW_POLL_INTERVAL = 0.2  # Sleep after reaching end of the followed file (seconds)
    FEED_QUEUE_SIZE = 16  # Pending batches before the tailer stalls
    FEED_MAX_BATCH = 512  # Lines handed over in one batch

    # Resize handling
    RESIZE_PIPE_MARKER = b'R'  # Byte written to pipe to signal resize

    # Status line
    STATUS_SEPARATOR = " | "
    HELP_TEXT = (
        "q quit • / ? search • n/N next • h/j/k/l move • w/b/e word • "
        "0/$/I/A line • g/G top/bot • v/V/ctrl-v select • y yank • L line# • W wrap"
    )
    NO_MATCHES_MESSAGE = "no matches"
    NO_SELECTION_MESSAGE = "no selection"
    SELECTION_CLEARED_MESSAGE = "selection cleared"
    COPIED_MESSAGE = "copied"
    CLIPBOARD_FAILED_MESSAGE = "clipboard failed"

    # Raw control sequences blessed has no capability for
    CURSOR_BLOCK = "\x1b[2 q"
    CURSOR_RESET = "\x1b[0 q"
