"""System clipboard integration."""

import logging

import pyperclip

logger = logging.getLogger(__name__)


class ClipboardManager:
    """Plain-text clipboard writer backed by pyperclip.

    Failures are reported, not raised: a missing clipboard tool must never
    take down the viewer.
    """

    def write(self, text: str) -> bool:
        """Copy text to the system clipboard.

        Returns:
            True if the clipboard accepted the text
        """
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            logger.warning(f"Could not copy to clipboard: {e}")
            return False
        logger.debug(f"copied {len(text)} characters to clipboard")
        return True
