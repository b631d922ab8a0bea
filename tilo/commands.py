"""Command pattern implementation for viewer actions."""

from abc import ABC, abstractmethod
from typing import Dict, Tuple, Optional, TYPE_CHECKING

from .keyboard import KeyType
from .model import SelectionMode

if TYPE_CHECKING:
    from .pager import Pager
    from .keyboard import KeyEvent


class ViewerCommand(ABC):
    """Base class for viewer commands."""

    @abstractmethod
    def execute(self, pager: 'Pager', key_event: 'KeyEvent') -> bool:
        """Execute the command.

        Args:
            pager: Pager instance
            key_event: The key event that triggered this command

        Returns:
            True if the screen needs redrawing
        """
        pass


class MovementCommand(ViewerCommand):
    """Base class for cursor movement commands.

    Movement never touches the selection: moving the cursor is what extends it.
    """

    def execute(self, pager: 'Pager', key_event: 'KeyEvent') -> bool:
        self._move(pager, key_event)
        return True

    @abstractmethod
    def _move(self, pager: 'Pager', key_event: 'KeyEvent'):
        """Perform the movement."""
        pass


class LineDownCommand(MovementCommand):
    def _move(self, pager, key_event):
        pager.viewer.move_cursor(1)


class LineUpCommand(MovementCommand):
    def _move(self, pager, key_event):
        pager.viewer.move_cursor(-1)


class LeftCharCommand(MovementCommand):
    def _move(self, pager, key_event):
        pager.viewer.move_cursor_col(-1)


class RightCharCommand(MovementCommand):
    def _move(self, pager, key_event):
        pager.viewer.move_cursor_col(1)


class WordForwardCommand(MovementCommand):
    def _move(self, pager, key_event):
        pager.viewer.word_forward()


class WordBackwardCommand(MovementCommand):
    def _move(self, pager, key_event):
        pager.viewer.word_backward()


class WordEndCommand(MovementCommand):
    def _move(self, pager, key_event):
        pager.viewer.word_end()


class BeginningOfLineCommand(MovementCommand):
    def _move(self, pager, key_event):
        pager.viewer.move_line_start()


class EndOfLineCommand(MovementCommand):
    def _move(self, pager, key_event):
        pager.viewer.move_line_end()


class TopCommand(MovementCommand):
    def _move(self, pager, key_event):
        pager.viewer.cursor_top()


class BottomCommand(MovementCommand):
    def _move(self, pager, key_event):
        pager.viewer.cursor_bottom()


class PageDownCommand(MovementCommand):
    def _move(self, pager, key_event):
        pager.viewer.page(1, pager.view.page_rows())


class PageUpCommand(MovementCommand):
    def _move(self, pager, key_event):
        pager.viewer.page(-1, pager.view.page_rows())


class NextMatchCommand(MovementCommand):
    def __init__(self, direction: int):
        self.direction = direction

    def _move(self, pager, key_event):
        pager.viewer.next_match(self.direction)


class SelectCommand(ViewerCommand):
    """Start, switch or cancel a selection mode."""

    def __init__(self, mode: SelectionMode):
        self.mode = mode

    def execute(self, pager, key_event):
        pager.viewer.toggle_select(self.mode)
        return True


class CopyCommand(ViewerCommand):
    def execute(self, pager, key_event):
        pager.viewer.copy_selection(pager.clipboard)
        return True


class ToggleWrapCommand(ViewerCommand):
    def execute(self, pager, key_event):
        pager.viewer.toggle_wrap()
        return True


class ToggleLineNumbersCommand(ViewerCommand):
    def execute(self, pager, key_event):
        pager.viewer.toggle_line_numbers()
        return True


class MarkCommand(ViewerCommand):
    """Enter: drop an empty separator line into a followed stream."""

    def execute(self, pager, key_event):
        pager.viewer.mark()
        return True


class EscapeCommand(ViewerCommand):
    def execute(self, pager, key_event):
        if pager.viewer.selection.active:
            pager.viewer.clear_selection()
        return True


class SearchCommand(ViewerCommand):
    """Prompt for a query and jump to the nearest match in ``direction``."""

    def __init__(self, direction: int):
        self.direction = direction

    def execute(self, pager, key_event):
        prefix = '/' if self.direction >= 0 else '?'
        query = pager.prompt(prefix)
        if query is not None:
            pager.viewer.set_query(query, self.direction)
        return True


class QuitCommand(ViewerCommand):
    def execute(self, pager, key_event):
        pager.running = False
        return False


class CommandRegistry:
    """Registry for mapping key combinations to commands."""

    def __init__(self):
        self._commands: Dict[Tuple[KeyType, str], ViewerCommand] = {}
        self._setup_default_commands()

    def _setup_default_commands(self):
        """Set up the default command mappings."""
        # Vertical movement
        self.register((KeyType.REGULAR, 'j'), LineDownCommand())
        self.register((KeyType.REGULAR, 'k'), LineUpCommand())
        self.register((KeyType.SPECIAL, 'down'), LineDownCommand())
        self.register((KeyType.SPECIAL, 'up'), LineUpCommand())
        self.register((KeyType.REGULAR, 'g'), TopCommand())
        self.register((KeyType.REGULAR, 'G'), BottomCommand())
        self.register((KeyType.SPECIAL, 'page_down'), PageDownCommand())
        self.register((KeyType.SPECIAL, 'page_up'), PageUpCommand())

        # Horizontal movement
        self.register((KeyType.REGULAR, 'h'), LeftCharCommand())
        self.register((KeyType.REGULAR, 'l'), RightCharCommand())
        self.register((KeyType.SPECIAL, 'left'), LeftCharCommand())
        self.register((KeyType.SPECIAL, 'right'), RightCharCommand())
        self.register((KeyType.REGULAR, '0'), BeginningOfLineCommand())
        self.register((KeyType.REGULAR, 'I'), BeginningOfLineCommand())
        self.register((KeyType.SPECIAL, 'home'), BeginningOfLineCommand())
        self.register((KeyType.REGULAR, '$'), EndOfLineCommand())
        self.register((KeyType.REGULAR, 'A'), EndOfLineCommand())
        self.register((KeyType.SPECIAL, 'end'), EndOfLineCommand())

        # Word movement
        self.register((KeyType.REGULAR, 'w'), WordForwardCommand())
        self.register((KeyType.REGULAR, 'b'), WordBackwardCommand())
        self.register((KeyType.REGULAR, 'e'), WordEndCommand())

        # Search
        self.register((KeyType.REGULAR, '/'), SearchCommand(1))
        self.register((KeyType.REGULAR, '?'), SearchCommand(-1))
        self.register((KeyType.REGULAR, 'n'), NextMatchCommand(1))
        self.register((KeyType.REGULAR, 'N'), NextMatchCommand(-1))

        # Selection
        self.register((KeyType.REGULAR, 'v'), SelectCommand(SelectionMode.CHAR))
        self.register((KeyType.REGULAR, 'V'), SelectCommand(SelectionMode.LINE))
        self.register((KeyType.CTRL, 'v'), SelectCommand(SelectionMode.BLOCK))
        self.register((KeyType.REGULAR, 'y'), CopyCommand())
        self.register((KeyType.SPECIAL, 'escape'), EscapeCommand())

        # Display toggles
        self.register((KeyType.REGULAR, 'W'), ToggleWrapCommand())
        self.register((KeyType.REGULAR, 'L'), ToggleLineNumbersCommand())

        # System commands
        self.register((KeyType.SPECIAL, 'enter'), MarkCommand())
        self.register((KeyType.REGULAR, 'q'), QuitCommand())
        self.register((KeyType.CTRL, 'c'), QuitCommand())

    def register(self, key: Tuple[KeyType, str], command: ViewerCommand):
        """Register a command for a key combination."""
        self._commands[key] = command

    def get_command(self, key_type: KeyType, value: str) -> Optional[ViewerCommand]:
        """Get the command for a key combination."""
        return self._commands.get((key_type, value))

    def execute(self, pager: 'Pager', key_event: 'KeyEvent') -> bool:
        """Execute the command for the given key event.

        Returns:
            True if the screen needs redrawing; unmapped keys are ignored
        """
        command = self.get_command(key_event.key_type, key_event.value)
        if command:
            return command.execute(pager, key_event)
        return False
