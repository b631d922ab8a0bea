"""Exception types raised by tilo."""


class TiloError(Exception):
    """Base class for errors that abort the program with a message."""


class ConfigError(TiloError):
    """Configuration could not be loaded or a highlight rule is invalid."""


class InputError(TiloError):
    """Input could not be read or the command line asked for something impossible."""
