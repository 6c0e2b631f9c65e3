class ParseError(ValueError):
  """Raised when an input matches none of the recognized date shapes."""


class UnsupportedPlatformError(RuntimeError):
  """Raised when an integer result is requested while big integer support is switched off."""
