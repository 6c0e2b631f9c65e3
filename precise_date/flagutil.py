from typing import TypeVar

from absl import flags

T = TypeVar('T')


def current_value(flag_holder: flags.FlagHolder[T]) -> T:
  """Returns the value of a flag, whether it came from the command line, code or the default.

  FlagHolder.value raises while the flags are unparsed, which is the normal state when used as a library.
  The Flag object itself holds the default until it is parsed or assigned, e.g. `FLAGS.big_int_support = False`.
  """
  return flags.FLAGS[flag_holder.name].value
