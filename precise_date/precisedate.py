import operator
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, ClassVar, Protocol, Self, SupportsIndex, runtime_checkable

from absl import flags, logging
from jsonschema import Draft202012Validator, ValidationError

from .basedate import BaseDate
from .errors import ParseError, UnsupportedPlatformError
from .flagutil import current_value

_BIG_INT_SUPPORT = flags.DEFINE_bool(
    name='big_int_support',
    default=True,
    help='Controls if full precision timestamps can be returned as integers. '
    'When disabled, get_full_time() and full_utc() raise UnsupportedPlatformError, '
    'use get_full_time_string() and full_utc_string() instead.',
)


@dataclass(frozen=True)
class DateStruct:
  """Seconds and nanoseconds since the Unix epoch, same as a protobuf Timestamp.

  `nanos` always counts forward in time, even for instants before the epoch.
  """
  seconds: int
  nanos: int = 0

  def __post_init__(self) -> None:
    if not 0 <= self.nanos < 10**9:
      raise ValueError(f'nanos {self.nanos} out of range, expected to be in range [0, {10**9 - 1}]')


DateTuple = tuple[int, int]


@runtime_checkable
class SupportsToNumber(Protocol):
  """A wrapped integer, e.g. a 64-bit Long, that converts itself to a plain number."""

  def to_number(self) -> int | float:
    ...


DateLike = (str | int | float | SupportsIndex | DateStruct | DateTuple | list[int] | Mapping[str, Any] | datetime |
            BaseDate)


class PreciseDate(BaseDate):
  """A BaseDate with microsecond and nanosecond fields on top of the milliseconds.

  The full time is the signed decimal count of nanoseconds since the Unix epoch, e.g. '1547253035381101032' is
  2019-01-12T00:30:35.381101032Z and '-1547253034618898968' is 1920-12-20T23:29:25.381101032Z.
  """

  _SECOND_NS: ClassVar[int] = 10**9
  _MILLISECOND_NS: ClassVar[int] = 10**6

  # Patterns are applied with fullmatch(), a trailing newline does not match.
  _FULL_TIME_REGEX: ClassVar[str] = r'(?P<sign>[+-]?)(?P<digits>\d+)'
  _FULL_TIME_PATTERN: ClassVar[re.Pattern[str]] = re.compile(_FULL_TIME_REGEX, re.ASCII)

  _ISO_REGEX: ClassVar[str] = (r'(?P<date>\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2})'
                               r'\.(?P<fraction>\d+)'
                               r'(?P<offset>Z|[+-]\d{2}:?\d{2})?')
  _ISO_PATTERN: ClassVar[re.Pattern[str]] = re.compile(_ISO_REGEX, re.ASCII)
  # Any fractional seconds, including the forms fromisoformat() accepts beyond _ISO_REGEX.
  _FRACTION_PATTERN: ClassVar[re.Pattern[str]] = re.compile(r'\d{2}[.,](?P<fraction>\d+)', re.ASCII)
  # Up to 3 digits is the millisecond precision of BaseDate, handled by BaseDate.parse().
  _MILLISECOND_FRACTION_DIGITS: ClassVar[int] = 3
  _PRECISE_FRACTION_DIGITS: ClassVar[tuple[int, ...]] = (6, 9)

  def __init__(self, time: DateLike | None = None) -> None:
    super().__init__()
    self._microseconds = 0
    self._nanoseconds = 0

    if time is not None:
      self.set_full_time(self.parse_full(time))

  def _key(self) -> int:
    return super()._key() + self._microseconds * 1000 + self._nanoseconds

  def __index__(self) -> int:
    self._check_big_int_support(alternative='get_full_time_string()')
    return self._key()

  def __int__(self) -> int:
    return self.__index__()

  @classmethod
  def from_time(cls, time_ms: int) -> Self:
    date = cls()
    date.set_time(time_ms)
    return date

  @classmethod
  def from_fields(cls,
                  year: int,
                  month: int = 1,
                  day: int = 1,
                  hour: int = 0,
                  minute: int = 0,
                  second: int = 0,
                  millisecond: int = 0,
                  microsecond: int = 0,
                  nanosecond: int = 0) -> Self:
    """Creates a date from calendar fields in the local time zone."""
    date = cls()
    date.set_time(BaseDate.local(year, month, day, hour, minute, second, millisecond))
    date.set_microseconds(microsecond)
    date.set_nanoseconds(nanosecond)
    return date

  def get_microseconds(self) -> int:
    return self._microseconds

  def get_nanoseconds(self) -> int:
    return self._nanoseconds

  def set_microseconds(self, microseconds: int) -> str:
    """Sets the microseconds and returns the full time string.

    Whole thousands carry into the milliseconds, negative values borrow from them.
    """
    carry, microseconds = divmod(microseconds, 1000)
    self._microseconds = microseconds
    self.set_utc_milliseconds(self.get_utc_milliseconds() + carry)
    return self.get_full_time_string()

  def set_nanoseconds(self, nanoseconds: int) -> str:
    """Sets the nanoseconds and returns the full time string.

    Whole thousands carry into the microseconds, negative values borrow from them.
    """
    carry, nanoseconds = divmod(nanoseconds, 1000)
    self._nanoseconds = nanoseconds
    return self.set_microseconds(self.get_microseconds() + carry)

  def set_time(self, time_ms: int) -> int:
    # Switching the base time discards the finer precision.
    self._microseconds = 0
    self._nanoseconds = 0
    return super().set_time(time_ms)

  def get_full_time_string(self) -> str:
    return str(self._key())

  def get_full_time(self) -> int:
    self._check_big_int_support(alternative='get_full_time_string()')
    return int(self.get_full_time_string())

  def set_full_time(self, time: str | SupportsIndex) -> str:
    """Sets the date from a count of nanoseconds since the epoch and returns the full time string.

    The last 9 digits are the nanoseconds, anything before them the seconds. Both keep the sign of the input.
    """
    if isinstance(time, PreciseDate):
      time = time.get_full_time_string()
    elif not isinstance(time, str):
      time = str(operator.index(time))

    if (match := self._FULL_TIME_PATTERN.fullmatch(time)) is None:
      raise ParseError(f'unable to match regex {self._FULL_TIME_REGEX} against {time!r}')

    sign = -1 if match['sign'] == '-' else 1
    digits = match['digits']
    seconds = sign * int(digits[:-9] or '0')
    nanoseconds = sign * int(digits[-9:])
    logging.debug(f'{time=}, {seconds=}, {nanoseconds=}')

    self.set_time(seconds * 1000)
    return self.set_nanoseconds(nanoseconds)

  def to_struct(self) -> DateStruct:
    # Floor division keeps nanos counting forward in time for instants before the epoch.
    seconds, nanos = divmod(self._key(), self._SECOND_NS)
    return DateStruct(seconds=seconds, nanos=nanos)

  def to_tuple(self) -> DateTuple:
    struct = self.to_struct()
    return (struct.seconds, struct.nanos)

  def to_iso_string(self) -> str:
    iso_string = super().to_iso_string()
    return f'{iso_string[:-1]}{self._microseconds:03d}{self._nanoseconds:03d}Z'

  def to_datetime(self) -> datetime:
    # datetime stops at microseconds, the nanoseconds are truncated.
    return super().to_datetime() + timedelta(microseconds=self._microseconds)

  @classmethod
  def parse_full(cls, time: DateLike) -> str:
    """Returns the full time string of anything that describes an instant.

    In order of precedence:
      - struct: a mapping or an object with `seconds` and optional `nanos`, e.g. a protobuf Timestamp.
      - tuple: (seconds, nanos).
      - full time: an int, an object with __index__, or a string of digits with an optional sign.
      - ISO 8601 string with 6 or 9 fractional digits.
      - anything BaseDate.parse() accepts, with millisecond precision.
    """
    if isinstance(time, Mapping):
      logging.debug(f'Parsing {time=} as a struct.')
      return cls._parse_struct(dict(time))

    if isinstance(time, (tuple, list)) and len(time) == 2:
      logging.debug(f'Parsing {time=} as a tuple.')
      seconds, nanos = time
      return cls._parse_struct({'seconds': seconds, 'nanos': nanos})

    if not isinstance(time, str) and hasattr(time, 'seconds'):
      logging.debug(f'Parsing {time=} as a struct.')
      return cls._parse_struct({'seconds': getattr(time, 'seconds'), 'nanos': getattr(time, 'nanos', 0)})

    if isinstance(time, PreciseDate):
      logging.debug(f'Parsing {time=} as a full time.')
      return time.get_full_time_string()

    if isinstance(time, SupportsIndex) and not isinstance(time, bool):
      logging.debug(f'Parsing {time=} as a full time.')
      return str(operator.index(time))

    if isinstance(time, str) and cls._FULL_TIME_PATTERN.fullmatch(time) is not None:
      logging.debug(f'Parsing {time=} as a full time.')
      return str(int(time))

    if isinstance(time, str) and (match := cls._ISO_PATTERN.fullmatch(time)) is not None:
      fraction = match['fraction']
      if len(fraction) in cls._PRECISE_FRACTION_DIGITS:
        logging.debug(f'Parsing {time=} as an ISO string with {len(fraction)} fractional digits.')
        time_ms = BaseDate.parse(match['date'] + (match['offset'] or ''))
        return str(time_ms * cls._MILLISECOND_NS + int(fraction.ljust(9, '0')))

    # BaseDate.parse() would silently drop anything finer than milliseconds.
    if isinstance(time, str) and (match := cls._FRACTION_PATTERN.search(time)) is not None:
      fraction = match['fraction']
      if len(fraction) > cls._MILLISECOND_FRACTION_DIGITS:
        raise ParseError(f'ambiguous precision of {len(fraction)} fractional digits in {time!r}, '
                         f'expected up to {cls._MILLISECOND_FRACTION_DIGITS}, or one of {cls._PRECISE_FRACTION_DIGITS} '
                         f'in the form {cls._ISO_REGEX}')

    logging.debug(f'Parsing {time=} as a millisecond precision date.')
    return str(BaseDate.parse(time) * cls._MILLISECOND_NS)

  @classmethod
  def _parse_struct(cls, struct: dict[str, Any]) -> str:
    seconds = struct.get('seconds')
    if isinstance(seconds, SupportsToNumber):
      struct['seconds'] = seconds.to_number()

    try:
      _STRUCT_VALIDATOR.validate(struct)
    except ValidationError as e:
      raise ParseError(f'invalid timestamp struct {struct}: {e.message}') from e

    return str(int(struct['seconds']) * cls._SECOND_NS + int(struct.get('nanos') or 0))

  @classmethod
  def full_utc_string(cls,
                      year: int,
                      month: int = 1,
                      day: int = 1,
                      hour: int = 0,
                      minute: int = 0,
                      second: int = 0,
                      millisecond: int = 0,
                      microsecond: int = 0,
                      nanosecond: int = 0) -> str:
    """Returns the full time string of the given UTC calendar fields."""
    date = cls.from_time(BaseDate.utc(year, month, day, hour, minute, second, millisecond))
    date.set_microseconds(microsecond)
    return date.set_nanoseconds(nanosecond)

  @classmethod
  def full_utc(cls,
               year: int,
               month: int = 1,
               day: int = 1,
               hour: int = 0,
               minute: int = 0,
               second: int = 0,
               millisecond: int = 0,
               microsecond: int = 0,
               nanosecond: int = 0) -> int:
    cls._check_big_int_support(alternative='full_utc_string()')
    return int(cls.full_utc_string(year, month, day, hour, minute, second, millisecond, microsecond, nanosecond))

  @staticmethod
  def _check_big_int_support(alternative: str) -> None:
    # Read on every call, the flag may be flipped at runtime.
    if not current_value(_BIG_INT_SUPPORT):
      raise UnsupportedPlatformError('Arbitrary-precision integer support is disabled by --big_int_support. '
                                     f'Consider using {alternative} instead.')


_STRUCT_VALIDATOR = Draft202012Validator({
    'type': 'object',
    'properties': {
        'seconds': {
            'type': 'integer'
        },
        'nanos': {
            'type': ['integer', 'null']
        },
    },
    'required': ['seconds'],
})
Draft202012Validator.check_schema(_STRUCT_VALIDATOR.schema)
