import email.utils
import math
from datetime import datetime, timedelta, timezone
from functools import total_ordering
from typing import ClassVar

from .errors import ParseError


@total_ordering
class BaseDate:
  """A mutable wall-clock instant with millisecond resolution.

  The instant is held as integer milliseconds since the Unix epoch. All calendar
  math is delegated to `datetime`, so the supported range is the one of
  `datetime`: years 1 to 9999 of the proleptic Gregorian calendar.
  """

  _EPOCH: ClassVar[datetime] = datetime(1970, 1, 1, tzinfo=timezone.utc)
  _MILLISECOND: ClassVar[timedelta] = timedelta(milliseconds=1)

  def __init__(self, time_ms: int | None = None) -> None:
    if time_ms is None:
      time_ms = self._to_ms(datetime.now(timezone.utc))
    self._time_ms = int(time_ms)

  def __str__(self) -> str:
    return self.to_iso_string()

  def __repr__(self) -> str:
    return f'{self.__class__.__name__}({self.to_iso_string()!r})'

  # Instants are compared in nanoseconds so that subclasses with a finer resolution compare correctly.
  def _key(self) -> int:
    return self._time_ms * 10**6

  def __eq__(self, other: object) -> bool:
    if isinstance(other, BaseDate):
      return self._key() == other._key()
    return NotImplemented

  def __lt__(self, other: object) -> bool:
    if isinstance(other, BaseDate):
      return self._key() < other._key()
    return NotImplemented

  @classmethod
  def _to_ms(cls, date_time: datetime) -> int:
    # Naive datetimes are in local time, same as datetime.timestamp().
    if date_time.tzinfo is None:
      date_time = date_time.astimezone()
    return (date_time - cls._EPOCH) // cls._MILLISECOND

  def _utc_datetime(self) -> datetime:
    return self._EPOCH + timedelta(milliseconds=self._time_ms)

  def _local_datetime(self) -> datetime:
    return self._utc_datetime().astimezone()

  def get_time(self) -> int:
    return self._time_ms

  def set_time(self, time_ms: int) -> int:
    self._time_ms = int(time_ms)
    return self._time_ms

  def get_utc_full_year(self) -> int:
    return self._utc_datetime().year

  def get_utc_month(self) -> int:
    return self._utc_datetime().month

  def get_utc_date(self) -> int:
    return self._utc_datetime().day

  def get_utc_hours(self) -> int:
    return self._utc_datetime().hour

  def get_utc_minutes(self) -> int:
    return self._utc_datetime().minute

  def get_utc_seconds(self) -> int:
    return self._utc_datetime().second

  def get_utc_milliseconds(self) -> int:
    return self._time_ms % 1000

  def get_full_year(self) -> int:
    return self._local_datetime().year

  def get_month(self) -> int:
    return self._local_datetime().month

  def get_date(self) -> int:
    return self._local_datetime().day

  def get_hours(self) -> int:
    return self._local_datetime().hour

  def get_minutes(self) -> int:
    return self._local_datetime().minute

  def get_seconds(self) -> int:
    return self._local_datetime().second

  def get_milliseconds(self) -> int:
    return self._local_datetime().microsecond // 1000

  def set_utc_milliseconds(self, milliseconds: int) -> int:
    """Replaces the millisecond field, values outside [0, 999] carry into the seconds."""
    self._time_ms += milliseconds - self.get_utc_milliseconds()
    return self._time_ms

  def to_iso_string(self) -> str:
    return self._utc_datetime().replace(tzinfo=None).isoformat(timespec='milliseconds') + 'Z'

  def to_datetime(self) -> datetime:
    return self._utc_datetime()

  @classmethod
  def utc(cls,
          year: int,
          month: int = 1,
          day: int = 1,
          hour: int = 0,
          minute: int = 0,
          second: int = 0,
          millisecond: int = 0) -> int:
    """Returns the epoch milliseconds of the given UTC calendar fields.

    Time fields are allowed to overflow, e.g. 90 minutes is 1 hour and 30 minutes.
    """
    date_time = datetime(year, month, day, tzinfo=timezone.utc)
    date_time += timedelta(hours=hour, minutes=minute, seconds=second, milliseconds=millisecond)
    return cls._to_ms(date_time)

  @classmethod
  def local(cls,
            year: int,
            month: int = 1,
            day: int = 1,
            hour: int = 0,
            minute: int = 0,
            second: int = 0,
            millisecond: int = 0) -> int:
    """Same as utc(), but the fields are in the local time zone."""
    date_time = datetime(year, month, day)
    date_time += timedelta(hours=hour, minutes=minute, seconds=second, milliseconds=millisecond)
    return cls._to_ms(date_time)

  @classmethod
  def parse(cls, value: object) -> int:
    """Returns the epoch milliseconds of a date string, number, datetime or BaseDate.

    Strings are either ISO 8601 or RFC 2822. Numbers are epoch milliseconds and get truncated toward zero.
    """
    if isinstance(value, BaseDate):
      return value.get_time()
    if isinstance(value, datetime):
      return cls._to_ms(value)
    if isinstance(value, int) and not isinstance(value, bool):
      return value
    if isinstance(value, float) and math.isfinite(value):
      return int(value)
    if isinstance(value, str):
      try:
        return cls._to_ms(datetime.fromisoformat(value))
      except ValueError:
        pass

      try:
        return cls._to_ms(email.utils.parsedate_to_datetime(value))
      except (TypeError, ValueError):
        pass

    raise ParseError(f'unable to parse {value!r} as a date')
