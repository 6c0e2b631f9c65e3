from datetime import datetime, timedelta, timezone

from absl.testing import parameterized

from precise_date.basedate import BaseDate
from precise_date.errors import ParseError


class TestBaseDate(parameterized.TestCase):
  SECS = 1547253035
  TIME_MS = SECS * 1000 + 381
  ISO_STRING = '2019-01-12T00:30:35.381Z'

  def test_init_default_isNow(self):
    before = datetime.now(timezone.utc)
    date = BaseDate()
    after = datetime.now(timezone.utc)

    self.assertBetween(date.to_datetime(), before - timedelta(milliseconds=1), after)

  def test_setTime_returnsTime(self):
    date = BaseDate(0)

    self.assertEqual(date.set_time(self.TIME_MS), self.TIME_MS)
    self.assertEqual(date.get_time(), self.TIME_MS)

  def test_utcGetters(self):
    date = BaseDate(self.TIME_MS)

    self.assertEqual(date.get_utc_full_year(), 2019)
    self.assertEqual(date.get_utc_month(), 1)
    self.assertEqual(date.get_utc_date(), 12)
    self.assertEqual(date.get_utc_hours(), 0)
    self.assertEqual(date.get_utc_minutes(), 30)
    self.assertEqual(date.get_utc_seconds(), 35)
    self.assertEqual(date.get_utc_milliseconds(), 381)

  def test_localGetters(self):
    date = BaseDate(self.TIME_MS)
    local = datetime.fromtimestamp(self.SECS)

    self.assertEqual(date.get_full_year(), local.year)
    self.assertEqual(date.get_month(), local.month)
    self.assertEqual(date.get_date(), local.day)
    self.assertEqual(date.get_hours(), local.hour)
    self.assertEqual(date.get_minutes(), local.minute)
    self.assertEqual(date.get_seconds(), local.second)
    self.assertEqual(date.get_milliseconds(), 381)

  @parameterized.parameters(
      (-1, 999),
      (-1000, 0),
      (-1547253034619, 381),
  )
  def test_getUtcMilliseconds_beforeEpoch_countsForward(self, time_ms: int, milliseconds: int):
    self.assertEqual(BaseDate(time_ms).get_utc_milliseconds(), milliseconds)

  @parameterized.parameters(
      (0, SECS * 1000),
      (999, SECS * 1000 + 999),
      (1000, SECS * 1000 + 1000),
      (2001, SECS * 1000 + 2001),
      (-1, SECS * 1000 - 1),
  )
  def test_setUtcMilliseconds_carriesIntoSeconds(self, milliseconds: int, time_ms: int):
    date = BaseDate(self.TIME_MS)

    self.assertEqual(date.set_utc_milliseconds(milliseconds), time_ms)
    self.assertEqual(date.get_time(), time_ms)

  @parameterized.parameters(
      (0, '1970-01-01T00:00:00.000Z'),
      (-1, '1969-12-31T23:59:59.999Z'),
      (TIME_MS, ISO_STRING),
      (-1547253034619, '1920-12-20T23:29:25.381Z'),
  )
  def test_toIsoString(self, time_ms: int, iso_string: str):
    self.assertEqual(BaseDate(time_ms).to_iso_string(), iso_string)
    self.assertEqual(str(BaseDate(time_ms)), iso_string)

  def test_repr(self):
    self.assertEqual(repr(BaseDate(0)), "BaseDate('1970-01-01T00:00:00.000Z')")

  def test_toDatetime(self):
    self.assertEqual(BaseDate(self.TIME_MS).to_datetime(),
                     datetime(2019, 1, 12, 0, 30, 35, 381000, tzinfo=timezone.utc))

  @parameterized.parameters(
      ((2019, 1, 12, 0, 30, 35, 381), TIME_MS),
      ((1970,), 0),
      ((1969, 12, 31, 23, 59, 59, 999), -1),
      ((2019, 1, 12, 0, 0, 1835, 381), TIME_MS),
      ((2019, 1, 11, 24, 30, 35, 381), TIME_MS),
  )
  def test_utc(self, fields: tuple[int, ...], time_ms: int):
    self.assertEqual(BaseDate.utc(*fields), time_ms)

  def test_local(self):
    expected_time_ms = round(datetime(2019, 1, 12, 0, 30, 35).timestamp()) * 1000 + 381

    self.assertEqual(BaseDate.local(2019, 1, 12, 0, 30, 35, 381), expected_time_ms)

  @parameterized.parameters(
      (ISO_STRING, TIME_MS),
      ('2019-01-12T01:30:35.381+01:00', TIME_MS),
      ('2019-01-12T00:30:35Z', SECS * 1000),
      ('Sat, 12 Jan 2019 00:30:35 +0000', SECS * 1000),
      (TIME_MS, TIME_MS),
      (1547253035381.9, TIME_MS),
      (-1.9, -1),
      (datetime(2019, 1, 12, 0, 30, 35, 381999, tzinfo=timezone.utc), TIME_MS),
      (BaseDate(TIME_MS), TIME_MS),
  )
  def test_parse(self, value: object, time_ms: int):
    self.assertEqual(BaseDate.parse(value), time_ms)

  def test_parse_naiveDatetime_isLocalTime(self):
    naive = datetime(2019, 1, 12, 0, 30, 35)

    self.assertEqual(BaseDate.parse(naive), round(naive.timestamp()) * 1000)

  @parameterized.parameters(
      ('not a date'),
      (''),
      (True),
      (float('nan'),),
      (float('inf'),),
      (None,),
      (object(),),
  )
  def test_parse_invalidValue_raises(self, value: object):
    with self.assertRaisesRegex(ParseError, 'unable to parse'):
      BaseDate.parse(value)

  def test_compare(self):
    self.assertEqual(BaseDate(self.TIME_MS), BaseDate(self.TIME_MS))
    self.assertNotEqual(BaseDate(self.TIME_MS), BaseDate(self.TIME_MS + 1))
    self.assertLess(BaseDate(-1), BaseDate(0))
    self.assertGreaterEqual(BaseDate(0), BaseDate(0))
    self.assertNotEqual(BaseDate(0), 0)
