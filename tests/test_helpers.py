"""
Tests for the business clock and date helpers
"""
import pytest
from datetime import datetime, date
from unittest.mock import patch

from app.utils.helpers import (
    add_months,
    day_range,
    today_range,
    parse_datetime,
    format_datetime,
    isoformat,
    MINUTE_FORMAT,
)


@pytest.mark.unit
class TestAddMonths:
    """Tests for calendar month arithmetic"""

    def test_simple_forward(self):
        """Test adding a month inside the same year"""
        assert add_months(datetime(2024, 3, 15, 9, 30), 1) == datetime(2024, 4, 15, 9, 30)

    def test_year_rollover(self):
        """Test crossing into the next year"""
        assert add_months(datetime(2024, 11, 10), 3) == datetime(2025, 2, 10)

    def test_negative_months(self):
        """Test going back six months across a year boundary"""
        assert add_months(datetime(2024, 3, 31), -6) == datetime(2023, 9, 30)

    def test_clamps_to_month_end(self):
        """Test that Jan 31 + 1 month lands on the last day of February"""
        assert add_months(datetime(2023, 1, 31), 1) == datetime(2023, 2, 28)
        assert add_months(datetime(2024, 1, 31), 1) == datetime(2024, 2, 29)


@pytest.mark.unit
class TestDayRange:
    """Tests for day boundaries"""

    def test_day_range_from_datetime(self):
        """Test that a datetime maps to its midnight-to-midnight range"""
        start, end = day_range(datetime(2024, 5, 20, 17, 45))
        assert start == datetime(2024, 5, 20)
        assert end == datetime(2024, 5, 21)

    def test_day_range_from_date(self):
        """Test that a plain date is accepted"""
        start, end = day_range(date(2024, 12, 31))
        assert start == datetime(2024, 12, 31)
        assert end == datetime(2025, 1, 1)

    def test_today_range_uses_business_clock(self):
        """Test that today_range is based on helpers.now"""
        with patch('app.utils.helpers.now', return_value=datetime(2024, 6, 1, 23, 59)):
            start, end = today_range()
        assert start == datetime(2024, 6, 1)
        assert end == datetime(2024, 6, 2)


@pytest.mark.unit
class TestParseDatetime:
    """Tests for request datetime parsing"""

    def test_empty_values(self):
        """Test that None and empty string parse to None"""
        assert parse_datetime(None) is None
        assert parse_datetime('') is None

    def test_date_only(self):
        """Test a bare date string"""
        assert parse_datetime('2024-05-20') == datetime(2024, 5, 20)

    def test_space_separated(self):
        """Test the 'YYYY-MM-DD HH:MM:SS' format"""
        assert parse_datetime('2024-05-20 14:30:00') == datetime(2024, 5, 20, 14, 30)

    def test_utc_is_converted_to_local(self):
        """Test that an aware UTC value is converted into Asia/Shanghai"""
        with patch('app.utils.helpers.local_zone') as mock_zone:
            from zoneinfo import ZoneInfo
            mock_zone.return_value = ZoneInfo('Asia/Shanghai')
            parsed = parse_datetime('2024-05-20T06:00:00Z')
        assert parsed == datetime(2024, 5, 20, 14, 0)
        assert parsed.tzinfo is None

    def test_date_object(self):
        """Test that a date object becomes midnight"""
        assert parse_datetime(date(2024, 1, 2)) == datetime(2024, 1, 2)

    def test_invalid_string(self):
        """Test that garbage raises ValueError"""
        with pytest.raises(ValueError):
            parse_datetime('next tuesday')

    def test_unsupported_type(self):
        """Test that non-string values raise ValueError"""
        with pytest.raises(ValueError):
            parse_datetime(12345)


@pytest.mark.unit
class TestFormatting:
    """Tests for datetime formatting"""

    def test_format_datetime(self):
        """Test default and minute formats"""
        value = datetime(2024, 5, 20, 14, 30, 5)
        assert format_datetime(value) == '2024-05-20 14:30:05'
        assert format_datetime(value, MINUTE_FORMAT) == '2024-05-20 14:30'

    def test_format_none(self):
        """Test that None formats to empty string"""
        assert format_datetime(None) == ''
        assert isoformat(None) is None
