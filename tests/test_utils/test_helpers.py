#!/usr/bin/env python3
"""
Tests for src/utils/helpers.py
"""
from utils.helpers import count_words, format_countdown, is_blank, truncate


class TestText:
    def test_count_words(self):
        assert count_words('') == 0
        assert count_words('  two   words ') == 2

    def test_is_blank(self):
        assert is_blank(None)
        assert is_blank(' \n ')
        assert not is_blank('x')

    def test_truncate(self):
        assert truncate('short', 10) == 'short'
        assert truncate('abcdef', 3) == 'abc'


class TestFormatCountdown:
    def test_rounds_partial_seconds_up(self):
        assert format_countdown(89.2) == '01:30'

    def test_never_negative(self):
        assert format_countdown(-5) == '00:00'
