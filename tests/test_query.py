"""Tests for query string parsing."""
from urllib.parse import quote, quote_plus

import pytest

from neptune_sigv4.exceptions import ConversionError
from neptune_sigv4.query import parse_query_string


class TestParseQueryString:
    """Test splitting and decoding of query strings."""

    def test_none_gives_empty_mapping(self):
        assert parse_query_string(None) == {}

    def test_empty_string_gives_empty_mapping(self):
        assert parse_query_string('') == {}

    def test_repeated_keys_keep_order(self):
        assert parse_query_string('a=1&a=2') == {'a': ['1', '2']}

    def test_interleaved_keys(self):
        result = parse_query_string('a=3&b=x&a=1&a=2')

        assert result == {'a': ['3', '1', '2'], 'b': ['x']}

    def test_missing_equals_gives_empty_value(self):
        assert parse_query_string('a') == {'a': ['']}

    def test_empty_value(self):
        assert parse_query_string('a=') == {'a': ['']}

    def test_empty_segments_skipped(self):
        assert parse_query_string('a=1&&b=2') == {'a': ['1'], 'b': ['2']}
        assert parse_query_string('&a=1&') == {'a': ['1']}

    def test_split_on_first_equals_only(self):
        assert parse_query_string('expr=a=b') == {'expr': ['a=b']}

    def test_percent_decoding(self):
        assert parse_query_string('q%20x=g.V%28%29') == {'q x': ['g.V()']}

    def test_plus_decodes_to_space(self):
        assert parse_query_string('q=a+b') == {'q': ['a b']}

    @pytest.mark.parametrize('encode', [quote, quote_plus])
    def test_reserved_characters_recovered(self, encode):
        key, value = 'key with &=', 'value & more = stuff'
        query = f"{encode(key, safe='')}={encode(value, safe='')}"

        assert parse_query_string(query) == {key: [value]}

    def test_malformed_escape_fails_whole_parse(self):
        with pytest.raises(ConversionError):
            parse_query_string('a=1&b=%zz')

    def test_truncated_escape_fails(self):
        with pytest.raises(ConversionError):
            parse_query_string('a=%4')

    def test_invalid_utf8_fails(self):
        with pytest.raises(ConversionError):
            parse_query_string('a=%ff')
