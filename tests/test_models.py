"""Tests for the canonical request model."""
import io

import pytest

from neptune_sigv4.exceptions import ConversionError
from neptune_sigv4.models import CanonicalRequest, Credentials, Signature


class TestCanonicalRequest:
    """Test construction and invariants of CanonicalRequest."""

    @pytest.mark.parametrize('missing', ['method', 'endpoint', 'headers', 'parameters', 'body'])
    def test_missing_field_rejected(self, missing):
        fields = {
            'method': 'GET',
            'endpoint': 'https://host',
            'resource_path': '/',
            'headers': {},
            'parameters': {},
            'body': io.BytesIO(b''),
        }
        fields[missing] = None

        with pytest.raises(ConversionError):
            CanonicalRequest(**fields)

    def test_empty_resource_path_allowed(self):
        request = CanonicalRequest('GET', 'https://host', None, {}, {}, io.BytesIO(b''))

        assert request.resource_path == ''

    def test_inputs_are_copied(self):
        headers = {'A': '1'}
        parameters = {'p': ['1']}
        request = CanonicalRequest('get', 'https://host', '/', headers, parameters, io.BytesIO())

        headers['B'] = '2'
        parameters['p'].append('2')

        assert request.method == 'GET'
        assert request.headers == {'A': '1'}
        assert request.parameters == {'p': ['1']}

    def test_exact_host_header_is_no_conflict(self):
        request = CanonicalRequest.from_bytes('GET', 'https://host', headers={'Host': 'host'})

        assert request.host_header_conflict() is False

    @pytest.mark.parametrize('headers', [
        {'host': 'host'},
        {'HOST': 'host'},
        {'Host': 'host', 'host': 'host'},
    ])
    def test_other_host_spellings_conflict(self, headers):
        request = CanonicalRequest.from_bytes('GET', 'https://host', headers=headers)

        assert request.host_header_conflict() is True


class TestValueTypes:
    """Test the immutable value records."""

    def test_signature_is_immutable(self):
        signature = Signature('host', '20240517T093015Z', 'AWS4-HMAC-SHA256 ...')

        with pytest.raises(AttributeError):
            signature.host_header = 'other'
        assert signature.session_token is None

    def test_credentials_repr_hides_secret(self):
        credentials = Credentials('AKID', 'secret-value', 'token-value')

        assert 'secret-value' not in repr(credentials)
        assert 'token-value' not in repr(credentials)
