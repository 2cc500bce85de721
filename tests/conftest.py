"""Shared fixtures for the neptune signer tests."""
import datetime

import pytest

from neptune_sigv4.credentials import StaticCredentialsProvider
from neptune_sigv4.models import CanonicalRequest, Credentials

FIXED_TIME = datetime.datetime(2024, 5, 17, 9, 30, 15, tzinfo=datetime.timezone.utc)
ENDPOINT = 'https://example-cluster.neptune.amazonaws.com:8182'


@pytest.fixture
def credentials():
    """Fixed credentials for deterministic signatures."""
    return Credentials('AKIDEXAMPLE', 'wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY')


@pytest.fixture
def credentials_source(credentials):
    """Credentials source returning the fixed credentials."""
    return StaticCredentialsProvider(credentials.access_key, credentials.secret_key)


@pytest.fixture
def fixed_clock():
    """Clock always returning the same instant."""
    return lambda: FIXED_TIME


@pytest.fixture
def gremlin_request():
    """A POST carrying a Gremlin query."""
    return CanonicalRequest.from_bytes(
        'POST',
        ENDPOINT,
        '/gremlin',
        headers={'Content-Type': 'application/json'},
        body=b'{"gremlin": "g.V().count()"}',
    )
