"""Tests for the fraud list cache."""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
import requests

from anonrelay.errors import FraudListUnavailable
from anonrelay.relay.fraud_cache import (
    FETCH_TIMEOUT,
    FraudListCache,
    fetch_fraud_list,
    parse_fraud_list,
)

URL = "https://lists.example/fraud.db"


def test_parse_strips_and_drops_blank_lines():
    assert parse_fraud_list("111\n  222 \n\n\n333\r\n") == frozenset({"111", "222", "333"})


def test_parse_empty_list():
    assert parse_fraud_list("") == frozenset()


class TestFraudListCache:
    def test_first_check_fetches_once(self, clock):
        fetcher = MagicMock(return_value="111\n222\n")
        cache = FraudListCache(URL, clock=clock, fetcher=fetcher)

        assert cache.is_fraud(111)
        assert cache.is_fraud("222")
        assert not cache.is_fraud(333)
        fetcher.assert_called_once_with(URL)

    def test_served_from_memory_until_expiry(self, clock):
        fetcher = MagicMock(side_effect=["111\n", "333\n"])
        cache = FraudListCache(URL, ttl=timedelta(hours=1), clock=clock, fetcher=fetcher)

        assert cache.is_fraud(111)
        clock.advance(minutes=59)
        assert cache.is_fraud(111)
        assert fetcher.call_count == 1

        clock.advance(minutes=1)
        assert not cache.is_fraud(111)
        assert cache.is_fraud(333)
        assert fetcher.call_count == 2

    def test_fetch_failure_propagates_and_is_not_cached(self, clock):
        fetcher = MagicMock(side_effect=[FraudListUnavailable("down"), "111\n"])
        cache = FraudListCache(URL, clock=clock, fetcher=fetcher)

        with pytest.raises(FraudListUnavailable):
            cache.is_fraud(111)

        assert cache.is_fraud(111)


class TestFetchFraudList:
    def test_returns_body_text(self):
        response = MagicMock(text="111\n")

        with patch("anonrelay.relay.fraud_cache.requests.get", return_value=response) as mock_get:
            assert fetch_fraud_list(URL) == "111\n"

        mock_get.assert_called_once_with(URL, timeout=FETCH_TIMEOUT)

    def test_http_error_raises_unavailable(self):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("404")

        with patch("anonrelay.relay.fraud_cache.requests.get", return_value=response):
            with pytest.raises(FraudListUnavailable):
                fetch_fraud_list(URL)

    def test_network_error_raises_unavailable(self):
        with patch(
            "anonrelay.relay.fraud_cache.requests.get",
            side_effect=requests.ConnectionError("refused"),
        ):
            with pytest.raises(FraudListUnavailable):
                fetch_fraud_list(URL)
