"""Tests for store key namespaces."""

from anonrelay.infra.keys import BLOCK, CORRELATION, IDENTITY, NOTIFY


def test_prefixes_match_stored_layout():
    assert IDENTITY.key(111) == "userinfo-111"
    assert BLOCK.key(111) == "isblocked-111"
    assert CORRELATION.key(5001) == "msg-map-5001"
    assert NOTIFY.key("111") == "lastmsg-111"


def test_int_and_str_ids_build_the_same_key():
    assert BLOCK.key(42) == BLOCK.key("42")


def test_spaces_do_not_overlap():
    keys = {space.key(1) for space in (IDENTITY, BLOCK, CORRELATION, NOTIFY)}
    assert len(keys) == 4
