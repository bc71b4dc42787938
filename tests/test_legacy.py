"""Tests for the asset-transfer operations."""

import json

import pytest

from ballot_ledger.errors import DecodeError, NotFound


def test_asset_exists(state, assets) -> None:
    state.put("asset1", b'{"ID":"asset1"}')

    assert assets.asset_exists(state, "asset1")
    assert not assets.asset_exists(state, "asset2")


def test_transfer_returns_previous_owner(state, assets) -> None:
    state.put("asset1", b'{"ID":"asset1","Owner":"Tomoko","Size":5}')

    assert assets.transfer_asset(state, "asset1", "Brad") == "Tomoko"
    assert state.get("asset1") == b'{"ID":"asset1","Owner":"Brad","Size":5}'


def test_transfer_without_owner_returns_none(state, assets) -> None:
    state.put("asset1", b'{"ID":"asset1"}')

    assert assets.transfer_asset(state, "asset1", "Brad") is None
    assert json.loads(state.get("asset1"))["Owner"] == "Brad"


def test_transfer_missing_asset(state, assets) -> None:
    with pytest.raises(NotFound):
        assets.transfer_asset(state, "asset1", "Brad")


def test_transfer_non_object(state, assets) -> None:
    state.put("asset1", b"[1,2]")

    with pytest.raises(DecodeError):
        assets.transfer_asset(state, "asset1", "Brad")
    assert state.get("asset1") == b"[1,2]"


def test_transfer_non_finite_number(state, assets) -> None:
    state.put("asset1", b'{"ID":"asset1","Owner":"Tomoko","Size":Infinity}')

    with pytest.raises(DecodeError):
        assets.transfer_asset(state, "asset1", "Brad")
