# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for SessionData and its JSON wire form."""

import json
from datetime import UTC, datetime, timedelta

import pytest

from flysession.session.data import SessionData, SessionEntry, parse_iso, to_iso


class TestSessionDataWireForm:
    def test_defaults(self):
        data = SessionData()
        assert data.data == {}
        assert data.expire is None
        assert data.accessed is None
        assert data.delete is False

    def test_to_dict_uses_wire_names(self):
        data = SessionData(data={"user": SessionEntry({"id": 1})}, expire="2030-01-01T00:00:00.000Z")
        assert data.to_dict() == {
            "_data": {"user": {"value": {"id": 1}, "flash": False}},
            "_expire": "2030-01-01T00:00:00.000Z",
            "_accessed": None,
            "_delete": False,
        }

    def test_json_round_trip_keeps_nested_values(self):
        data = SessionData(
            data={
                "cart": SessionEntry({"items": [{"sku": "A1", "qty": 2}], "note": "héllo ✓"}),
                "notice": SessionEntry("saved", flash=True),
            },
            accessed="2026-01-01T00:00:00.000Z",
        )
        assert SessionData.from_json(data.to_json()) == data

    def test_to_json_keeps_non_ascii(self):
        data = SessionData(data={"name": SessionEntry("Zoë")})
        assert "Zoë" in data.to_json()

    def test_from_dict_rejects_non_objects(self):
        with pytest.raises(ValueError):
            SessionData.from_dict(["not", "a", "session"])

    def test_from_dict_rejects_malformed_entry(self):
        with pytest.raises(ValueError):
            SessionData.from_dict({"_data": {"k": "bare"}})

    def test_from_json_rejects_invalid_json(self):
        with pytest.raises(ValueError):
            SessionData.from_json("{not json")

    def test_missing_fields_default(self):
        data = SessionData.from_json(json.dumps({"_data": {}}))
        assert data == SessionData()


class TestSessionDataExpiry:
    def test_no_expiry_never_expires(self):
        assert SessionData().is_expired() is False

    def test_future_expiry(self):
        expire = to_iso(datetime.now(UTC) + timedelta(hours=1))
        assert SessionData(expire=expire).is_expired() is False

    def test_past_expiry(self):
        expire = to_iso(datetime.now(UTC) - timedelta(seconds=1))
        assert SessionData(expire=expire).is_expired() is True

    def test_unparsable_expiry_counts_as_expired(self):
        assert SessionData(expire="yesterday").is_expired() is True


class TestIsoHelpers:
    def test_to_iso_format(self):
        value = datetime(2026, 3, 4, 5, 6, 7, 890000, tzinfo=UTC)
        assert to_iso(value) == "2026-03-04T05:06:07.890Z"

    def test_parse_iso_accepts_z_suffix(self):
        assert parse_iso("2026-03-04T05:06:07.890Z") == datetime(2026, 3, 4, 5, 6, 7, 890000, tzinfo=UTC)

    def test_parse_iso_naive_is_utc(self):
        assert parse_iso("2026-03-04T05:06:07").tzinfo is UTC
