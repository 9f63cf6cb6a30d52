"""Unit tests for module metadata decoding (pants_bridge.classpath.metadata)."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from pants_bridge.classpath.metadata import (
    LIBRARY_EXCLUDES_KEY,
    TARGET_ADDRESS_INFOS_KEY,
    TARGET_ADDRESSES_KEY,
    MetadataError,
    find_library_excludes,
    hydrate_target_addresses,
    load_target_address_infos,
)
from pants_bridge.host import StaticModule
from pants_bridge.models import TargetAddressInfo


class TestLoadTargetAddressInfos:
    @pytest.mark.unit
    def test_missing_option(self):
        assert load_target_address_infos(StaticModule("app")) == frozenset()

    @pytest.mark.unit
    def test_empty_option(self):
        module = StaticModule("app", {TARGET_ADDRESS_INFOS_KEY: ""})
        assert load_target_address_infos(module) == frozenset()

    @pytest.mark.unit
    def test_decodes_infos(self):
        raw = json.dumps(
            [
                {"id": "foo.lib", "targetAddresses": ["foo:lib"], "is_synthetic": False},
                {"id": "bar.bin", "targetAddresses": ["bar:bin", "bar:bin-base"]},
            ]
        )
        infos = load_target_address_infos(StaticModule("app", {TARGET_ADDRESS_INFOS_KEY: raw}))
        assert infos == frozenset(
            {
                TargetAddressInfo(id="foo.lib", target_addresses=frozenset({"foo:lib"})),
                TargetAddressInfo(id="bar.bin", target_addresses=frozenset({"bar:bin", "bar:bin-base"})),
            }
        )

    @pytest.mark.unit
    @pytest.mark.parametrize("raw", ["{not json", '{"id": "x"}', '[{"targetAddresses": []}]'])
    def test_malformed(self, raw):
        module = StaticModule("app", {TARGET_ADDRESS_INFOS_KEY: raw})
        with pytest.raises(MetadataError) as excinfo:
            load_target_address_infos(module)
        assert excinfo.value.module == "app"
        assert excinfo.value.key == TARGET_ADDRESS_INFOS_KEY


class TestHydrateTargetAddresses:
    @pytest.mark.unit
    @pytest.mark.parametrize("value", [None, ""])
    def test_empty(self, value):
        assert hydrate_target_addresses(value) == frozenset()

    @pytest.mark.unit
    def test_deduplicates(self):
        assert hydrate_target_addresses('["a:b", "a:b", "c:d"]') == frozenset({"a:b", "c:d"})

    @pytest.mark.unit
    def test_invalid(self):
        with pytest.raises(ValidationError):
            hydrate_target_addresses("a:b")


class TestFindLibraryExcludes:
    @pytest.mark.unit
    def test_owner_is_targets_option(self):
        module = StaticModule(
            "foo",
            {
                TARGET_ADDRESSES_KEY: '["src/java/foo:lib"]',
                LIBRARY_EXCLUDES_KEY: '["3rdparty:guava", "3rdparty:jsr305"]',
            },
        )
        assert find_library_excludes([module]) == {
            "3rdparty:guava": '["src/java/foo:lib"]',
            "3rdparty:jsr305": '["src/java/foo:lib"]',
        }

    @pytest.mark.unit
    def test_owner_falls_back_to_name(self):
        module = StaticModule("bar", {LIBRARY_EXCLUDES_KEY: '["3rdparty:guava"]'})
        assert find_library_excludes([module]) == {"3rdparty:guava": "bar"}

    @pytest.mark.unit
    def test_modules_without_excludes(self):
        assert find_library_excludes([StaticModule("a"), StaticModule("b")]) == {}

    @pytest.mark.unit
    def test_later_module_wins(self):
        first = StaticModule("first", {LIBRARY_EXCLUDES_KEY: '["3rdparty:guava"]'})
        second = StaticModule("second", {LIBRARY_EXCLUDES_KEY: '["3rdparty:guava"]'})
        assert find_library_excludes([first, second]) == {"3rdparty:guava": "second"}

    @pytest.mark.unit
    def test_malformed_excludes(self):
        module = StaticModule("bad", {LIBRARY_EXCLUDES_KEY: "3rdparty:guava"})
        with pytest.raises(MetadataError, match="pants.library.excludes"):
            find_library_excludes([module])
