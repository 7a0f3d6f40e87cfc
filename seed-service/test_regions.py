"""Tests for the region registry."""

import pytest

from conftest import REGIONS
from regions import RegionRegistry, UnknownRegionError
from storage import RegionStore


class TestRegistry:
    def test_resolve(self, registry, stores):
        assert registry.resolve("us-west-1") is stores["us-west-1"]

    def test_unknown_region(self, registry):
        with pytest.raises(UnknownRegionError) as exc:
            registry.resolve("eu-west-1")
        assert exc.value.code == "eu-west-1"
        assert exc.value.known == ["us-east-2", "us-west-1", "ap-southeast-1"]
        assert "Invalid region code: eu-west-1" in str(exc.value)

    def test_default_is_first_region(self, registry):
        assert registry.default_code == "us-east-2"
        assert "ap-southeast-1" in registry
        assert "eu-west-1" not in registry

    def test_region_metadata(self, registry):
        assert registry.region("us-west-1").name == "San Francisco, USA (West)"
        with pytest.raises(UnknownRegionError):
            registry.region("eu-west-1")

    def test_regions_without_store_dropped(self, stores):
        registry = RegionRegistry({"us-west-1": stores["us-west-1"]}, REGIONS)
        assert registry.codes == ["us-west-1"]

    def test_empty(self):
        registry = RegionRegistry({})
        assert registry.codes == []
        assert registry.default_code is None

    def test_close(self, registry, stores):
        registry.close()
        assert all(s.closed for s in stores.values())


class TestFromConfig:
    def test_skips_regions_without_url(self):
        cfg = {
            "regions": [
                {"code": "us-east-2", "name": "East", "env_var": "DATABASE_REGION_A"},
                {"code": "us-west-1", "name": "West", "env_var": "DATABASE_REGION_B"},
            ],
            "database": {"urls": {"us-west-1": "postgresql://demo@localhost:5432/west"}},
            "seed": {"parallel_batches": 5},
        }
        registry = RegionRegistry.from_config(cfg)
        try:
            assert registry.codes == ["us-west-1"]
            store = registry.resolve("us-west-1")
            assert isinstance(store, RegionStore)
            assert store.region == "us-west-1"
        finally:
            registry.close()
