"""
Tests for the region registry and the active-region resolver.
"""

import pytest

from mtile.core.errors import GeometryParseError, NoRegionContainsPointer
from mtile.core.x11 import MonitorRecord
from mtile.tiling.monitor import build_regions, resolve_active_region
from mtile.tiling.rect import Rect

DUAL = [
    MonitorRecord("DP-1", "1920x1080+0+0"),
    MonitorRecord("HDMI-1", "2560x1440+1920+0"),
]


class TestBuildRegions:
    def test_physical_identities_follow_enumeration_order(self):
        registry = build_regions(DUAL)
        assert [r.ident for r in registry.physical] == [1, 2]
        assert registry.physical[1].rect == Rect(1920, 0, 2560, 1440)
        assert registry.physical[1].label == "display_2(HDMI-1)"
        assert len(registry) == 2

    def test_virtual_regions_keep_declaration_order(self):
        registry = build_regions(
            DUAL, [Rect(0, 0, 960, 1080), Rect(960, 0, 960, 1080)]
        )
        assert [r.ident for r in registry.virtual] == [1, 2]
        assert all(r.virtual for r in registry.virtual)
        assert registry.virtual[0].label == "vdisplay_1"

    def test_malformed_record_is_skipped(self, caplog):
        monitors = [MonitorRecord("eDP-1", ""), *DUAL]
        registry = build_regions(monitors)
        assert [r.name for r in registry.physical] == ["DP-1", "HDMI-1"]
        assert [r.ident for r in registry.physical] == [1, 2]
        assert "failed to read display properties" in caplog.text

    def test_malformed_record_is_fatal_when_not_skipping(self):
        monitors = [*DUAL, MonitorRecord("eDP-1", "garbage")]
        with pytest.raises(GeometryParseError):
            build_regions(monitors, skip_malformed=False)

    def test_no_usable_display(self):
        with pytest.raises(GeometryParseError):
            build_regions([MonitorRecord("eDP-1", "")])


class TestResolveActiveRegion:
    def test_pointer_on_second_monitor(self):
        region = resolve_active_region(build_regions(DUAL), 2000, 10)
        assert region.name == "HDMI-1"

    def test_virtual_takes_precedence_over_physical(self):
        registry = build_regions(DUAL, [Rect(0, 0, 960, 1080)])
        region = resolve_active_region(registry, 100, 100)
        assert region.virtual
        assert region.ident == 1

    def test_falls_back_to_physical_outside_virtuals(self):
        registry = build_regions(DUAL, [Rect(0, 0, 960, 1080)])
        region = resolve_active_region(registry, 1500, 100)
        assert not region.virtual
        assert region.name == "DP-1"

    def test_highest_identity_wins_on_overlap(self):
        registry = build_regions(
            DUAL, [Rect(0, 0, 1000, 1080), Rect(900, 0, 1020, 1080)]
        )
        assert resolve_active_region(registry, 950, 10).ident == 2
        assert resolve_active_region(registry, 100, 10).ident == 1

    def test_shared_edge_goes_to_higher_identity(self):
        # x=1920 is the right edge of DP-1 and the left edge of HDMI-1
        region = resolve_active_region(build_regions(DUAL), 1920, 500)
        assert region.name == "HDMI-1"

    def test_pointer_outside_every_region(self):
        with pytest.raises(NoRegionContainsPointer):
            resolve_active_region(build_regions(DUAL), 100, 1300)
