"""Tests for FilterChain."""

import pytest

from livefilter.core import CapacityExceeded, FilterKind
from livefilter.processing import DEFAULT_MAX_FILTERS, FilterChain, FilterInstance


def _kinds(chain):
    return [f.kind for f in chain.order()]


class TestAdd:

    def test_add_seeds_defaults(self):
        chain = FilterChain()
        instance_id = chain.add(FilterKind.BLUR)
        instance = chain.get(instance_id)
        assert instance.parameter_overrides == {"radius": 5}
        assert instance.get_parameter("radius") == 5
        assert chain.max_filters == DEFAULT_MAX_FILTERS == 5

    def test_add_accepts_names(self):
        chain = FilterChain()
        chain.add("hue-shift")
        chain.add("neon")
        assert _kinds(chain) == [FilterKind.HUE_SHIFT, FilterKind.NEON_GLOW]

    def test_same_kind_twice_gives_distinct_instances(self):
        chain = FilterChain()
        first = chain.add(FilterKind.BLUR)
        second = chain.add(FilterKind.BLUR)
        assert first != second
        chain.set_parameter(first, "radius", 1)
        assert chain.get(second).get_parameter("radius") == 5

    def test_capacity(self):
        chain = FilterChain(max_filters=2)
        chain.add(FilterKind.GRAYSCALE)
        chain.add(FilterKind.SEPIA)
        before = chain.order()

        messages = []
        chain.log.connect(messages.append)
        with pytest.raises(CapacityExceeded) as excinfo:
            chain.add(FilterKind.BLUR)

        assert excinfo.value.max_filters == 2
        assert chain.order() == before
        assert chain.is_full()
        assert len(messages) == 1

    def test_zero_capacity(self):
        chain = FilterChain(max_filters=0)
        with pytest.raises(CapacityExceeded):
            chain.add(FilterKind.GRAYSCALE)

    def test_negative_capacity_rejected(self):
        with pytest.raises(ValueError):
            FilterChain(max_filters=-1)


class TestMutation:

    def test_remove(self):
        chain = FilterChain()
        a = chain.add(FilterKind.GRAYSCALE)
        b = chain.add(FilterKind.SEPIA)
        assert chain.remove(a) is True
        assert [f.instance_id for f in chain] == [b]

    def test_remove_missing_id_is_noop(self):
        chain = FilterChain()
        chain.add(FilterKind.GRAYSCALE)
        changes = []
        chain.changed.connect(lambda: changes.append(True))
        assert chain.remove("not-there") is False
        assert len(chain) == 1
        assert changes == []

    def test_set_parameter_overrides_without_validation(self):
        chain = FilterChain()
        instance_id = chain.add(FilterKind.BRIGHTNESS)
        chain.set_parameter(instance_id, "level", 9.0)
        assert chain.get(instance_id).effective_parameters() == {"level": 9.0}

    def test_set_parameter_unknown_instance(self):
        chain = FilterChain()
        with pytest.raises(KeyError):
            chain.set_parameter("missing", "level", 1.0)

    def test_move(self):
        chain = FilterChain()
        a = chain.add(FilterKind.GRAYSCALE)
        b = chain.add(FilterKind.SEPIA)
        c = chain.add(FilterKind.BLUR)

        assert chain.move(c, 0) is True
        assert [f.instance_id for f in chain] == [c, a, b]
        # Out-of-range targets are clamped
        assert chain.move(c, 99) is True
        assert [f.instance_id for f in chain] == [a, b, c]
        assert chain.move("missing", 0) is False

    def test_clear(self):
        chain = FilterChain()
        chain.add(FilterKind.GRAYSCALE)
        chain.clear()
        assert chain.is_empty()


class TestSignals:

    def test_add_and_remove_notify(self):
        chain = FilterChain()
        applied, removed, changes = [], [], []
        chain.filter_applied.connect(lambda *args: applied.append(args))
        chain.filter_removed.connect(removed.append)
        chain.changed.connect(lambda: changes.append(True))

        instance_id = chain.add(FilterKind.SEPIA)
        chain.remove(instance_id)

        assert applied == [(instance_id, "sepia", {"warmth": 0.8})]
        assert removed == [instance_id]
        assert len(changes) == 2

    def test_parameter_changed(self):
        chain = FilterChain()
        instance_id = chain.add(FilterKind.EMBOSS)
        seen = []
        chain.parameter_changed.connect(lambda *args: seen.append(args))
        chain.set_parameter(instance_id, "strength", 1.5)
        assert seen == [(instance_id, "strength")]


class TestSerialization:

    def test_round_trip_keeps_order_and_values(self):
        chain = FilterChain(max_filters=3)
        a = chain.add(FilterKind.VINTAGE)
        chain.set_parameter(a, "vignette", 0.9)
        b = chain.add(FilterKind.BLUR)
        chain.set_parameter(b, "radius", 2)

        restored = FilterChain.from_dict(chain.to_dict())
        assert restored.max_filters == 3
        assert _kinds(restored) == [FilterKind.VINTAGE, FilterKind.BLUR]
        assert restored.order()[0].get_parameter("vignette") == 0.9
        assert restored.order()[1].get_parameter("radius") == 2

    def test_unknown_kinds_and_overflow_skipped(self):
        data = {
            "max_filters": 2,
            "filters": [
                {"kind": "sharpen", "parameters": {}},
                {"kind": "grayscale", "parameters": {"strength": 0.5}},
                {"kind": "sepia"},
                {"kind": "blur"},
            ],
        }
        chain = FilterChain.from_dict(data)
        assert _kinds(chain) == [FilterKind.GRAYSCALE, FilterKind.SEPIA]
        assert chain.order()[0].get_parameter("strength") == 0.5
        assert chain.order()[1].get_parameter("warmth") == 0.8

    def test_missing_override_falls_back_to_default(self):
        instance = FilterInstance(kind=FilterKind.HUE_SHIFT)
        assert instance.get_parameter("degrees") == 30
        assert instance.get_parameter("nope") is None
        assert instance.name == "Hue Shift"
