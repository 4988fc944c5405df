"""Tests for leadops.scoring.rate_map — field:value lookups."""
from leadops.scoring.base import ConversionRateRecord
from leadops.scoring.rate_map import build_rate_map, lookup_rate, rate_key


def test_rate_key_format():
    assert rate_key('service', 'Roofing') == 'service:Roofing'


def test_build_rate_map():
    rates = build_rate_map([
        ConversionRateRecord('c', 'service', 'Roofing', 0.6, 10, 6),
        ConversionRateRecord('c', 'zip', '75001', 0.25, 4, 1),
    ])
    assert rates == {'service:Roofing': 0.6, 'zip:75001': 0.25}


def test_build_rate_map_empty():
    assert build_rate_map([]) == {}


def test_lookup_hit():
    assert lookup_rate({'service:Roofing': 0.6}, 'service', 'Roofing') == 0.6


def test_lookup_miss_is_zero():
    assert lookup_rate({'service:Roofing': 0.6}, 'service', 'Siding') == 0


def test_lookup_empty_value_is_zero():
    assert lookup_rate({'service:': 0.9}, 'service', '') == 0


def test_lookup_is_field_scoped():
    assert lookup_rate({'service:75001': 0.9}, 'zip', '75001') == 0
