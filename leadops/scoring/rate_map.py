"""
Conversion-rate lookup keyed by "key_field:key_name".

A miss, or an empty value, reads as a rate of 0.
"""
from typing import Dict, Iterable

from leadops.scoring.base import ConversionRateRecord


def rate_key(key_field: str, key_name: str) -> str:
    return f'{key_field}:{key_name}'


def build_rate_map(records: Iterable[ConversionRateRecord]) -> Dict[str, float]:
    rates = {}
    for record in records:
        rates[rate_key(record.key_field, record.key_name)] = record.conversion_rate
    return rates


def lookup_rate(rates: Dict[str, float], key_field: str, key_name: str) -> float:
    if not key_name:
        return 0
    return rates.get(rate_key(key_field, key_name)) or 0
