# src/etlguard/engine/filtering.py
"""Post-processing applied to raw rule findings.

Order matters: relax ETL severities first, then deduplicate, then apply
the severity-mode filter. A relaxed ETL error becomes a warning and so
survives warn-only mode.
"""

from __future__ import annotations

from collections.abc import Iterable

from etlguard.contracts.enums import ETL_CONNECTIVITY_CODES, EtlMode, ValidationLevel, ValidationMode
from etlguard.contracts.results import Fingerprint, ValidationResult


def is_etl_code(result: ValidationResult) -> bool:
    return result.code in ETL_CONNECTIVITY_CODES


def relax_etl_results(results: Iterable[ValidationResult], etl_mode: EtlMode) -> list[ValidationResult]:
    """Downgrade ETL errors to warnings in relaxed mode."""
    if etl_mode != EtlMode.RELAXED:
        return list(results)
    return [
        result.with_level(ValidationLevel.WARNING)
        if result.level == ValidationLevel.ERROR and is_etl_code(result)
        else result
        for result in results
    ]


def dedupe_results(results: Iterable[ValidationResult]) -> list[ValidationResult]:
    """Drop repeated findings, keeping the first occurrence in order."""
    seen: set[Fingerprint] = set()
    unique: list[ValidationResult] = []
    for result in results:
        key = result.fingerprint
        if key in seen:
            continue
        seen.add(key)
        unique.append(result)
    return unique


def filter_by_mode(results: Iterable[ValidationResult], mode: ValidationMode) -> list[ValidationResult]:
    match mode:
        case ValidationMode.LENIENT:
            return [result for result in results if result.level == ValidationLevel.ERROR]
        case ValidationMode.WARN_ONLY:
            return [result for result in results if result.level == ValidationLevel.WARNING]
        case _:
            return list(results)
