"""
icalsync — Recurrence Translator.

Turns a structured RRULE from the feed into the single-line rule string the
remote store accepts. Parts outside that dialect raise UnsupportedRuleError;
nothing is dropped silently.
"""

from __future__ import annotations

from typing import Iterable

from icalsync.core.errors import UnsupportedRuleError
from icalsync.data.models import SourceRecurrenceRule

# Parts the remote store's rule dialect cannot represent under this mapping.
_REJECTED_PARTS = (
    ("BYSECOND", "by_second"),
    ("BYMINUTE", "by_minute"),
    ("BYHOUR", "by_hour"),
    ("BYYEARDAY", "by_year_day"),
    ("BYWEEKNO", "by_week_no"),
)

# Parts accepted with at most one value.
_SINGLE_VALUE_PARTS = (
    ("BYMONTHDAY", "by_month_day"),
    ("BYMONTH", "by_month"),
)


def _check_supported(rule: SourceRecurrenceRule) -> None:
    for name, attr in _REJECTED_PARTS:
        if getattr(rule, attr):
            raise UnsupportedRuleError(name, rule)
    for name, attr in _SINGLE_VALUE_PARTS:
        if len(getattr(rule, attr)) > 1:
            raise UnsupportedRuleError(name, rule)
    if rule.wkst:
        raise UnsupportedRuleError("WKST", rule)


def _join(values: Iterable[object]) -> str:
    return ",".join(str(v) for v in values)


def translate_rule(rule: SourceRecurrenceRule) -> str:
    """Encode one rule as ``RRULE:KEY=VALUE;...``, upper-cased.

    Raises:
        UnsupportedRuleError: the rule uses a part that cannot be forwarded.
    """
    _check_supported(rule)

    tokens: list[tuple[str, str]] = []
    if rule.freq is not None:
        tokens.append(("FREQ", rule.freq))
    if rule.until is not None:
        tokens.append(("UNTIL", rule.until))
    if rule.count is not None:
        tokens.append(("COUNT", str(rule.count)))
    if rule.interval is not None:
        tokens.append(("INTERVAL", str(rule.interval)))
    if rule.by_day:
        tokens.append(("BYDAY", _join(rule.by_day)))
    if rule.by_month_day:
        tokens.append(("BYMONTHDAY", _join(rule.by_month_day)))
    if rule.by_month:
        tokens.append(("BYMONTH", _join(rule.by_month)))
    if rule.by_set_pos:
        tokens.append(("BYSETPOS", _join(rule.by_set_pos)))

    return ("RRULE:" + ";".join(f"{k}={v}" for k, v in tokens)).upper()


def translate_recurrence(
    rules: Iterable[SourceRecurrenceRule] | None,
) -> list[str] | None:
    """Translate every rule of an event, in order.

    Returns None when the event has no rule. Each rule is translated on its
    own, so an unsupported second rule still fails the event.
    """
    if not rules:
        return None
    translated = [translate_rule(rule) for rule in rules]
    return translated or None
