"""Semantic version comparison and fixed-version computation."""

from __future__ import annotations

import re
from functools import cmp_to_key
from typing import List, Optional, Sequence, Tuple

from .models import RANGE_TYPE_SEMVER, Affected, Range, RangeEvent

_TAG_RE = re.compile(r"^go(\d+\.\d+)(\.\d+|)((beta|rc|-pre)(\d+))?$")

_NUM = r"(?:0|[1-9][0-9]*)"
_IDENT = r"[0-9A-Za-z-]+"
_SEMVER_RE = re.compile(
    rf"v({_NUM})(?:\.({_NUM})(?:\.({_NUM})"
    rf"(?:-({_IDENT}(?:\.{_IDENT})*))?(?:\+{_IDENT}(?:\.{_IDENT})*)?)?)?"
)

_Parsed = Tuple[int, int, int, str]


def go_tag_to_semver(tag: str) -> str:
    """Convert a Go release tag such as ``go1.19rc1`` to ``v1.19.0-rc.1``."""
    fields = tag.split()
    if not fields:
        return ""
    tag = fields[0]
    if tag == "go1":
        return "v1.0.0"
    if tag == "go1.0":
        return ""
    m = _TAG_RE.match(tag)
    if m is None:
        return ""
    version = "v" + m.group(1) + (m.group(2) or ".0")
    if m.group(3):
        kind = m.group(4)
        if not kind.startswith("-"):
            version += "-"
        version += f"{kind}.{m.group(5)}"
    return version


def _canonical_prefix(s: str) -> str:
    s = s.removeprefix("v").removeprefix("go")
    if s and not s.startswith("v"):
        s = "v" + s
    return s


def _parse(v: str) -> Optional[_Parsed]:
    m = _SEMVER_RE.fullmatch(v)
    if m is None:
        return None
    prerelease = m.group(4) or ""
    for ident in prerelease.split(".") if prerelease else ():
        if ident.isdigit() and len(ident) > 1 and ident.startswith("0"):
            return None
    return int(m.group(1)), int(m.group(2) or 0), int(m.group(3) or 0), prerelease


def _compare_prerelease(x: str, y: str) -> int:
    if x == y:
        return 0
    if not x:
        return 1
    if not y:
        return -1
    xs, ys = x.split("."), y.split(".")
    for a, b in zip(xs, ys):
        if a == b:
            continue
        a_num, b_num = a.isdigit(), b.isdigit()
        if a_num and b_num:
            return -1 if int(a) < int(b) else 1
        if a_num:
            return -1
        if b_num:
            return 1
        return -1 if a < b else 1
    return (len(xs) > len(ys)) - (len(xs) < len(ys))


def compare(v: str, w: str) -> int:
    """Compare two versions, accepting bare, ``v`` and ``go`` prefixes.

    Invalid versions sort before valid ones and are equal to each other.
    """
    pv, pw = _parse(_canonical_prefix(v)), _parse(_canonical_prefix(w))
    if pv is None and pw is None:
        return 0
    if pv is None:
        return -1
    if pw is None:
        return 1
    if pv[:3] != pw[:3]:
        return -1 if pv[:3] < pw[:3] else 1
    return _compare_prerelease(pv[3], pw[3])


def less(v: str, w: str) -> bool:
    return compare(v, w) < 0


def _event_order(e1: RangeEvent, e2: RangeEvent) -> int:
    first_zero, second_zero = e1.introduced == "0", e2.introduced == "0"
    if first_zero and second_zero:
        return 0
    if first_zero:
        return -1
    if second_zero:
        return 1
    return compare(e1.introduced or e1.fixed, e2.introduced or e2.fixed)


def contains_semver(rng: Range, version: str) -> bool:
    """Report whether a semver range covers the version."""
    if rng.type != RANGE_TYPE_SEMVER:
        return False
    if not rng.events:
        return True
    version = _canonical_prefix(version)
    affected = False
    for event in sorted(rng.events, key=cmp_to_key(_event_order)):
        if not affected and event.introduced:
            affected = event.introduced == "0" or not less(version, event.introduced)
        elif affected and event.fixed:
            affected = less(version, event.fixed)
    return affected


def affects(ranges: Sequence[Range], version: str) -> bool:
    """Report whether the version is affected; no semver ranges means affected."""
    if not ranges:
        return True
    semver_present = False
    for rng in ranges:
        if rng.type != RANGE_TYPE_SEMVER:
            continue
        semver_present = True
        if contains_semver(rng, version):
            return True
    return not semver_present


def _valid_fixes(version: str, affected: Sequence[Affected]) -> List[str]:
    fixes = [
        event.fixed
        for a in affected
        for rng in a.ranges
        if rng.type == RANGE_TYPE_SEMVER
        for event in rng.events
        if event.fixed and less(version, event.fixed)
    ]
    return sorted(fixes, key=cmp_to_key(compare))


def _fix_negated(fix: str, affected: Sequence[Affected]) -> bool:
    return any(contains_semver(rng, fix) for a in affected for rng in a.ranges)


def _earliest_valid_fix(module_path: str, version: str, affected: Sequence[Affected]) -> str:
    module_affected = [a for a in affected if a.module_path == module_path]
    return next(
        (fix for fix in _valid_fixes(version, module_affected) if not _fix_negated(fix, module_affected)),
        "",
    )


def fixed_version(module_path: str, version: str, affected: Sequence[Affected]) -> str:
    """The earliest fix above version that is not itself vulnerable, ``v``-prefixed."""
    fixed = _earliest_valid_fix(module_path, version, affected)
    if fixed and not fixed.startswith("v"):
        fixed = "v" + fixed
    return fixed