"""Representative call stacks that witness the use of vulnerable symbols."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, replace
from functools import cmp_to_key
from typing import Dict, Iterable, List, Optional, Set

from .models import CallSite, FuncNode, Package, Position, Result, Vuln


@dataclass
class StackEntry:
    """A frame of a call stack.

    ``call`` is the call site that leads to the next frame; it is None for
    the last frame of a stack.
    """

    function: FuncNode
    call: Optional[CallSite] = None


CallStack = List[StackEntry]


@dataclass(eq=False)
class _CallChain:
    func: FuncNode
    call: Optional[CallSite] = None
    child: Optional["_CallChain"] = None

    def to_stack(self) -> CallStack:
        stack: CallStack = []
        link: Optional[_CallChain] = self
        while link is not None:
            stack.append(StackEntry(function=link.func, call=link.call))
            link = link.child
        return stack


def source_callstacks(result: Result) -> Dict[Vuln, Optional[CallStack]]:
    """A representative call stack for each vulnerability in ``result``.

    Vulnerabilities without a reachable call sink map to None. Positions
    missing from init functions and calls to them are filled in.
    """
    stacks = {vuln: source_callstack(vuln, result) for vuln in result.vulns}
    update_init_positions(stacks)
    return stacks


def source_callstack(vuln: Vuln, result: Result) -> Optional[CallStack]:
    """The shortest call stack from an entry function to the vulnerable sink
    that goes through the fewest dynamic call sites, or None if there is none.

    The search goes breadth-first from the sink towards the entry points and
    visits each function at most once.
    """
    sink = vuln.call_sink
    if sink is None:
        return None

    entries: Set[FuncNode] = set(result.entry_functions)
    # Avoid stacks passing through other vulnerable symbols of the same
    # package for the same entry, so that each stack is unique.
    skip: Set[FuncNode] = {
        other.call_sink
        for other in result.vulns
        if other.call_sink is not None
        and other is not vuln
        and other.osv is vuln.osv
        and other.package is vuln.package
    }

    seen: Set[FuncNode] = set()
    candidates: List[CallStack] = []
    depth = 0
    queue = deque([_CallChain(func=sink)])

    while queue:
        chain = queue.popleft()
        func = chain.func
        if func in seen:
            continue
        seen.add(func)

        for site in _callsites(func.call_sites, seen):
            link = _CallChain(func=site.parent, call=site, child=chain)
            if site.parent not in skip:
                queue.append(link)

            if site.parent in entries:
                stack = link.to_stack()
                if not candidates or len(stack) == depth:
                    candidates.append(stack)
                    depth = len(stack)
                else:
                    # Anything found from here on is longer than what we have.
                    queue.clear()

    if not candidates:
        return None
    # Among the lightest candidates the one found last wins.
    return min(reversed(candidates), key=_weight)


def _callsites(sites: Iterable[CallSite], visited: Set[FuncNode]) -> List[CallSite]:
    """One call site per unvisited caller, the smallest by position, ordered by caller."""
    smallest: Dict[FuncNode, CallSite] = {}
    for site in sites:
        if site.parent in visited:
            continue
        if _cs_less(site, smallest.get(site.parent)):
            smallest[site.parent] = site
    callers = sorted(smallest, key=cmp_to_key(_func_cmp))
    return [smallest[caller] for caller in callers]


def _weight(stack: CallStack) -> int:
    """Number of unresolved call sites; lower means easier to understand."""
    return sum(1 for entry in stack if entry.call is not None and not entry.call.resolved)


def _pos_less(p1: Position, p2: Position) -> bool:
    return (p1.line, p1.column, p1.filename) < (p2.line, p2.column, p2.filename)


def _cs_less(cs1: CallSite, cs2: Optional[CallSite]) -> bool:
    if cs2 is None:
        return True
    p1, p2 = cs1.pos, cs2.pos
    if p1 is not None and p2 is not None:
        if _pos_less(p1, p2):
            return True
        if _pos_less(p2, p1):
            return False
        return f"{cs1.recv_type}.{cs2.name}" < f"{cs2.recv_type}.{cs2.name}"
    if p2 is None:
        return True
    return False


def _func_cmp(f1: FuncNode, f2: FuncNode) -> int:
    p1, p2 = f1.pos, f2.pos
    if p1 is not None and p2 is not None:
        if _pos_less(p1, p2):
            return -1
        if _pos_less(p2, p1):
            return 1
        s1, s2 = str(f1), str(f2)
        return (s1 > s2) - (s1 < s2)
    if p1 is None and p2 is None:
        return 0
    return 1 if p1 is None else -1


def update_init_positions(call_stacks: Dict[Vuln, Optional[CallStack]]) -> None:
    """Fill in missing positions of init functions and of calls to them."""
    for stack in call_stacks.values():
        if not stack:
            continue
        for current, following in zip(stack, stack[1:]):
            _update_init_position(current)
            _update_init_call_position(current, following)
        _update_init_position(stack[-1])


def _update_init_call_position(current: StackEntry, following: StackEntry) -> None:
    """Place a call to an init function where it is induced.

    A call from P1.init to P2.init is placed at the import of P2 in P1; a call
    from an implicit P.init to an explicit P.init#n at the package statement.
    """
    call = current.call
    if call is None or not is_init(following.function):
        return
    if call.pos is not None and call.pos.is_valid():
        return

    caller = current.function
    if caller.name == "init" and caller.package is following.function.package:
        call.pos = _package_statement_pos(caller.package)
    else:
        call.pos = _import_statement_pos(caller.package, following.function.package.pkg_path)


def _update_init_position(entry: StackEntry) -> None:
    func = entry.function
    if not is_init(func) or (func.pos is not None and func.pos.is_valid()):
        return
    func.pos = _package_statement_pos(func.package)


def _package_statement_pos(pkg: Optional[Package]) -> Position:
    if pkg is None or pkg.package_position is None:
        return Position()
    return replace(pkg.package_position)


def _import_statement_pos(pkg: Optional[Package], import_path: str) -> Position:
    if pkg is None:
        return Position()
    pos = pkg.import_positions.get(import_path)
    return Position() if pos is None else replace(pos)


def is_init(func: FuncNode) -> bool:
    """Report whether the function is an implicit ``init`` or an ``init#n``."""
    return func.name == "init" or func.name.startswith("init#")


def binary_callstacks(result: Result) -> Dict[Vuln, CallStack]:
    """Single-frame stacks for the vulnerable symbols found in a binary."""
    stacks: Dict[Vuln, CallStack] = {}
    for vuln in unique_vulns(result.vulns):
        func = FuncNode(package=vuln.package, name=vuln.symbol)
        parts = vuln.symbol.split(".")
        if len(parts) != 1:
            func.recv_type = parts[0]
            func.name = parts[1]
        stacks[vuln] = [StackEntry(function=func)]
    return stacks


def unique_vulns(vulns: Iterable[Vuln]) -> List[Vuln]:
    """Drop unexported symbols of an (entry, package, module) triple that has
    exported ones; keep all symbols otherwise."""
    vulns = list(vulns)

    def key(v: Vuln):
        return v.osv.id, v.package.pkg_path, v.package.module.path

    has_exported = {key(v) for v in vulns if is_exported(v.symbol)}
    return [v for v in vulns if is_exported(v.symbol) or key(v) not in has_exported]


def is_exported(symbol: str) -> bool:
    """Report whether ``name`` or ``Type.name`` is exported."""
    parts = symbol.split(".")
    if len(parts) == 1:
        return symbol[0].isupper()
    return parts[1][0].isupper()