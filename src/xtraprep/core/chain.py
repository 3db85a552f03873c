"""Backup chain resolution by LSN linkage"""

from collections.abc import Iterable

from .backups import Backup, BackupKind
from .errors import AmbiguousChainError, ChainBrokenError


def resolve_chain(target: Backup, incrementals: Iterable[Backup], fulls: Iterable[Backup]) -> list[Backup]:
    """Build the chain of backups needed to restore ``target``

    Walks backward from the target incremental, each time picking the one
    backup whose ``to_lsn`` equals the current ``from_lsn``, until a full
    backup is reached.

    Args:
        target: Incremental backup the chain must end with
        incrementals: All known incremental backups
        fulls: All known full backups

    Returns:
        ``[full, inc_1, ..., target]`` in apply order

    Raises:
        ChainBrokenError: No backup ends where a chain element starts
        AmbiguousChainError: Several backups end where a chain element starts,
            or several incrementals start from the same LSN
    """
    if target.kind is not BackupKind.INCREMENTAL:
        raise ValueError(f"Chain target must be an incremental backup, got {target}")

    incrementals = list(incrementals)
    candidates = [*fulls, *incrementals]
    chain = [target]
    visited = {target}
    current = target

    while True:
        predecessors = [b for b in candidates if b.to_lsn == current.from_lsn and b != current]
        if not predecessors:
            raise ChainBrokenError(current.name, current.from_lsn)
        if len(predecessors) > 1:
            raise AmbiguousChainError(current.name, current.from_lsn, sorted(b.name for b in predecessors))

        # History must not branch: no other incremental may start from the same base
        siblings = [b for b in incrementals if b.from_lsn == current.from_lsn and b != current]
        if siblings:
            names = sorted(b.name for b in [current, *siblings])
            raise AmbiguousChainError(current.name, current.from_lsn, names)

        previous = predecessors[0]
        if previous in visited:
            raise ChainBrokenError(current.name, current.from_lsn)
        chain.append(previous)
        visited.add(previous)

        match previous.kind:
            case BackupKind.FULL:
                break
            case BackupKind.INCREMENTAL:
                current = previous

    chain.reverse()
    return chain
