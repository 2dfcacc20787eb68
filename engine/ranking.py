"""Duration-proximity ranking of search candidates."""

from __future__ import annotations

from typing import Iterable, Sequence

from engine.types import Candidate


def merge_candidates(*groups: Iterable[Candidate], dedupe: bool = True) -> list[Candidate]:
    """Concatenate candidate groups in order.

    With ``dedupe`` a video id seen in an earlier group is not repeated. This
    never changes the selection: a repeat has the same duration and ranks
    after its first occurrence.
    """
    merged = []
    seen = set()
    for group in groups:
        for candidate in group or []:
            if dedupe:
                if candidate.external_id in seen:
                    continue
                seen.add(candidate.external_id)
            merged.append(candidate)
    return merged


def duration_delta_ms(candidate: Candidate, target_ms: int) -> int:
    return abs(int(target_ms) - int(candidate.duration_ms))


def rank_candidates(candidates: Sequence[Candidate], target_ms: int) -> list[Candidate]:
    # sorted() is stable, so equal deltas keep concatenation order.
    return sorted(candidates, key=lambda candidate: duration_delta_ms(candidate, target_ms))


def select_closest(candidates: Sequence[Candidate], target_ms: int) -> Candidate | None:
    ranked = rank_candidates(candidates, target_ms)
    return ranked[0] if ranked else None
