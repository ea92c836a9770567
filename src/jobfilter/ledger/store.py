"""Persistence port for the claim ledger and its in-memory implementation."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from typing import Protocol

from jobfilter.types import Claim, ClaimType


class ClaimStore(Protocol):
    def get(self, claim_id: str) -> Claim | None: ...

    def list_all(self) -> list[Claim]: ...

    def find_by_key(self, claim_type: ClaimType, normalized_text: str) -> list[Claim]: ...

    def dependents_of(self, experience_id: str) -> list[Claim]: ...

    def count_by_type(self, claim_type: ClaimType, exclude_id: str | None = None) -> int: ...

    def insert(self, claim: Claim) -> None: ...

    def save(self, claim: Claim) -> None: ...

    def delete(self, claim_id: str) -> None: ...

    def transaction(self) -> AbstractContextManager[None]: ...


class InMemoryClaimStore:
    """Dict-backed store keeping the (type, text) and experience-id indexes alongside the claims."""

    def __init__(self, claims: list[Claim] | None = None) -> None:
        self._claims: dict[str, Claim] = {}
        self._by_key: dict[tuple[ClaimType, str], set[str]] = {}
        self._dependents: dict[str, set[str]] = {}
        for claim in claims or []:
            self.insert(claim)

    def get(self, claim_id: str) -> Claim | None:
        return self._claims.get(claim_id)

    def list_all(self) -> list[Claim]:
        return list(self._claims.values())

    def find_by_key(self, claim_type: ClaimType, normalized_text: str) -> list[Claim]:
        ids = self._by_key.get((claim_type, normalized_text), set())
        return [claim for claim_id, claim in self._claims.items() if claim_id in ids]

    def dependents_of(self, experience_id: str) -> list[Claim]:
        ids = self._dependents.get(experience_id, set())
        return [claim for claim_id, claim in self._claims.items() if claim_id in ids]

    def count_by_type(self, claim_type: ClaimType, exclude_id: str | None = None) -> int:
        return sum(
            1
            for claim in self._claims.values()
            if claim.type == claim_type and claim.id != exclude_id
        )

    def insert(self, claim: Claim) -> None:
        if claim.id in self._claims:
            raise ValueError(f"claim '{claim.id}' already exists")
        self._claims[claim.id] = claim
        self._index(claim)

    def save(self, claim: Claim) -> None:
        previous = self._claims.get(claim.id)
        if previous is None:
            raise ValueError(f"claim '{claim.id}' not found")
        self._unindex(previous)
        self._claims[claim.id] = claim
        self._index(claim)

    def delete(self, claim_id: str) -> None:
        claim = self._claims.pop(claim_id, None)
        if claim is not None:
            self._unindex(claim)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        snapshot = dict(self._claims)
        try:
            yield
        except BaseException:
            self._claims = {}
            self._by_key = {}
            self._dependents = {}
            for claim in snapshot.values():
                self.insert(claim)
            raise

    def _index(self, claim: Claim) -> None:
        self._by_key.setdefault((claim.type, claim.normalized_text), set()).add(claim.id)
        if claim.experience_id:
            self._dependents.setdefault(claim.experience_id, set()).add(claim.id)

    def _unindex(self, claim: Claim) -> None:
        self._by_key.get((claim.type, claim.normalized_text), set()).discard(claim.id)
        if claim.experience_id:
            self._dependents.get(claim.experience_id, set()).discard(claim.id)
