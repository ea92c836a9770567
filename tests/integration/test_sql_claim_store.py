import pytest

from jobfilter.core.import_pipeline import parse_best
from jobfilter.db.repositories import SqlClaimStore
from jobfilter.db.session import SessionLocal
from jobfilter.errors import ClaimValidationError
from jobfilter.ledger.draft_import import save_draft_to_ledger
from jobfilter.ledger.ledger import ClaimLedger
from jobfilter.ledger.validation import validate_claim_context
from jobfilter.types import ClaimInput, ClaimType, VerificationStatus


def _persisted_count() -> int:
    with SessionLocal() as db:
        return len(SqlClaimStore(db).list_all())


def test_draft_save_persists_and_dedups(sample_resume: str) -> None:
    draft = parse_best(sample_resume).draft

    with SessionLocal() as db:
        first = save_draft_to_ledger(draft, ClaimLedger(SqlClaimStore(db)))
    with SessionLocal() as db:
        second = save_draft_to_ledger(draft, ClaimLedger(SqlClaimStore(db)))

    assert second.claim_ids == first.claim_ids
    assert _persisted_count() == 5

    with SessionLocal() as db:
        store = SqlClaimStore(db)
        experience_id = first.experience_ids[0]
        dependents = store.dependents_of(experience_id)
        assert {claim.type for claim in dependents} == {ClaimType.OUTCOME, ClaimType.TOOL}
        assert store.count_by_type(ClaimType.EXPERIENCE) == 2
        assert store.count_by_type(ClaimType.EXPERIENCE, exclude_id=experience_id) == 1
        assert store.get(experience_id).created_at.tzinfo is not None


def test_rejected_save_leaves_database_untouched(sample_resume: str) -> None:
    def no_tools(context, store) -> None:
        if context.type == ClaimType.TOOL:
            raise ClaimValidationError("no-tools", "Tools are not accepted here.", field="type")
        validate_claim_context(context, store)

    with SessionLocal() as db:
        ledger = ClaimLedger(SqlClaimStore(db), validator=no_tools)
        with pytest.raises(ClaimValidationError):
            save_draft_to_ledger(parse_best(sample_resume).draft, ledger)

    assert _persisted_count() == 0


def test_merge_and_cascade_are_persisted() -> None:
    with SessionLocal() as db:
        ledger = ClaimLedger(SqlClaimStore(db))
        target = ledger.add(ClaimInput(role="Growth Lead", company="Acme Inc"))
        source = ledger.add(ClaimInput(role="Growth Lead", company="Acme"))
        outcome = ledger.add(
            ClaimInput(type=ClaimType.OUTCOME, text="Grew signups 40%", metric="40%", experience_id=source.id)
        )
        ledger.merge(target.id, source.id)

    with SessionLocal() as db:
        store = SqlClaimStore(db)
        assert store.get(source.id) is None
        assert store.get(outcome.id).experience_id == target.id

    with SessionLocal() as db:
        removed = ClaimLedger(SqlClaimStore(db)).delete(target.id)

    assert removed == [target.id, outcome.id]
    assert _persisted_count() == 0


def test_failed_approval_is_rolled_back() -> None:
    with SessionLocal() as db:
        ledger = ClaimLedger(SqlClaimStore(db))
        experience = ledger.add(ClaimInput(role="Growth Lead", company="Acme Inc"))
        ledger.add(ClaimInput(type=ClaimType.OUTCOME, text="Grew signups a lot", experience_id=experience.id))
        with pytest.raises(ClaimValidationError):
            ledger.approve()

    with SessionLocal() as db:
        claim = SqlClaimStore(db).get(experience.id)
        assert claim.verification_status == VerificationStatus.REVIEW_NEEDED


def test_duplicate_insert_is_refused() -> None:
    with SessionLocal() as db:
        store = SqlClaimStore(db)
        claim = ClaimLedger(store).add(ClaimInput(role="Growth Lead", company="Acme Inc"))
        with pytest.raises(ValueError):
            store.insert(claim)
