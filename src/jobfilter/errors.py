from __future__ import annotations


class ClaimValidationError(ValueError):
    """A ledger write was rejected by the claim validator."""

    def __init__(self, code: str, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.field = field
        self.message = message

    def to_dict(self) -> dict[str, str | None]:
        return {"code": self.code, "field": self.field, "message": self.message}


class ClaimNotFoundError(LookupError):
    def __init__(self, claim_id: str) -> None:
        super().__init__(f"claim '{claim_id}' not found")
        self.claim_id = claim_id


class DraftTargetNotFoundError(LookupError):
    def __init__(self, kind: str, target_id: str) -> None:
        super().__init__(f"{kind} '{target_id}' not found in draft")
        self.kind = kind
        self.target_id = target_id
