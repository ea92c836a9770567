import json

from jobfilter.core import draft_mutations as mutations
from jobfilter.core.debug_report import BuildInfo, build_debug_report, serialize_debug_report
from jobfilter.core.guidance import LOW_QUALITY_MESSAGE, guidance_for, message_for, suggested_modes
from jobfilter.core.import_session import mark_saved, mark_skipped, replace_draft, reparse, start_session
from jobfilter.types import ImportSource, ParseReasonCode, SegmentationMode, SessionState


def test_start_session_records_draft_and_suggestion(sample_resume: str) -> None:
    session = start_session(sample_resume, source=ImportSource(kind="txt", file_name="resume.txt"))

    assert session.revision == 1
    assert session.state == SessionState.PARSED
    assert session.mode is None
    assert len(session.draft.companies) == 2
    assert session.profile_suggestion.first_name == "Jordan"
    assert session.source.file_name == "resume.txt"


def test_reparse_keeps_identity_and_bumps_revision(sample_resume: str) -> None:
    session = start_session(sample_resume)

    reparsed = reparse(session, SegmentationMode.NEWLINES)

    assert reparsed.id == session.id
    assert reparsed.revision == session.revision + 1
    assert reparsed.mode == SegmentationMode.NEWLINES
    assert reparsed.diagnostics.mode == SegmentationMode.NEWLINES
    assert reparsed.diagnostics.candidates == []


def test_replace_draft_refreshes_profile_suggestion(sample_resume: str) -> None:
    session = start_session(sample_resume)
    company = session.draft.companies[1]
    draft = mutations.delete_role(session.draft, mutations.RoleRef(company.id, company.roles[0].id))

    updated = replace_draft(session, draft)

    assert updated.revision == 2
    assert updated.profile_suggestion.target_roles == ["Growth Lead"]
    assert session.profile_suggestion.target_roles == ["Growth Lead", "Marketing Manager"]


def test_state_transitions_bump_revision(sample_resume: str) -> None:
    session = start_session(sample_resume)
    assert mark_saved(session).state == SessionState.SAVED
    skipped = mark_skipped(session)
    assert (skipped.state, skipped.revision) == (SessionState.SKIPPED, 2)


def test_guidance_leads_with_low_quality_notice(sample_resume: str) -> None:
    session = start_session(sample_resume)
    assert session.diagnostics.low_quality is True
    assert guidance_for(session.diagnostics)[0] == LOW_QUALITY_MESSAGE


def test_guidance_for_empty_text_only_names_the_empty_text() -> None:
    session = start_session("   \n\n")
    assert session.diagnostics.reason_codes == [ParseReasonCode.TEXT_EMPTY]
    assert guidance_for(session.diagnostics) == [message_for(ParseReasonCode.TEXT_EMPTY)]
    assert SegmentationMode.DEFAULT not in suggested_modes(session.diagnostics)


def test_every_reason_code_has_a_message() -> None:
    assert all(message_for(code) for code in ParseReasonCode)


def test_debug_report_is_stable_json(sample_resume: str) -> None:
    session = start_session(sample_resume)
    report = build_debug_report(session, BuildInfo(build_sha="abc123", app_env="test"))

    assert report["build"]["build_sha"] == "abc123"
    assert report["session"]["requested_mode"] == "auto"
    assert report["source"]["text_chars"] == len(sample_resume)
    assert report["counts"]["companies"] == 2
    assert report["counts"]["outcomes"] == 2

    text = serialize_debug_report(report)
    assert json.loads(text) == json.loads(serialize_debug_report(report))
    assert text == serialize_debug_report(json.loads(text))
    assert BuildInfo(build_sha="abc123", app_env="test").label == "build:abc123 env:test schema:v1"
