"""Pattern library and curated vocabularies shared by the import parser and the claim ledger."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

BULLET_GLYPHS = "•●◦▪▫‣⁃-–—*✅✔➤➔"

_ROUND_GLYPHS = "•●◦▪▫‣⁃✅✔➤➔"
_DASH_GLYPHS = "\\-–—*"

BULLET_GLYPH_RE = re.compile(rf"^\s*([{_ROUND_GLYPHS}{_DASH_GLYPHS}])")
BULLET_LINE_RE = re.compile(rf"^(?:[{_ROUND_GLYPHS}]\s*|[{_DASH_GLYPHS}]\s+)(?=\S)")
BULLET_ONLY_RE = re.compile(rf"^[{_ROUND_GLYPHS}{_DASH_GLYPHS}]+$")
INLINE_ROUND_GLYPH_RE = re.compile(rf"\s+[{_ROUND_GLYPHS}]\s*(?=\S)")
INLINE_DASH_GLYPH_RE = re.compile(rf"(?<=[a-z.,;)%])\s+[{_DASH_GLYPHS}]\s+(?=[A-Z])")
CONTINUATION_PREFIX_RE = re.compile(r"^[+%(|a-z]")

_MONTH = r"(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?"
_DATE_TOKEN = rf"(?:{_MONTH}\s+\d{{4}}|\d{{1,2}}/\d{{4}}|\d{{4}})"
_END_TOKEN = rf"(?:{_DATE_TOKEN}|present|current|now|today)"
DATE_RANGE_RE = re.compile(
    rf"\(?\b({_DATE_TOKEN})\s*(?:[-–—]+|to|until)\s*({_END_TOKEN})\b\)?",
    re.IGNORECASE,
)
_OPEN_ENDED = {"present", "current", "now", "today"}

ROLE_KEYWORDS_RE = re.compile(
    r"\b(director|manager|engineer|developer|lead|head|chief|vp|vice president|analyst|"
    r"coordinator|specialist|consultant|architect|designer|scientist|officer|associate|"
    r"senior|junior|principal|staff|intern|founder|co-founder|owner|marketer|strategist|"
    r"administrator|representative|executive|president|partner|advisor|researcher|"
    r"writer|editor|assistant|ceo|cto|cfo|coo|cmo)\b",
    re.IGNORECASE,
)
COMPANY_SUFFIX_RE = re.compile(
    r"\b(inc|llc|ltd|limited|corp|corporation|co|company|gmbh|plc|ag|group|labs|"
    r"technologies|systems|holdings|partners|agency|studios?|university|bank)\b\.?",
    re.IGNORECASE,
)
_HEADER_SEPARATOR_TRIM_RE = re.compile(r"^[,|–—\-:]\s*|\s*[,|–—\-:]$")
_AT_PATTERN = re.compile(r"^(.+?)\s+(?:at|@)\s+(.+?)$", re.IGNORECASE)
_DASH_PATTERN = re.compile(r"^([A-Z][^|–—\-\n]{2,55})\s+[|–—-]\s+([A-Z][^|–—\-\n]{2,55})$")
_COMMA_PATTERN = re.compile(r"^([A-Z][^,\n]{3,50}),\s+([A-Z][^,\n]{2,50})$")
_STATE_ABBREVIATION_RE = re.compile(r"^[A-Z]{2}$")

EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")
PHONE_RE = re.compile(r"(?:\+?\d[\d\s().-]{8,}\d)")
URL_RE = re.compile(r"(?:https?://|www\.|linkedin\.com|github\.com)", re.IGNORECASE)

ACTION_VERB_RE = re.compile(
    r"\b(increased|grew|grow|reduced|improved|generated|drove|boosted|scaled|saved|achieved|"
    r"delivered|exceeded|surpassed|doubled|tripled|cut|lifted|launched|raised|accelerated|"
    r"expanded|decreased|lowered|won|closed|built|led|shipped|halved|secured|produced|"
    r"recovered|optimized|negotiated|added|drove|converted|retained)\b",
    re.IGNORECASE,
)
METRIC_RE = re.compile(
    r"(\$\s?\d[\d,.]*\s?[kKmMbB]?\b|\d[\d,.]*\s?%|\b\d+(?:\.\d+)?x\b|\b\d[\d,.]*\s?[kKmMbB]\b"
    r"|\b\d[\d,.]*\+?\s+(?:users|customers|clients|accounts|leads|signups|people|engineers|"
    r"markets|countries|hours|days|weeks|deals|stores|projects|partners|reports)\b)",
)

TAG_LABEL_RE = re.compile(
    r"^(tools|skills|technologies|tech stack|stack|platforms|software|competencies)\s*:\s*",
    re.IGNORECASE,
)
TAG_SEPARATOR_RE = re.compile(r"\s*[,|;/•]\s*")


class SectionKind(StrEnum):
    EXPERIENCE = "experience"
    SKILLS = "skills"
    OTHER = "other"


_EXPERIENCE_SECTIONS = {
    "experience",
    "work experience",
    "work history",
    "professional experience",
    "relevant experience",
    "employment history",
    "employment",
    "career history",
    "projects",
    "personal projects",
    "volunteer",
    "volunteer experience",
}
_SKILL_SECTIONS = {
    "skills",
    "technical skills",
    "core competencies",
    "competencies",
    "tools",
    "technologies",
    "tools & technologies",
    "tools and technologies",
}
_OTHER_SECTIONS = {
    "education",
    "summary",
    "professional summary",
    "executive summary",
    "objective",
    "career objective",
    "certifications",
    "licenses",
    "honors",
    "awards",
    "publications",
    "interests",
    "references",
    "languages",
    "affiliations",
    "professional affiliations",
    "additional information",
    "about",
    "about me",
    "profile",
    "contact",
}
SECTION_HEADER_NAMES = _EXPERIENCE_SECTIONS | _SKILL_SECTIONS | _OTHER_SECTIONS
INLINE_SECTION_RE = re.compile(
    r"\s+(EXPERIENCE|WORK EXPERIENCE|WORK HISTORY|PROFESSIONAL EXPERIENCE|EDUCATION|SKILLS|"
    r"SUMMARY|PROFILE|PROJECTS|CERTIFICATIONS)\s+"
)

KNOWN_TOOLS: tuple[str, ...] = (
    "Salesforce", "HubSpot", "Marketo", "Pardot", "Segment", "Amplitude",
    "Mixpanel", "Google Analytics", "GA4", "Tableau", "Looker", "dbt",
    "Snowflake", "BigQuery", "Braze", "Iterable", "Klaviyo", "Mailchimp",
    "Meta Ads", "Google Ads", "LinkedIn Ads", "TikTok Ads",
    "Figma", "Notion", "Jira", "Asana", "Trello", "Slack",
    "AWS", "GCP", "Azure", "Stripe", "Shopify", "Magento",
    "Webflow", "WordPress", "Contentful", "Sanity",
    "React", "Next.js", "Node.js", "Python", "SQL", "PostgreSQL", "MongoDB",
    "Airtable", "Zapier", "Make", "Power BI", "Excel",
    "Intercom", "Zendesk", "Drift", "Gong", "Outreach", "Salesloft",
    "Clearbit", "ZoomInfo", "6sense", "Demandbase",
    "Optimizely", "LaunchDarkly", "VWO", "Hotjar", "FullStory",
    "Attentive", "Postscript", "Yotpo", "Privy",
    "Adobe Analytics", "Adobe Experience Manager", "Adobe Campaign",
    "Sprout Social", "Hootsuite", "Buffer",
    "SEMrush", "Ahrefs", "Moz",
)

# Names that are also everyday English words only count when written capitalized.
_CASE_SENSITIVE_TOOLS = {
    "Segment", "Make", "Excel", "Slack", "Notion", "Drift", "Gong", "Outreach",
    "Buffer", "Sanity", "Attentive", "Postscript", "Privy", "Moz", "Iterable", "React",
}

TOOL_ALIASES: dict[str, str] = {
    "google analytics 4": "GA4",
    "ga 4": "GA4",
    "hubspot crm": "HubSpot",
    "salesforce crm": "Salesforce",
    "amazon web services": "AWS",
    "google cloud platform": "GCP",
    "google cloud": "GCP",
    "microsoft azure": "Azure",
    "next js": "Next.js",
    "nextjs": "Next.js",
    "node js": "Node.js",
    "nodejs": "Node.js",
    "postgres": "PostgreSQL",
    "mongo": "MongoDB",
    "powerbi": "Power BI",
    "launch darkly": "LaunchDarkly",
    "full story": "FullStory",
    "zoom info": "ZoomInfo",
    "demand base": "Demandbase",
    "linked in ads": "LinkedIn Ads",
    "tik tok ads": "TikTok Ads",
    "facebook ads": "Meta Ads",
    "fb ads": "Meta Ads",
    "meta ads manager": "Meta Ads",
    "aem": "Adobe Experience Manager",
}

KNOWN_SKILLS: tuple[str, ...] = (
    "SEO", "SEM", "Lifecycle Marketing", "Email Marketing", "Content Strategy",
    "Copywriting", "A/B Testing", "Experimentation", "Product Management",
    "Project Management", "Stakeholder Management", "Data Analysis", "Analytics",
    "Forecasting", "Budgeting", "Negotiation", "Public Speaking", "Leadership",
    "People Management", "Hiring", "Mentoring", "User Research", "Customer Research",
    "Go-to-Market", "Demand Generation", "Brand Strategy", "Pricing", "Partnerships",
    "Account Management", "Community Building", "Growth Marketing", "Paid Acquisition",
    "Performance Marketing", "Marketing Automation", "CRM", "Agile", "Scrum",
    "Machine Learning", "Data Visualization", "Financial Modeling", "Product Marketing",
)

TOOL_HINTS = frozenset(
    {tool.lower() for tool in KNOWN_TOOLS if tool not in _CASE_SENSITIVE_TOOLS} | set(TOOL_ALIASES)
)


@dataclass(slots=True, frozen=True)
class DateRange:
    start: str
    end: str
    matched: str


@dataclass(slots=True, frozen=True)
class HeaderPair:
    role: str
    company: str


def _vocabulary_pattern(term: str, case_sensitive: bool) -> re.Pattern[str]:
    flags = 0 if case_sensitive else re.IGNORECASE
    return re.compile(rf"(?<![\w]){re.escape(term)}(?![\w])", flags)


_TOOL_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    (tool, _vocabulary_pattern(tool, tool in _CASE_SENSITIVE_TOOLS)) for tool in KNOWN_TOOLS
] + [(canonical, _vocabulary_pattern(alias, False)) for alias, canonical in TOOL_ALIASES.items()]
_SKILL_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    (skill, _vocabulary_pattern(skill, False)) for skill in KNOWN_SKILLS
]


def _detect(text: str, patterns: list[tuple[str, re.Pattern[str]]]) -> list[str]:
    found: list[str] = []
    for canonical, pattern in patterns:
        if canonical not in found and pattern.search(text):
            found.append(canonical)
    return found


def detect_tools(text: str) -> list[str]:
    return _detect(text, _TOOL_PATTERNS)


def detect_skills(text: str) -> list[str]:
    return _detect(text, _SKILL_PATTERNS)


def canonical_tool(text: str) -> str | None:
    value = text.strip()
    for canonical, pattern in _TOOL_PATTERNS:
        match = pattern.fullmatch(value)
        if match:
            return canonical
    return None


def canonical_skill(text: str) -> str | None:
    value = text.strip()
    for canonical, pattern in _SKILL_PATTERNS:
        if pattern.fullmatch(value):
            return canonical
    return None


def strip_bullet(text: str) -> str:
    return BULLET_LINE_RE.sub("", text, count=1).strip()


def is_bullet_line(text: str) -> bool:
    return bool(BULLET_LINE_RE.match(text))


def is_bullet_only(text: str) -> bool:
    return bool(BULLET_ONLY_RE.match(text.strip()))


def is_contact_line(text: str) -> bool:
    if EMAIL_RE.search(text) or URL_RE.search(text):
        return True
    value = text.strip()
    return bool(PHONE_RE.fullmatch(value)) and sum(char.isdigit() for char in value) >= 10


def _clean_section_text(text: str) -> str:
    cleaned = re.sub(r"^[\d.)\-–—*#|:]+\s*", "", text)
    cleaned = re.sub(r"[\-–—*#|:]+\s*$", "", cleaned)
    return cleaned.strip().lower()


def section_kind(text: str) -> SectionKind | None:
    cleaned = _clean_section_text(text)
    if cleaned in _EXPERIENCE_SECTIONS:
        return SectionKind.EXPERIENCE
    if cleaned in _SKILL_SECTIONS:
        return SectionKind.SKILLS
    if cleaned in _OTHER_SECTIONS:
        return SectionKind.OTHER
    return None


def extract_date_range(text: str) -> DateRange | None:
    match = DATE_RANGE_RE.search(text)
    if not match:
        return None
    end = match.group(2)
    if end.lower() in _OPEN_ENDED:
        end = "Present"
    return DateRange(start=match.group(1), end=end, matched=match.group(0))


def strip_date_range(text: str, date_range: DateRange) -> str:
    residual = text.replace(date_range.matched, " ")
    residual = " ".join(residual.split())
    return _HEADER_SEPARATOR_TRIM_RE.sub("", residual).strip()


def looks_like_role_title(text: str) -> bool:
    return bool(ROLE_KEYWORDS_RE.search(text))


def looks_like_company(text: str) -> bool:
    return bool(COMPANY_SUFFIX_RE.search(text))


def match_header_pair(text: str) -> HeaderPair | None:
    """Split a "Role at Company" / "Role | Company" / "Role, Company" header line."""
    if len(text) < 3 or len(text) > 120:
        return None

    match = _AT_PATTERN.match(text)
    if match:
        return HeaderPair(role=match.group(1).strip(), company=match.group(2).strip())

    match = _DASH_PATTERN.match(text)
    if match:
        left, right = match.group(1).strip(), match.group(2).strip()
        if looks_like_role_title(right) and not looks_like_role_title(left):
            return HeaderPair(role=right, company=left)
        return HeaderPair(role=left, company=right)

    match = _COMMA_PATTERN.match(text)
    if match:
        left, right = match.group(1).strip(), match.group(2).strip()
        if _STATE_ABBREVIATION_RE.match(right):
            return None
        if looks_like_role_title(right) and not looks_like_role_title(left):
            return HeaderPair(role=right, company=left)
        if not looks_like_role_title(left) and not looks_like_company(right):
            return None
        return HeaderPair(role=left, company=right)

    return None


def extract_metric(text: str) -> str | None:
    match = METRIC_RE.search(text)
    if not match:
        return None
    return match.group(1).strip()


def is_quantified_outcome(text: str) -> bool:
    return bool(ACTION_VERB_RE.search(text) and METRIC_RE.search(text))


def split_tag_list(text: str) -> list[str] | None:
    """Return the entries of a "Tools: A, B, C" style line, or None for prose."""
    labelled = bool(TAG_LABEL_RE.match(text))
    body = TAG_LABEL_RE.sub("", text, count=1)
    entries = [entry.strip(" .") for entry in TAG_SEPARATOR_RE.split(body) if entry.strip(" .")]
    if not entries:
        return None
    if not labelled and len(entries) < 2:
        return None
    if any(len(entry.split()) > 4 for entry in entries):
        return None
    return entries
