"""
PII redaction for student messages (FERPA).

Every user-authored turn is passed through ``PIIRedactor.redact`` before it is
sent to the model provider. Known identity values (name, email, student id,
school) are replaced first, then generic patterns (phones, emails, street
addresses, SSNs, dates of birth, ZIP codes, well-known school names).

Placeholders are never re-matched, and substitution repeats until nothing
matches, so the output is a fixed point: redacting it again is a no-op.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Pattern, Set, Tuple

from .logging import LoggingService, get_logging_service
from .settings_config_service import get_settings_service

STUDENT_NAME = "[STUDENT_NAME]"
STUDENT_EMAIL = "[STUDENT_EMAIL]"
STUDENT_ID = "[STUDENT_ID]"
SCHOOL_NAME = "[SCHOOL_NAME]"
PHONE_REDACTED = "[PHONE_REDACTED]"
EMAIL_REDACTED = "[EMAIL_REDACTED]"
ADDRESS_REDACTED = "[ADDRESS_REDACTED]"
SSN_REDACTED = "[SSN_REDACTED]"
DOB_REDACTED = "[DOB_REDACTED]"
ZIP_REDACTED = "[ZIP_REDACTED]"

PLACEHOLDERS = (
    STUDENT_NAME,
    STUDENT_EMAIL,
    STUDENT_ID,
    SCHOOL_NAME,
    PHONE_REDACTED,
    EMAIL_REDACTED,
    ADDRESS_REDACTED,
    SSN_REDACTED,
    DOB_REDACTED,
    ZIP_REDACTED,
)

_PLACEHOLDER_SPLIT = re.compile("(" + "|".join(re.escape(p) for p in PLACEHOLDERS) + ")")

_STREET_SUFFIXES = (
    "Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Lane|Ln|Drive|Dr|Court|Ct|Circle|Cir"
)

# (category, pattern, placeholder), applied in order
GENERIC_PATTERNS: List[Tuple[str, Pattern, str]] = [
    ("phone", re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b"), PHONE_REDACTED),
    ("phone", re.compile(r"\(\d{3}\)\s*\d{3}[-.]?\d{4}\b"), PHONE_REDACTED),
    (
        "email",
        re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
        EMAIL_REDACTED,
    ),
    (
        "address",
        re.compile(
            r"\b\d+\s+(?:[A-Za-z0-9]+[\s,]+){1,4}?(?:" + _STREET_SUFFIXES + r")\b",
            re.IGNORECASE,
        ),
        ADDRESS_REDACTED,
    ),
    ("ssn", re.compile(r"\b\d{3}-\d{2}-\d{4}\b"), SSN_REDACTED),
    ("ssn", re.compile(r"\b\d{9}\b"), SSN_REDACTED),
    (
        "dob",
        re.compile(
            r"\b(?:0?[1-9]|1[0-2])[/-](?:0?[1-9]|[12]\d|3[01])[/-](?:\d{4}|\d{2})\b"
        ),
        DOB_REDACTED,
    ),
    (
        "dob",
        re.compile(r"\b(?:19|20)\d{2}-(?:0?[1-9]|1[0-2])-(?:0?[1-9]|[12]\d|3[01])\b"),
        DOB_REDACTED,
    ),
    ("zip", re.compile(r"\b\d{5}(?:-\d{4})?\b"), ZIP_REDACTED),
]


@dataclass
class StudentContext:
    """Identity values known for the student who wrote the message"""

    full_name: Optional[str] = None
    email: Optional[str] = None
    student_id: Optional[str] = None
    school_name: Optional[str] = None


def _whole_word(value: str) -> Pattern:
    """Case-insensitive whole-word pattern; inner whitespace matches any run."""
    escaped = r"\s+".join(re.escape(part) for part in value.split())
    return re.compile(r"(?<!\w)" + escaped + r"(?!\w)", re.IGNORECASE)


class PIIRedactor:
    """Replaces personally identifying substrings with fixed placeholders."""

    def __init__(
        self,
        known_schools: Optional[Iterable[str]] = None,
        logging_service: Optional[LoggingService] = None,
    ):
        if known_schools is None:
            known_schools = get_settings_service().get_known_schools()
        self.known_schools = [s for s in known_schools if s.strip()]
        self._logging_service = logging_service
        self._school_rules = [
            ("known_school", _whole_word(name), SCHOOL_NAME)
            for name in self.known_schools
        ]

    @property
    def logging_service(self) -> LoggingService:
        if self._logging_service is None:
            self._logging_service = get_logging_service()
        return self._logging_service

    def _identity_rules(
        self, context: Optional[StudentContext]
    ) -> List[Tuple[str, Pattern, str]]:
        if context is None:
            return []
        rules = []
        full_name = (context.full_name or "").strip()
        parts = sorted(
            {p for p in full_name.split() if len(p) > 1}, key=len, reverse=True
        )
        # Email first: name parts often appear inside the address
        if context.email and context.email.strip():
            email = context.email.strip()
            rules.append(("student_email", _whole_word(email), STUDENT_EMAIL))
        if full_name:
            rules.append(("name", _whole_word(full_name), STUDENT_NAME))
        if context.email and context.email.strip():
            username = context.email.strip().split("@")[0]
            if len(username) > 1 and username.lower() not in {p.lower() for p in parts}:
                rules.append(("student_id", _whole_word(username), STUDENT_ID))
        rules.extend(("name", _whole_word(p), STUDENT_NAME) for p in parts)
        if context.student_id and str(context.student_id).strip():
            rules.append(
                ("student_id", _whole_word(str(context.student_id).strip()), STUDENT_ID)
            )
        if context.school_name and context.school_name.strip():
            rules.append(
                ("school_name", _whole_word(context.school_name.strip()), SCHOOL_NAME)
            )
        return rules

    @staticmethod
    def _apply_until_stable(
        text: str, rules: List[Tuple[str, Pattern, str]]
    ) -> Tuple[str, Set[str]]:
        fired: Set[str] = set()
        changed = True
        while changed:
            changed = False
            for category, pattern, placeholder in rules:
                # Odd indices hold placeholders, which are never rewritten
                parts = _PLACEHOLDER_SPLIT.split(text)
                for i in range(0, len(parts), 2):
                    replaced, count = pattern.subn(placeholder, parts[i])
                    if count:
                        parts[i] = replaced
                        fired.add(category)
                        changed = True
                text = "".join(parts)
        return text, fired

    def redact(self, message: str, context: Optional[StudentContext] = None) -> str:
        """Return ``message`` with identity values and generic PII replaced."""
        if not message:
            return message or ""

        rules = self._identity_rules(context) + GENERIC_PATTERNS + self._school_rules
        redacted, fired = self._apply_until_stable(message, rules)

        if fired:
            self.logging_service.log_privacy_event(
                "pii_redacted", categories=list(fired)
            )
        return redacted

    def redact_turns(
        self, turns: Iterable[Dict[str, str]], context: Optional[StudentContext] = None
    ) -> List[Dict[str, str]]:
        """Redact user turns; assistant turns pass through unaltered."""
        result = []
        for turn in turns:
            content = turn.get("content", "")
            if turn.get("role") == "user":
                content = self.redact(content, context)
            result.append({"role": turn.get("role"), "content": content})
        return result


_redactor: Optional[PIIRedactor] = None


def get_pii_redactor() -> PIIRedactor:
    """Get the global redactor, built from the configured school list"""
    global _redactor
    if _redactor is None:
        _redactor = PIIRedactor()
    return _redactor


def reset_pii_redactor():
    global _redactor
    _redactor = None


def redact_pii(message: str, context: Optional[StudentContext] = None) -> str:
    return get_pii_redactor().redact(message, context)
