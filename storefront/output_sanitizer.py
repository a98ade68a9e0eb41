"""Output sanitization: redact contact details, card numbers and credentials before returning to the LLM."""
import re

_CREDENTIAL_PATTERNS = [
    re.compile(r"(?i)(api[_-]?key|secret|password|refresh[_-]?token|token)\"?\s*[=:]\s*\"?[^\s\",}]+"),
    re.compile(r"(?i)bearer\s+[A-Za-z0-9._~+/=-]+"),
    re.compile(r"rzp_(?:test|live)_[A-Za-z0-9]{8,}"),   # gateway key ids
    re.compile(r"sk-[a-zA-Z0-9]{20,}"),
    re.compile(r"ghp_[a-zA-Z0-9]{36}"),
    re.compile(r"AKIA[A-Z0-9]{16}"),
]

# Gateway payment signature (hex HMAC)
_SIGNATURE_PATTERN = re.compile(r"(?i)(razorpay_signature\"?\s*[=:]\s*\"?)[0-9a-f]{32,}")

# Indian mobile numbers, optionally with +91
_PHONE_PATTERN = re.compile(r"(?<!\d)(?:\+91[-\s]?)?[6-9]\d{9}(?!\d)")

# Card numbers: 13-19 digits, optionally grouped by spaces or dashes
_CARD_NUMBER_PATTERN = re.compile(r"\b(?:\d{4}[-\s]){3}\d{1,7}\b|\b\d{13,19}\b")

_ANSI_PATTERN = re.compile(r"\x1b\[[0-9;]*m")


def redact_card_number(number: str) -> str:
    """Mask a card number to show only last 4 digits."""
    digits = re.sub(r"\D", "", number)
    if len(digits) < 4:
        return "****"
    return f"****-****-****-{digits[-4:]}"


def redact_email(email: str) -> str:
    """Partially redact an email address."""
    if "@" not in email:
        return email
    local, domain = email.split("@", 1)
    return f"{local[:1]}***@{domain}"


def redact_phone(phone: str) -> str:
    digits = re.sub(r"\D", "", phone)
    if len(digits) < 4:
        return "****"
    return f"******{digits[-4:]}"


def sanitize_output(text: str, max_chars: int = 50000) -> str:
    """
    Sanitize text before returning to the LLM.

    - Strips ANSI escape codes
    - Redacts credentials, bearer tokens and payment signatures
    - Masks mobile numbers to their last 4 digits
    - Redacts card numbers
    - Truncates to max_chars
    """
    text = _ANSI_PATTERN.sub("", text)

    for pattern in _CREDENTIAL_PATTERNS:
        text = pattern.sub("[REDACTED]", text)
    text = _SIGNATURE_PATTERN.sub(r"\1[REDACTED]", text)

    text = _PHONE_PATTERN.sub(lambda m: redact_phone(m.group(0)), text)
    text = _CARD_NUMBER_PATTERN.sub("[CARD REDACTED]", text)

    if len(text) > max_chars:
        text = text[:max_chars] + f"\n\n[... truncated at {max_chars} chars]"

    return text
