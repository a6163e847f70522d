"""Best-effort redaction of secrets from text before it is logged or shown.

This cannot catch every secret format. It covers the common shapes that show
up in service logs, config files and CLI diagnostics: passwords, API keys,
bearer tokens, PEM keys, cloud credentials and URLs with embedded passwords.
"""

import re

SENSITIVE_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    # Passwords
    (re.compile(r"password[=:]\s*[\"']?([^\"'\s]+)[\"']?", re.IGNORECASE), "password=[REDACTED]"),
    (re.compile(r"passwd[=:]\s*[\"']?([^\"'\s]+)[\"']?", re.IGNORECASE), "passwd=[REDACTED]"),
    (re.compile(r"pwd[=:]\s*[\"']?([^\"'\s]+)[\"']?", re.IGNORECASE), "pwd=[REDACTED]"),
    # API keys and tokens
    (re.compile(r"api[_-]?key[=:]\s*[\"']?([^\"'\s]+)[\"']?", re.IGNORECASE), "api_key=[REDACTED]"),
    (re.compile(r"apikey[=:]\s*[\"']?([^\"'\s]+)[\"']?", re.IGNORECASE), "apikey=[REDACTED]"),
    (re.compile(r"token[=:]\s*[\"']?([^\"'\s]+)[\"']?", re.IGNORECASE), "token=[REDACTED]"),
    (re.compile(r"auth[_-]?token[=:]\s*[\"']?([^\"'\s]+)[\"']?", re.IGNORECASE), "auth_token=[REDACTED]"),
    (re.compile(r"access[_-]?token[=:]\s*[\"']?([^\"'\s]+)[\"']?", re.IGNORECASE), "access_token=[REDACTED]"),
    (re.compile(r"refresh[_-]?token[=:]\s*[\"']?([^\"'\s]+)[\"']?", re.IGNORECASE), "refresh_token=[REDACTED]"),
    # Secrets
    (re.compile(r"secret[=:]\s*[\"']?([^\"'\s]+)[\"']?", re.IGNORECASE), "secret=[REDACTED]"),
    (re.compile(r"client[_-]?secret[=:]\s*[\"']?([^\"'\s]+)[\"']?", re.IGNORECASE), "client_secret=[REDACTED]"),
    # Authorization headers
    (re.compile(r"authorization:\s*bearer\s+\S+", re.IGNORECASE), "Authorization: Bearer [REDACTED]"),
    (re.compile(r"authorization:\s*basic\s+\S+", re.IGNORECASE), "Authorization: Basic [REDACTED]"),
    # PEM private keys
    (
        re.compile(r"-----BEGIN[A-Z ]+PRIVATE KEY-----[\s\S]*?-----END[A-Z ]+PRIVATE KEY-----"),
        "[PRIVATE KEY REDACTED]",
    ),
    # AWS credentials
    (
        re.compile(r"aws[_-]?access[_-]?key[_-]?id[=:]\s*[\"']?([A-Z0-9]{20})[\"']?", re.IGNORECASE),
        "AWS_ACCESS_KEY_ID=[REDACTED]",
    ),
    (
        re.compile(r"aws[_-]?secret[_-]?access[_-]?key[=:]\s*[\"']?([^\"'\s]+)[\"']?", re.IGNORECASE),
        "AWS_SECRET_ACCESS_KEY=[REDACTED]",
    ),
    # Connection strings
    (
        re.compile(r"(mysql|postgres|postgresql|mongodb|redis|amqp|elasticsearch)://[^:\s]+:([^@\s]+)@", re.IGNORECASE),
        r"\1://[USER]:[REDACTED]@",
    ),
    (re.compile(r"(https?)://[^:/\s]+:([^@\s]+)@", re.IGNORECASE), r"\1://[USER]:[REDACTED]@"),
    (re.compile(r"jdbc:[a-z]+://[^?\s]+\?[^&\s]*password=([^&\s]+)", re.IGNORECASE), "jdbc:...[REDACTED]"),
    (re.compile(r"connectionstring[=:]\s*[\"']?[^\"'\s]+[\"']?", re.IGNORECASE), "connectionstring=[REDACTED]"),
    # Generic credentials
    (re.compile(r"credentials?[=:]\s*[\"']?[^\"'\s]+[\"']?", re.IGNORECASE), "credential=[REDACTED]"),
    (re.compile(r"private[_-]?key[=:]\s*[\"']?[^\"'\s]+[\"']?", re.IGNORECASE), "private_key=[REDACTED]"),
    # Card numbers and US SSNs
    (re.compile(r"\b\d{4}[- ]?\d{4}[- ]?\d{4}[- ]?\d{4}\b"), "[CARD NUMBER REDACTED]"),
    (re.compile(r"\b\d{3}-\d{2}-\d{4}\b"), "[SSN REDACTED]"),
]


def scrub_sensitive_data(text: str) -> str:
    """Redact known secret shapes from text."""
    scrubbed = text
    for pattern, replacement in SENSITIVE_PATTERNS:
        scrubbed = pattern.sub(replacement, scrubbed)
    return scrubbed


def truncate_text(text: str, max_length: int = 2900) -> str:
    """Cut text to max_length characters, marking the cut."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "\n... [truncated]"


def count_potential_secrets(text: str) -> int:
    """Count pattern hits, used to warn before showing raw output."""
    return sum(len(pattern.findall(text)) for pattern, _ in SENSITIVE_PATTERNS)
