# vibecheck/services/sanitizer.py
import html

MAX_NAME_LENGTH = 50

def sanitize_name(value, max_length: int = MAX_NAME_LENGTH) -> str:
    """
    Normalize an untrusted display name

    HTML special characters are entity-escaped, whitespace is trimmed and
    the result is cut to max_length. An entity split by the cut is dropped
    so no bare '&' is left behind. Non-strings become "".
    """
    if not isinstance(value, str):
        return ""

    text = html.escape(value, quote=True).strip()
    if len(text) <= max_length:
        return text

    text = text[:max_length]
    amp = text.rfind("&")
    if amp != -1 and ";" not in text[amp:]:
        text = text[:amp]
    return text.strip()
