# helperbars/core/templating/helpers/strings.py
"""
String helpers: normalization, fingerprints, slicing, regex and encodings.
"""
import base64
import binascii
import hashlib
import re
import uuid as uuid_lib
from typing import Any, Callable, Dict, List

import regex

from helperbars.exceptions import CoercionError

_NON_LETTER_OR_DIGIT = regex.compile(r"[^\p{L}0-9]")
_DIGIT = re.compile(r"[0-9]")
_NON_DIGIT = re.compile(r"[^0-9]")
_NON_ALPHA = re.compile(r"[^a-zA-Z]")
_WHITESPACE = re.compile(r"\s+")
_GROUP_REFERENCE = re.compile(r"\$(\d+|\{\w+\}|\$)")


def normalize_email(email: str) -> str:
    """Reduce an address to a comparable local part.

    Drops any "+tag", the domain, dots and digits, then trims and lowercases.
    """
    email = email.split("+")[0]
    email = email.split("@")[0]
    email = email.replace(".", "")
    email = _DIGIT.sub("", email)
    return email.strip().lower()


def fingerprint(*parts: str) -> str:
    # each character that is not a letter (any script) or ASCII digit becomes "_".
    joined = "_".join(parts)
    return _NON_LETTER_OR_DIGIT.sub("_", joined).lower()


def fingerprint_address(address: Any, city: Any, state: Any, zip_code: Any, plus4_code: Any) -> str:
    # non-string parts count as empty.
    parts = [p if isinstance(p, str) else "" for p in (address, city, state, zip_code, plus4_code)]
    return fingerprint(*parts)


def only_digits(text: str) -> str:
    return _NON_DIGIT.sub("", text)


def only_alpha(text: str) -> str:
    return _NON_ALPHA.sub("", text)


def left(text: str, n: int) -> str:
    if len(text) <= n:
        return text
    return text[:n]


def right(text: str, n: int) -> str:
    if len(text) <= n:
        return text
    return text[len(text) - n:]


def split(sep: str, text: str) -> List[str]:
    if sep == "":
        return list(text)
    return text.split(sep)


def trim(text: str, cutset: str) -> str:
    return text.strip(cutset)


def to_lower(text: str) -> str:
    return text.lower()


def unquote(text: str) -> str:
    """Drop one leading and one trailing double quote, if present."""
    if text.startswith('"'):
        text = text[1:]
    if text.endswith('"'):
        text = text[:-1]
    return text


def nospace(text: str) -> str:
    return _WHITESPACE.sub("", text)


def substr(start: int, end: int, text: str) -> str:
    if start < 0:
        return text[:end]
    if end < 0 or end > len(text):
        return text[start:]
    return text[start:end]


def regex_match(pattern: str, text: str) -> bool:
    return re.search(pattern, text) is not None


def _python_replacement(replacement: str) -> str:
    # "$1" / "${name}" / "$$" references become re.sub syntax.
    def convert(match: "re.Match[str]") -> str:
        ref = match.group(1)
        if ref == "$":
            return "$"
        return "\\g<" + ref.strip("{}") + ">"
    escaped = replacement.replace("\\", "\\\\")
    return _GROUP_REFERENCE.sub(convert, escaped)


def regex_replace_all(pattern: str, text: str, replacement: str) -> str:
    return re.sub(pattern, _python_replacement(replacement), text)


def new_uuid() -> str:
    return str(uuid_lib.uuid4())


def b64enc(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def b64dec(text: str) -> str:
    try:
        return base64.b64decode(text.encode("ascii"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeError) as e:
        raise CoercionError(f"illegal base64 data: {e}") from e


def sha1sum(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


def sha256sum(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


HELPERS: Dict[str, Callable[..., Any]] = {
    "normalize_email": normalize_email,
    "fingerprint": fingerprint,
    "fingerprint_address": fingerprint_address,
    "onlyDigits": only_digits,
    "onlyAlpha": only_alpha,
    "left": left,
    "right": right,
    "split": split,
    "trim": trim,
    "toLower": to_lower,
    "unquote": unquote,
    "nospace": nospace,
    "substr": substr,
    "regexMatch": regex_match,
    "regexReplaceAll": regex_replace_all,
    "uuid": new_uuid,
    "b64enc": b64enc,
    "b64dec": b64dec,
    "sha1sum": sha1sum,
    "sha256sum": sha256sum,
}
