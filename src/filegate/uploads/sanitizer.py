"""Filename sanitization and double-extension detection.

Two separate concerns live here:

- ``sanitize`` normalizes a name that is about to be used as an object key.
  It removes path separators and parent-directory sequences so the result
  can never address anything outside the bucket's flat namespace.
- ``has_suspicious_extension`` inspects the *original* client-supplied name
  for polyglot tricks such as ``invoice.pdf.exe`` or ``a.jpg.png``.

Both are heuristics over attacker-controlled text. They narrow the attack
surface; they do not inspect file content.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable

from filegate.errors import InvalidName

_SEPARATORS = re.compile(r"[/\\]")
_WHITESPACE = re.compile(r"\s+")


def sanitize(raw_name: str) -> str:
    """Strip traversal sequences and separators from a storage name.

    Separators go first so that ``./.`` cannot collapse into ``..`` after
    the parent-directory pass. The result is idempotent under a second call.

    Raises:
        InvalidName: If nothing is left after sanitization.
    """
    sanitized = _SEPARATORS.sub("", raw_name)
    sanitized = sanitized.replace("..", "").strip()
    if not sanitized:
        raise InvalidName()
    return sanitized


def get_extension(name: str) -> str:
    """Return the lower-cased extension of ``name`` without the dot.

    Dot-files such as ``.bashrc`` have no extension.
    """
    return os.path.splitext(name)[1].lower().lstrip(".")


def _alternation(extensions: Iterable[str]) -> str:
    return "|".join(re.escape(ext.lower().lstrip(".")) for ext in extensions)


def has_suspicious_extension(
    name: str,
    allowed_extensions: Iterable[str],
    blocked_extensions: Iterable[str],
) -> bool:
    """Detect double-extension and polyglot file names.

    The check runs on the lower-cased name with all whitespace removed and
    flags:

    1. a blocked extension followed by another dot (``photo.exe.png``) or
       closing a chain of extensions (``invoice.pdf.exe``);
    2. two allow-listed extensions at the end (``file.jpg.png``).
    """
    collapsed = _WHITESPACE.sub("", name.lower())

    blocked = _alternation(blocked_extensions)
    if blocked:
        if re.search(rf"\.(?:{blocked})\.", collapsed):
            return True
        if re.search(rf"\.[^.]+\.(?:{blocked})$", collapsed):
            return True

    allowed = _alternation(allowed_extensions)
    if allowed and re.search(rf"\.(?:{allowed})\.(?:{allowed})$", collapsed):
        return True

    return False
