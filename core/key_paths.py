# core/key_paths.py
import posixpath
from typing import Final, Optional

SEP: Final[str] = "/"


def normalize(raw: Optional[str]) -> str:
    """
    Turn a caller-controlled path into a safe object-key suffix.

    - Lexical cleaning only: "." and duplicate separators collapse, ".." is
      resolved against a virtual root so it can never climb above it.
    - "", "." and "/" (and anything that cleans to them) mean "no sub-path".
    - Never raises; malformed input degrades to "".

      normalize("../../etc/passwd") -> "etc/passwd"
      normalize("/a/./b//c/")      -> "a/b/c"
    """
    if not raw:
        return ""
    cleaned = posixpath.normpath(SEP + raw)
    return cleaned.lstrip(SEP)


def normalize_prefix(raw: Optional[str]) -> str:
    """Like normalize(), but for prefixes: exactly one trailing "/" or ""."""
    segment = normalize(raw)
    return segment + SEP if segment else ""


def user_prefix(identity: str) -> str:
    return identity + SEP


def object_key(identity: str, relative: str, sub_dir: str = "") -> str:
    """identity/[sub_dir/]relative, with both caller-supplied parts normalized."""
    return user_prefix(identity) + normalize_prefix(sub_dir) + normalize(relative)


def relative_name(identity: str, key: str) -> str:
    prefix = user_prefix(identity)
    return key[len(prefix) :] if key.startswith(prefix) else key


def is_placeholder(key: str) -> bool:
    # Zero-length "folder" objects some clients create.
    return key.endswith(SEP)
