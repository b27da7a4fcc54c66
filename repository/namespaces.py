# repository/namespaces.py
from typing import Final, FrozenSet

# User metadata attached to every put; S3 exposes it as x-amz-meta-owner-id.
OWNER_METADATA_KEY: Final[str] = "owner-id"

NOT_FOUND_CODES: Final[FrozenSet[str]] = frozenset({"NoSuchKey", "404", "NotFound"})
