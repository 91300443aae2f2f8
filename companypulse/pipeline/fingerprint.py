"""Content fingerprinting for change detection.

A fingerprint is a SHA-256 hex digest of a record's change-relevant text.
It is compared for equality only, so formatting of the surrounding record
(URLs, timestamps, ordering) never registers as a content change.
"""

import hashlib
from typing import Optional

DIGEST_LENGTH = 64


def fingerprint(content: Optional[str] = None) -> str:
    """Hash content; missing content hashes the same as the empty string."""
    if content is None:
        content = ""
    elif not isinstance(content, str):
        content = str(content)
    # surrogatepass keeps lone surrogates from raising on encode
    return hashlib.sha256(content.encode("utf-8", "surrogatepass")).hexdigest()
