"""docvault_shared.policy — Access policy gate.

Pure decision function over (document type, action, credential):

    unknown type              -> Denied(UNKNOWN_DOC_TYPE), checked first
    public type + sign        -> Granted, credential ignored
    anything else             -> Granted only with a valid credential

The credential is a single shared secret compared in constant time. An
unset secret never validates.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .catalog import DocumentCatalog, DocumentEntry
from .errors import Unauthorized, UnknownDocType
from .validator import Action


class DenyReason(str, Enum):
    UNKNOWN_DOC_TYPE = "unknown_doc_type"
    UNAUTHORIZED = "unauthorized"


@dataclass(frozen=True)
class Decision:
    granted: bool
    entry: Optional[DocumentEntry] = None
    reason: Optional[DenyReason] = None

    def __post_init__(self) -> None:
        if self.granted and self.entry is None:
            raise ValueError("A granted decision needs a catalog entry")
        if not self.granted and self.reason is None:
            raise ValueError("A denied decision needs a reason")

    def raise_for_denial(self) -> DocumentEntry:
        """Return the granted entry, or raise the matching request error."""
        if self.granted:
            return self.entry
        if self.reason is DenyReason.UNKNOWN_DOC_TYPE:
            raise UnknownDocType()
        raise Unauthorized()


def credential_matches(credential: Optional[str], secret: str) -> bool:
    if not secret or not credential:
        return False
    return hmac.compare_digest(credential.encode("utf-8"), secret.encode("utf-8"))


def authorize(
    catalog: DocumentCatalog,
    doc_type: object,
    action: Action,
    credential: Optional[str],
    secret: str,
) -> Decision:
    entry = catalog.lookup(doc_type)
    if entry is None:
        return Decision(granted=False, reason=DenyReason.UNKNOWN_DOC_TYPE)
    if action is Action.SIGN and entry.is_public:
        return Decision(granted=True, entry=entry)
    if credential_matches(credential, secret):
        return Decision(granted=True, entry=entry)
    return Decision(granted=False, entry=entry, reason=DenyReason.UNAUTHORIZED)
