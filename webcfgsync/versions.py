"""Root version bookkeeping and checks over the documents of a sync."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

ROOT = "root"

FACTORY_RESET_REBOOT_REASON = "factory-reset"
FW_UPGRADE_REBOOT_REASON = "Software_upgrade"
FORCED_FW_UPGRADE_REBOOT_REASON = "Forced_Software_upgrade"

CCSP_CRASH_STATUS_CODE = 192
DOC_UNSUPPORTED_CODE = 204
_RETRY_CODES = frozenset({CCSP_CRASH_STATUS_CODE, 191, 193, 190})

_VERSION_LIST_LEN = 511

_NONE_STATES = frozenset({"NONE", "NONE-MIGRATION", "NONE-REBOOT"})


@dataclass
class TmpDoc:
    """A document of the current sync, with the state of its apply."""

    name: str
    version: int = 0
    status: Optional[str] = None
    error_details: Optional[str] = None
    error_code: int = 0
    supplementary: bool = False
    retry_timestamp: int = 0
    cloud_trans_id: Optional[str] = None


@dataclass
class RootVersion:
    """The root version sent to the cloud: a number or a special string.

    ``reset_done`` records that the one-time reset of the root version after
    a firmware migration has happened.
    """

    version: int = 0
    string: Optional[str] = None
    reset_done: bool = False

    def text(self) -> str:
        """The root version as it appears in a version list."""
        if self.string:
            return self.string
        return str(self.version & 0xFFFFFFFF)


def config_doc_list(names: Iterable[Optional[str]]) -> str:
    """Return the comma separated document names, root first.

    An empty list of stored documents gives an empty string.
    """
    names = list(names)
    if not names:
        return ""
    others = [name for name in names if name is not None and name != ROOT]
    return ",".join([ROOT, *others])


def config_version_list(root: RootVersion, versions: Iterable[Tuple[str, int]]) -> str:
    """Return the root version followed by the version of every other document.

    ``versions`` holds (name, version) pairs of the stored documents. With no
    stored documents the list is "0".
    """
    versions = list(versions)
    if not versions:
        return "0"
    parts = [root.text()[:_VERSION_LIST_LEN]]
    parts.extend(
        str(version & 0xFFFFFFFF)
        for name, version in versions
        if name is not None and name != ROOT
    )
    return ",".join(parts)


def _is_migration(reason: str) -> bool:
    return reason in (FW_UPGRADE_REBOOT_REASON, FORCED_FW_UPGRADE_REBOOT_REASON)


def derive_root_version(
    reboot_reason: Optional[str],
    db_exists: bool,
    db_root_version: int,
    db_root_string: Optional[str],
    subdoc_count: int,
    status: int,
    reset_done: bool = False,
) -> RootVersion:
    """Work out the root version to announce from the reboot reason and the database.

    ``subdoc_count`` is the number of stored documents, root included, and
    ``status`` the HTTP status of the previous sync.
    """
    if not reboot_reason:
        return RootVersion(reset_done=reset_done)

    if not db_exists:
        if reboot_reason.startswith(FACTORY_RESET_REBOOT_REASON):
            text = "NONE"
        elif reboot_reason.startswith(FW_UPGRADE_REBOOT_REASON) or reboot_reason.startswith(
            FORCED_FW_UPGRADE_REBOOT_REASON
        ):
            text = "NONE-MIGRATION"
        else:
            text = "NONE-REBOOT"
        return RootVersion(string=text, reset_done=reset_done)

    if db_root_string is not None:
        if (
            db_root_string == "POST-NONE"
            and not _is_migration(reboot_reason)
            and reboot_reason != FACTORY_RESET_REBOOT_REASON
        ):
            return RootVersion(string="NONE-REBOOT", reset_done=reset_done)
        if status == 404 and db_root_string in _NONE_STATES:
            return RootVersion(string="POST-NONE", reset_done=reset_done)
        if status == 200 and db_root_string == "NONE":
            return RootVersion(string="POST-NONE", reset_done=reset_done)

    string: Optional[str] = None
    if db_root_version:
        if not reset_done and subdoc_count > 1 and _is_migration(reboot_reason):
            return RootVersion(version=0, reset_done=True)
    elif db_root_string is not None:
        string = db_root_string
    return RootVersion(version=db_root_version, string=string, reset_done=reset_done)


def check_root_delete(docs: Iterable[TmpDoc]) -> bool:
    """True when every document other than root has been applied."""
    success = False
    for doc in docs:
        if doc.name == ROOT:
            continue
        if doc.status == "success":
            success = True
        else:
            return False
    return success


def _unsupported(doc: TmpDoc) -> bool:
    return (
        doc.error_code == DOC_UNSUPPORTED_CODE
        and doc.error_details is not None
        and "doc_unsupported" in doc.error_details
    )


def check_root_update(docs: Iterable[TmpDoc]) -> bool:
    """True when every supported primary document has been applied."""
    success = False
    for doc in docs:
        if _unsupported(doc) or doc.supplementary:
            continue
        if doc.name == ROOT:
            continue
        if doc.status == "success":
            success = True
        else:
            return False
    return success


def _needs_retry(doc: TmpDoc) -> bool:
    if doc.error_code in _RETRY_CODES:
        return True
    return (
        doc.error_code == DOC_UNSUPPORTED_CODE
        and doc.error_details is not None
        and "doc_unsupported" not in doc.error_details
    )


def docs_to_retry(docs: Iterable[TmpDoc]) -> List[TmpDoc]:
    """Return the documents whose failure calls for a later retry."""
    return [doc for doc in docs if _needs_retry(doc)]