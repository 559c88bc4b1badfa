"""Errors raised by the inventory services; routers map them to HTTP codes."""


class PendingChangeNotFound(Exception):
    """Raised when a change does not exist or is no longer pending."""


class InvalidChangeAction(Exception):
    """Raised for review actions other than approve/reject."""


class NotABatchChange(Exception):
    """Raised when a per-item review targets a non-batch change."""


class InvalidBatchIndex(Exception):
    """Raised when a batch item index is out of range."""


class InventoryItemNotFound(Exception):
    """Raised when the item a change refers to no longer exists."""


class DuplicatePartNumber(Exception):
    """Raised when adding a part number that is already in inventory."""


class InventoryFileError(Exception):
    """Raised when an uploaded spreadsheet cannot be turned into inventory rows."""


class ReorderRequestNotFound(Exception):
    """Raised when a reorder request id does not exist."""


class InvalidReorderStatus(Exception):
    """Raised when moving a received or denied request to another status."""
