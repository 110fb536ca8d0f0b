"""Counter updates shared by the services."""

from typing import Any, Dict, Optional

from locki.apis.Db import Db


def clamped_decrements(data: Optional[Dict[str, Any]], *fields: str) -> Dict[str, Any]:
    """Atomic -1 for each field whose current value is positive.

    Counters never go below zero: fields already at 0 (or missing) are left
    out of the returned update.

    Args:
        data: Current document data read inside the transaction
        fields: Counter field names

    Returns:
        Update dict, empty when nothing can be decremented
    """
    if data is None:
        return {}
    return {name: Db.increment(-1) for name in fields if (data.get(name) or 0) > 0}
