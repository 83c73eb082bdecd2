"""
Tools to manipulate the python collections (dicts, lists) which make up boto request parameters.
"""
from typing import Any, Dict, List, Optional, TypeVar

T = TypeVar("T")


def remove_none_values(params: Dict[str, Any]) -> Dict[str, Any]:
    """Remove None values (not recursively) from the given dict, as they usually raise boto3 errors."""
    return {key: value for key, value in params.items() if value is not None}


def none_if_empty(items: Optional[List[T]]) -> Optional[List[T]]:
    """Return the given list, or None if it is None or empty."""
    return items if items else None
