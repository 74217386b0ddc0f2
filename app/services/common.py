"""
app/services/common.py

Purpose: Query helpers shared by the CRUD services

- Paginated finds
- Case-insensitive search filters
- Line item HSN/SAC checks
"""

import re
from typing import Any, Dict, List, Sequence, Tuple

from app.core.exceptions import ValidationError
from app.db.mongo import NO_OBJECT_ID
from utils.validation_utils import validate_hsn, validate_sac

MAX_PAGE_SIZE = 100


def search_filter(term: str, fields: Sequence[str]) -> Dict[str, Any]:
    """Matches term anywhere in any of the given fields, ignoring case."""
    pattern = re.escape(term.strip())
    return {"$or": [{name: {"$regex": pattern, "$options": "i"}} for name in fields]}


async def paginate(
    collection,
    query: Dict[str, Any],
    page: int = 1,
    limit: int = 20,
    sort: Sequence[Tuple[str, int]] = (("created_at", -1),),
) -> Tuple[List[Dict[str, Any]], int]:
    """
    Returns one page of documents and the total match count.
    """
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)

    total = await collection.count_documents(query)
    cursor = (
        collection.find(query, NO_OBJECT_ID)
        .sort(list(sort))
        .skip((page - 1) * limit)
        .limit(limit)
    )
    return await cursor.to_list(length=limit), total


def pagination(total: int, page: int, limit: int) -> Dict[str, int]:
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": (total + limit - 1) // limit,
    }


def check_item_codes(items: List[Dict[str, Any]]) -> None:
    """
    Rejects lines whose HSN or SAC code is present but malformed.
    """
    for position, item in enumerate(items, start=1):
        if item.get("hsn_code"):
            check = validate_hsn(item["hsn_code"])
            if not check:
                raise ValidationError(f"Item {position}: {check.message}")
        if item.get("sac_code"):
            check = validate_sac(item["sac_code"])
            if not check:
                raise ValidationError(f"Item {position}: {check.message}")
