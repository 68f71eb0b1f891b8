# packlist/pagination.py
import math
from typing import Any, Dict, List


def paginate(items: List[Any], page: int = 1, limit: int = 10) -> Dict[str, Any]:
    """Slice `items` for one page and describe where that page sits."""
    start = (page - 1) * limit
    end = start + limit
    return {
        "items": items[start:end],
        "pagination": {
            "currentPage": page,
            "totalPages": math.ceil(len(items) / limit) if limit else 0,
            "totalItems": len(items),
            "hasNextPage": end < len(items),
            "hasPrevPage": page > 1,
        },
    }
