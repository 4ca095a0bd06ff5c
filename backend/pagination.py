import math
from dataclasses import dataclass
from typing import Dict, Mapping, Optional


def _parse_int(value) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: Optional[int] = None

    @classmethod
    def from_args(cls, args: Mapping) -> "PageRequest":
        # Non-numeric or zero values quietly fall back to the defaults.
        page = _parse_int(args.get("page")) or 1
        limit = _parse_int(args.get("limit")) or None
        return cls(page=page, limit=limit)

    @property
    def paginated(self) -> bool:
        return self.limit is not None

    @property
    def skip(self) -> int:
        if not self.paginated:
            return 0
        return (self.page - 1) * self.limit

    def describe(self, total: int) -> Dict[str, int]:
        if not self.paginated:
            return {"total": total, "page": 1, "limit": total, "totalPages": 1}
        return {
            "total": total,
            "page": self.page,
            "limit": self.limit,
            "totalPages": math.ceil(total / self.limit),
        }
