import logging
from typing import List, Optional

from .db.models import DataRow
from .models import RowHit, SearchResponse
from .scoring import ScoringPolicy, tokenize
from .settings import settings as global_settings

logger = logging.getLogger("sheetdex.search")


def clamp_limit(limit: Optional[int], default: int, maximum: int) -> int:
    if limit is None:
        return default
    return max(1, min(int(limit), maximum))


def clamp_offset(offset: Optional[int]) -> int:
    return max(0, int(offset or 0))


class SearchEngine:
    def __init__(self, store, settings=None, scoring: Optional[ScoringPolicy] = None):
        self.store = store
        self.settings = settings or global_settings
        self.scoring = scoring or ScoringPolicy()

    def match(self, query: str) -> List[RowHit]:
        """Every row containing all keywords of ``query``, ranked best first."""
        keywords = tokenize(query)
        if not keywords:
            return []
        with self.store.session():
            rows = self.store.rows_matching_all(keywords)
        hits = [self._to_hit(row, keywords, query) for row in rows]
        # Two stable passes: id ascending breaks ties left by score and import time.
        hits.sort(key=lambda h: h.id)
        hits.sort(key=lambda h: (h.score, h.import_time), reverse=True)
        return hits

    def search(self, query: str, limit: Optional[int] = None, offset: Optional[int] = 0) -> SearchResponse:
        limit = clamp_limit(limit, self.settings.SEARCH_DEFAULT_LIMIT, self.settings.SEARCH_MAX_LIMIT)
        offset = clamp_offset(offset)
        hits = self.match(query)
        logger.debug("search %r: %d match(es)", query, len(hits))
        return SearchResponse(
            results=hits[offset:offset + limit],
            total=len(hits),
            limit=limit,
            offset=offset,
        )

    def _to_hit(self, row: DataRow, keywords: List[str], query: str) -> RowHit:
        record = row.file
        return RowHit(
            id=row.id,
            file_id=record.id,
            file_name=record.file_name,
            sheet_name=row.sheet_name,
            row_number=row.row_number,
            import_time=row.import_time,
            data_json=row.data_json,
            search_text=row.search_text,
            score=self.scoring.score(row.search_text, keywords, query),
            field_order=record.field_order_list,
        )
