from typing import List, Sequence


def tokenize(query: str) -> List[str]:
    """Whitespace-split keywords, duplicates removed, first occurrence kept."""
    seen = set()
    keywords = []
    for token in (query or "").split():
        if token not in seen:
            seen.add(token)
            keywords.append(token)
    return keywords


class ScoringPolicy:
    """
    Keyword relevance for a row's search text.

    One point per distinct keyword found, plus a phrase bonus worth the
    keyword count when the whole trimmed query appears verbatim.
    """

    def __init__(self, phrase_bonus: bool = True):
        self.phrase_bonus = phrase_bonus

    def score(self, search_text: str, keywords: Sequence[str], query: str) -> int:
        score = sum(1 for kw in keywords if kw in search_text)
        phrase = (query or "").strip()
        if self.phrase_bonus and phrase and phrase in search_text:
            score += len(keywords)
        return score
