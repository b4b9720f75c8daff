from typing import Set


class FuzzyMatcher:
    @staticmethod
    def jaccard(str1: str, str2: str) -> float:
        """Token-set overlap between two normalized strings, between 0 and 1"""
        tokens1: Set[str] = set(str1.split())
        tokens2: Set[str] = set(str2.split())
        union = tokens1 | tokens2
        if not union:
            return 0.0
        return len(tokens1 & tokens2) / len(union)

    @staticmethod
    def titles_match(title1: str, title2: str, threshold: float = 0.5) -> bool:
        """Check normalized titles for equality, containment, or Jaccard overlap above threshold"""
        if not title1 or not title2:
            return False
        if title1 == title2:
            return True
        if title1 in title2 or title2 in title1:
            return True
        return FuzzyMatcher.jaccard(title1, title2) > threshold
