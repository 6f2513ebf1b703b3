"""Token-overlap similarity between beneficiary and investor names."""

from payment_matcher.engine.normalizer import normalize_name

EXACT_SCORE = 1.0
SUBSTRING_SCORE = 0.95
PARTIAL_TOKEN_WEIGHT = 0.8
ALL_EXACT_BONUS = 0.1
MIN_PARTIAL_TOKEN_LENGTH = 3


def _tokens_overlap(word: str, candidate: str) -> bool:
    if len(word) < MIN_PARTIAL_TOKEN_LENGTH or len(candidate) < MIN_PARTIAL_TOKEN_LENGTH:
        return False
    return word in candidate or candidate in word


def fuzzy_match(name1: str, name2: str) -> float:
    """
    Score the similarity of two names between 0.0 and 1.0.

    Both names are normalized first. Identical names score 1.0 and a name
    contained in the other scores 0.95. Otherwise each word of the side with
    fewer words is looked up in the other side: an equal word counts fully,
    a word containing (or contained in) the other, both at least 3 letters
    long, counts 0.8. When every word found an equal word the score gets a
    0.1 bonus.

    With the same number of words on both sides, ``name1`` is the side being
    looked up, so the score is not always symmetric.
    """
    s1 = normalize_name(name1)
    s2 = normalize_name(name2)

    if not s1 or not s2:
        return 0.0

    if s1 == s2:
        return EXACT_SCORE

    if s1 in s2 or s2 in s1:
        return SUBSTRING_SCORE

    words1 = s1.split()
    words2 = s2.split()
    if not words1 or not words2:
        return 0.0

    if len(words1) <= len(words2):
        shorter_words, longer_words = words1, words2
    else:
        shorter_words, longer_words = words2, words1

    exact_matches = 0
    partial_matches = 0
    for word in shorter_words:
        for candidate in longer_words:
            if word == candidate:
                exact_matches += 1
                break
            if _tokens_overlap(word, candidate):
                partial_matches += 1
                break

    score = (exact_matches + PARTIAL_TOKEN_WEIGHT * partial_matches) / len(shorter_words)

    if exact_matches == len(shorter_words):
        score = min(1.0, score + ALL_EXACT_BONUS)

    return min(1.0, score)
