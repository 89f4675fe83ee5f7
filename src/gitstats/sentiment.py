"""Lexicon-based sentiment scoring for commit messages.

The analyzer is a fixed heuristic, not a model: English and French word lists
are merged into one positive and one negative set, emojis count one and a half
times, and a few "fix"-like terms are treated as ambiguous. Scoring is
deterministic and keeps no state between calls.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import FrozenSet, Mapping, Optional, Tuple

POSITIVE_WORDS_EN = frozenset({
    "add", "improve", "enhance", "optimize", "fix", "resolve", "solved", "support",
    "feature", "clean", "simplify", "upgrade", "refactor", "better", "faster",
    "easier", "simplified", "nice", "good", "great", "awesome", "amazing",
    "excellent", "implement", "success", "successful", "complete", "completed",
    "done", "finish", "finished", "working", "works", "perfect", "updated",
    "clean up",
})

NEGATIVE_WORDS_EN = frozenset({
    "bug", "issue", "error", "fail", "failed", "failure", "crash", "fix", "problem",
    "broken", "breaking", "critical", "severe", "bad", "wrong", "terrible", "horrible",
    "nasty", "ugly", "hack", "workaround", "temporary", "temp", "revert", "rollback",
    "emergency", "hotfix", "regression", "disaster", "wtf", "corrupted", "invalid",
    "work around", "roll back",
})

POSITIVE_WORDS_FR = frozenset({
    "ajout", "ajoute", "ajouter", "amélioration", "améliore", "optimise",
    "optimisation", "correction", "corrige", "résout", "résolu", "support",
    "fonctionnalité", "nettoyage", "simplifie", "simplifié", "refactorisation",
    "mieux", "rapide", "facile", "bon", "bien", "super", "génial", "excellent",
    "implémente", "implémentation", "succès", "réussi", "terminé", "fini",
    "fonctionne", "parfait", "mise à jour", "mis à jour",
})

NEGATIVE_WORDS_FR = frozenset({
    "bogue", "erreur", "échec", "échoue", "plantage", "crash", "correction",
    "corrige", "problème", "cassé", "critique", "grave", "mauvais", "faux",
    "terrible", "horrible", "moche", "bidouille", "contournement", "temporaire",
    "annule", "régression", "urgence", "désastre", "corrompu", "invalide",
    "ne marche pas",
})

POSITIVE_EMOJIS = ("😀", "😊", "👍", "🎉", "✅", "🚀", "💯", "👏", "🙌", "💪", "✨")
NEGATIVE_EMOJIS = ("😞", "😢", "😡", "👎", "❌", "💔", "😱", "😰", "🤦", "🤮", "🔥")

# term -> forms whose presence means the work is done, not pending
AMBIGUOUS_TERMS = {
    "fix": ("fixed", "fixing"),
    "correction": ("corrigé", "corrigée", "corrected"),
    "corrige": ("corrigé", "corrigée"),
}

AMBIGUOUS_POSITIVE_WEIGHT = 0.5
AMBIGUOUS_NEGATIVE_WEIGHT = 0.8
EMOJI_WEIGHT = 1.5


@dataclass(frozen=True)
class SentimentLexicon:
    """Immutable word and emoji sets used by :func:`analyze_sentiment`."""

    positive_words: FrozenSet[str]
    negative_words: FrozenSet[str]
    positive_emojis: Tuple[str, ...] = POSITIVE_EMOJIS
    negative_emojis: Tuple[str, ...] = NEGATIVE_EMOJIS
    ambiguous_terms: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: dict(AMBIGUOUS_TERMS)
    )


DEFAULT_LEXICON = SentimentLexicon(
    positive_words=POSITIVE_WORDS_EN | POSITIVE_WORDS_FR,
    negative_words=NEGATIVE_WORDS_EN | NEGATIVE_WORDS_FR,
)


class SentimentCategory(str, enum.Enum):
    VERY_POSITIVE = "Very Positive"
    POSITIVE = "Positive"
    NEUTRAL = "Neutral"
    NEGATIVE = "Negative"
    VERY_NEGATIVE = "Very Negative"


@lru_cache(maxsize=None)
def _word_pattern(word: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(word)}\b")


def count_term(text: str, term: str) -> int:
    """Count non-overlapping occurrences of a lexicon entry in case-folded text.

    Single tokens must match on word boundaries; multi-word phrases are
    counted as plain substrings.
    """
    if " " in term:
        return text.count(term)
    return len(_word_pattern(term).findall(text))


def analyze_sentiment(
    message: Optional[str],
    lexicon: SentimentLexicon = DEFAULT_LEXICON,
) -> float:
    """Score a commit message between -1 (very negative) and 1 (very positive).

    Business logic:
    - Missing, non-text, empty or whitespace-only messages score ``0``.
    - Each positive word match adds 1, each negative word match subtracts 1.
    - An ambiguous term adds 0.5 per match on the positive side. On the
      negative side it subtracts 0.8 per match only when none of its
      completion forms (``fixed``, ``corrigé``...) appears in the message;
      its matches count toward the token total on both sides regardless.
    - Emojis weigh 1.5 on their side and count once each.
    - The signed sum is divided by the number of matched tokens and clamped
      to ``[-1, 1]``; no matches at all is neutral (``0``).
    """
    if not isinstance(message, str) or not message.strip():
        return 0.0

    folded = message.casefold()
    score = 0.0
    matched = 0

    for word in sorted(lexicon.positive_words):
        hits = count_term(folded, word)
        if not hits:
            continue
        if word in lexicon.ambiguous_terms:
            score += hits * AMBIGUOUS_POSITIVE_WEIGHT
        else:
            score += hits
        matched += hits

    for word in sorted(lexicon.negative_words):
        hits = count_term(folded, word)
        if not hits:
            continue
        completions = lexicon.ambiguous_terms.get(word)
        if completions is None:
            score -= hits
        elif not any(form in folded for form in completions):
            score -= hits * AMBIGUOUS_NEGATIVE_WEIGHT
        matched += hits

    for emoji in lexicon.positive_emojis:
        hits = message.count(emoji)
        score += hits * EMOJI_WEIGHT
        matched += hits

    for emoji in lexicon.negative_emojis:
        hits = message.count(emoji)
        score -= hits * EMOJI_WEIGHT
        matched += hits

    if matched == 0:
        return 0.0
    return max(-1.0, min(1.0, score / matched))


def categorize_sentiment(score: float) -> SentimentCategory:
    """Band a sentiment score; a score on a boundary takes the more positive band."""
    if score > 0.5:
        return SentimentCategory.VERY_POSITIVE
    if score > 0.1:
        return SentimentCategory.POSITIVE
    if score >= -0.1:
        return SentimentCategory.NEUTRAL
    if score >= -0.5:
        return SentimentCategory.NEGATIVE
    return SentimentCategory.VERY_NEGATIVE
