# DEPENDENCIES
import sys
import re
from typing import List
from typing import Tuple
from difflib import SequenceMatcher
from pathlib import Path
from rapidfuzz.distance import Levenshtein

# Add parent directory to path for imports
sys.path.append(str(Path(__file__).parent.parent))

from utils.exceptions import ValidationError


class TextProcessor:
    """
    Text normalization and lexical similarity utilities for statutory clauses
    """
    MAX_EMBEDDING_CHARS   = 30000
    TRUNCATION_KEEP_RATIO = 0.8
    MIN_WORD_LENGTH       = 3


    @staticmethod
    def clean_for_embedding(text: str, max_chars: int = MAX_EMBEDDING_CHARS, keep_ratio: float = TRUNCATION_KEEP_RATIO) -> str:
        """
        Normalize text before hashing / embedding so that trivial formatting differences share one cache entry

        Arguments:
        ----------
            text       { str }  : Raw clause text

            max_chars  { int }  : Hard length cap

            keep_ratio { float } : Minimum share of the cap that must survive a cut back to the last sentence boundary

        Returns:
        --------
                 { str }        : Cleaned text

        Raises:
        -------
            ValidationError     : If the input is not a string or is empty after cleaning
        """
        if not isinstance(text, str):
            raise ValidationError("Invalid text input: expected a string", context = {"received_type" : type(text).__name__})

        cleaned = text.replace("\r\n", "\n").replace("\r", "\n")
        cleaned = re.sub(r"\n{3,}", "\n\n", cleaned)
        cleaned = re.sub(r"\s+", " ", cleaned).strip()

        if not cleaned:
            raise ValidationError("Text is empty after cleaning")

        if (len(cleaned) > max_chars):
            cleaned       = cleaned[:max_chars]
            last_sentence = cleaned.rfind(".")

            if (last_sentence > max_chars * keep_ratio):
                cleaned = cleaned[:last_sentence + 1]

        return cleaned


    @staticmethod
    def normalize_for_comparison(text: str) -> str:
        """
        Lowercase, strip punctuation and collapse whitespace
        """
        lowered = (text or "").lower()
        lowered = re.sub(r"[^\w\s]", " ", lowered)

        return re.sub(r"\s+", " ", lowered).strip()


    @staticmethod
    def significant_words(text: str, min_length: int = MIN_WORD_LENGTH) -> List[str]:
        return [word for word in TextProcessor.normalize_for_comparison(text).split() if (len(word) >= min_length)]


    @staticmethod
    def edit_distance(first: str, second: str) -> int:
        return Levenshtein.distance(first, second)


    @staticmethod
    def edit_similarity(first: str, second: str) -> float:
        """
        1 - Levenshtein distance / length of the longer string (1.0 for two empty strings)
        """
        return Levenshtein.normalized_similarity(first, second)


    @staticmethod
    def jaccard_similarity(first: str, second: str, min_length: int = MIN_WORD_LENGTH) -> float:
        first_words  = set(TextProcessor.significant_words(first, min_length))
        second_words = set(TextProcessor.significant_words(second, min_length))
        union        = first_words | second_words

        if not union:
            return 0.0

        return len(first_words & second_words) / len(union)


    @staticmethod
    def text_similarity(first: str, second: str, edit_weight: float = 0.3, jaccard_weight: float = 0.7) -> float:
        """
        Lexical similarity of two clauses : weighted blend of edit-distance similarity and word-set Jaccard similarity

        Arguments:
        ----------
            first          { str }   : First clause text

            second         { str }   : Second clause text

            edit_weight    { float } : Weight of the normalized edit-distance similarity

            jaccard_weight { float } : Weight of the Jaccard similarity over words of 3+ characters

        Returns:
        --------
                    { float }        : Similarity in [0, 1]
        """
        if (first == second):
            return 1.0

        norm_first  = TextProcessor.normalize_for_comparison(first)
        norm_second = TextProcessor.normalize_for_comparison(second)

        if (norm_first == norm_second):
            return 1.0

        edit_sim    = TextProcessor.edit_similarity(norm_first, norm_second)
        jaccard_sim = TextProcessor.jaccard_similarity(norm_first, norm_second)

        return edit_weight * edit_sim + jaccard_weight * jaccard_sim


    @staticmethod
    def word_level_diff(old_text: str, new_text: str) -> Tuple[List[str], List[str]]:
        """
        Word-level diff of two texts

        Returns:
        --------
            { tuple } : (removed spans, added spans), each span a space-joined run of words
        """
        old_words = (old_text or "").split()
        new_words = (new_text or "").split()
        matcher   = SequenceMatcher(a = old_words, b = new_words, autojunk = False)

        removed   = list()
        added     = list()

        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag in ("delete", "replace"):
                removed.append(" ".join(old_words[i1:i2]))

            if tag in ("insert", "replace"):
                added.append(" ".join(new_words[j1:j2]))

        return removed, added


    @staticmethod
    def truncate_excerpt(text: str, max_length: int = 300) -> str:
        text = (text or "").strip()

        if (len(text) <= max_length):
            return text

        return text[:max_length].rstrip() + "..."


