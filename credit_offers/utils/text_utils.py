"""Text normalization utilities for free-text modality names"""

import re
import string
import unicodedata
from typing import List


def fold_accents(text: str) -> str:
    """Strip diacritics: 'Crédito Imobiliário' -> 'Credito Imobiliario'"""
    decomposed = unicodedata.normalize("NFKD", text)
    return decomposed.encode("ascii", "ignore").decode("ascii")


def normalize_modality_name(name: str) -> str:
    """Lower-case, accent-free, punctuation-stripped form used for keyword matching"""
    return re.sub(r"[^a-zA-Z0-9\s]", "", fold_accents(name)).strip().lower()


def significant_words(name: str) -> List[str]:
    """Words longer than 2 characters of the normalized name, in order, deduplicated"""
    words: List[str] = []
    for word in normalize_modality_name(name).split():
        if len(word) > 2 and word not in words:
            words.append(word)
    return words


def display_name(name: str) -> str:
    """'EMPRÉSTIMO-pessoal  (PF)' -> 'Emprestimo Pessoal Pf'"""
    cleaned = re.sub(r"[^a-zA-Z0-9\s]", " ", fold_accents(name))
    return string.capwords(cleaned.lower())
