from functools import lru_cache

from .local_vocabulary import LocalVocabulary
from .provider import VocabularyProvider


@lru_cache(maxsize=1)
def get_default_vocabulary() -> VocabularyProvider:
    return LocalVocabulary()


__all__ = ["VocabularyProvider", "LocalVocabulary", "get_default_vocabulary"]
