"""Read access to the word catalog."""
from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from glosa.db.models.vocabulary import Word
from glosa.db.session import unit_of_work
from glosa.schemas.vocabulary import WordCreate
from glosa.utils.exceptions import NotFoundError
from glosa.utils.validation import validate_request


def normalize_terms(terms: Iterable[str]) -> list[str]:
    """Strip, drop blanks and de-duplicate while keeping the caller's order."""

    seen: set[str] = set()
    result: list[str] = []
    for term in terms:
        value = (term or "").strip()
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


class VocabularyService:
    """Provide lookups over the Swedish/English catalog."""

    def __init__(self, db: Session):
        self.db = db

    def get_word(self, word_id: int) -> Word:
        """Retrieve a single word by identifier."""

        word = self.db.get(Word, word_id)
        if not word:
            raise NotFoundError("Word not found", details={"word_id": word_id})
        return word

    def find_by_swedish(self, terms: Iterable[str]) -> list[Word]:
        """Return every catalog entry whose Swedish form is in ``terms``.

        Homographs are separate catalog rows, so one term may yield several
        words. Unknown terms are ignored.
        """

        values = normalize_terms(terms)
        if not values:
            return []
        stmt = select(Word).where(Word.swedish.in_(values)).order_by(Word.id)
        return list(self.db.scalars(stmt))

    def add_word(self, **data) -> Word:
        """Validate and insert a word pair."""

        payload = validate_request(WordCreate, **data)
        word = Word(**payload.model_dump())
        with unit_of_work(self.db):
            self.db.add(word)
            self.db.flush([word])
        return word

    def count_by_type(self) -> dict[str, int]:
        """Return catalog size per word type."""

        rows = self.db.execute(
            select(Word.type, func.count(Word.id)).group_by(Word.type)
        ).all()
        return {word_type: int(count or 0) for word_type, count in rows}
