"""Choosing the name each imported sequence will carry in the matrix."""

import logging
from dataclasses import dataclass
from enum import Enum

from .models import INITIAL_NAME_PROPERTY, Sequence, SequenceList
from .queries import NAME_PREFERENCE, InteractiveQueries

logger = logging.getLogger(__name__)

NO_SEQUENCE_NAME = "(No sequence name identified)"
NO_SPECIES_NAME = "(No species name identified)"


class NamePreference(Enum):
    """Which of a sequence's two names to use when they differ."""
    UNSET = "unset"
    FULL_NAME = "full"
    SPECIES_NAME = "species"


@dataclass
class ImportSession:
    """State that outlives single loads for the rest of a session."""
    name_preference: NamePreference = NamePreference.UNSET

    @classmethod
    def from_config(cls, import_config) -> 'ImportSession':
        preference = {
            'full': NamePreference.FULL_NAME,
            'species': NamePreference.SPECIES_NAME,
        }.get(import_config.name_preference, NamePreference.UNSET)
        return cls(name_preference=preference)

    def reset_name_preference(self) -> None:
        self.name_preference = NamePreference.UNSET


class NamePreferenceResolver:
    """Assigns canonical names, asking at most once per session which name to use."""

    CHOICES = ["Use sequence names", "Use species names"]

    def __init__(self, session: ImportSession, queries: InteractiveQueries):
        self.session = session
        self.queries = queries

    def _ask(self, full_name: str, species_name: str) -> NamePreference:
        message = (
            "Would you like to use the full sequence name? Sequence names from this "
            f"file look like this:\n\t{full_name or NO_SEQUENCE_NAME}\n\n"
            "I can also try to guess the species name, which looks like this:\n\t"
            f"{species_name or NO_SPECIES_NAME}\n\n"
            "Note that the species name might not be guessable for every sequence "
            "in this dataset."
        )
        choice = self.queries.choose(
            NAME_PREFERENCE, "Species names or sequence names?", message, self.CHOICES
        )
        # Dismissing the prompt keeps the full names
        if choice == 1:
            return NamePreference.SPECIES_NAME
        return NamePreference.FULL_NAME

    def resolve(self, sequence: Sequence) -> str:
        """Return the canonical name of `sequence`, recording it as a property."""
        existing = sequence.get_property(INITIAL_NAME_PROPERTY)
        if existing is not None:
            return existing

        full_name = sequence.full_name
        species_name = sequence.species_name

        if full_name == species_name:
            name = full_name
        else:
            if self.session.name_preference is NamePreference.UNSET:
                self.session.name_preference = self._ask(full_name, species_name)
                logger.info(f"Name preference set to {self.session.name_preference.value}")

            if self.session.name_preference is NamePreference.SPECIES_NAME:
                name = species_name
            else:
                name = full_name

        sequence.set_property(INITIAL_NAME_PROPERTY, name)
        return name

    def resolve_all(self, sequences: SequenceList) -> None:
        if len(sequences) == 0:
            return
        for sequence in sequences:
            self.resolve(sequence)
