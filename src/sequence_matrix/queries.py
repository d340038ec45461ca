"""Blocking questions the import pipeline asks the user.

The pipeline only sees the :class:`InteractiveQueries` protocol; consoles,
dialogs and scripted answers all plug in behind it.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional, Protocol, Union

from .preferences import PreferenceStore

logger = logging.getLogger(__name__)

# Question keys
SPLIT_SETS = "split_sets"
RECODE_GAPS = "recode_gaps"
NAME_PREFERENCE = "name_preference"
EXPORT_CANCELLED = "export_cancelled"


class QueryAnswer(Enum):
    """Answers to yes/no style questions."""
    YES = "yes"
    NO = "no"
    CANCEL = "cancel"
    YES_TO_ALL = "yes_to_all"
    NO_TO_ALL = "no_to_all"

    @property
    def is_yes(self) -> bool:
        return self in (QueryAnswer.YES, QueryAnswer.YES_TO_ALL)

    @property
    def applies_to_all(self) -> bool:
        return self in (QueryAnswer.YES_TO_ALL, QueryAnswer.NO_TO_ALL)


class InteractiveQueries(Protocol):
    """Modal prompts; each call blocks until the user answers."""

    def ask_yes_no(self, key: str, title: str, message: str,
                   allow_to_all: bool = False) -> QueryAnswer:
        ...

    def ask_yes_no_cancel(self, key: str, title: str, message: str) -> QueryAnswer:
        ...

    def choose(self, key: str, title: str, message: str,
               choices: List[str]) -> Optional[int]:
        """Index of the chosen entry, or None if the prompt was dismissed."""
        ...

    def notify(self, title: str, message: str) -> None:
        ...


class RememberingQueries:
    """Adds "yes to all" / "no to all" memory on top of another query provider.

    A "to all" answer is reused for every later question with the same key
    for the rest of the session. With a preference store it also outlives
    the session.
    """

    PREFERENCE_PREFIX = "remembered_answer."

    def __init__(self, inner: InteractiveQueries,
                 preferences: Optional[PreferenceStore] = None):
        self.inner = inner
        self.preferences = preferences
        self._remembered: Dict[str, QueryAnswer] = {}

    def remembered(self, key: str) -> Optional[QueryAnswer]:
        if key in self._remembered:
            return self._remembered[key]
        if self.preferences is not None:
            stored = self.preferences.get(self.PREFERENCE_PREFIX + key, "")
            if stored:
                try:
                    answer = QueryAnswer(stored)
                except ValueError:
                    logger.warning(f"Ignoring unknown remembered answer {stored!r} for {key}")
                    return None
                self._remembered[key] = answer
                return answer
        return None

    def forget(self, key: Optional[str] = None) -> None:
        """Forget one remembered answer, or all of them."""
        keys = [key] if key is not None else list(self._remembered)
        for k in keys:
            self._remembered.pop(k, None)
            if self.preferences is not None:
                self.preferences.set(self.PREFERENCE_PREFIX + k, "")

    def ask_yes_no(self, key: str, title: str, message: str,
                   allow_to_all: bool = False) -> QueryAnswer:
        if allow_to_all:
            answer = self.remembered(key)
            if answer is not None:
                logger.debug(f"Reusing remembered answer for {key}: {answer.value}")
                return answer

        answer = self.inner.ask_yes_no(key, title, message, allow_to_all=allow_to_all)

        if allow_to_all and answer.applies_to_all:
            self._remembered[key] = answer
            if self.preferences is not None:
                self.preferences.set(self.PREFERENCE_PREFIX + key, answer.value)
        return answer

    def ask_yes_no_cancel(self, key: str, title: str, message: str) -> QueryAnswer:
        return self.inner.ask_yes_no_cancel(key, title, message)

    def choose(self, key: str, title: str, message: str,
               choices: List[str]) -> Optional[int]:
        return self.inner.choose(key, title, message, choices)

    def notify(self, title: str, message: str) -> None:
        self.inner.notify(title, message)


class ScriptedQueries:
    """Answers questions from a fixed table, for batch runs and tests.

    Questions without a scripted answer go to `fallback`; with no fallback
    yes/no questions are answered NO and choices pick the first entry.
    """

    def __init__(self, answers: Optional[Dict[str, Union[QueryAnswer, int]]] = None,
                 fallback: Optional[InteractiveQueries] = None):
        self.answers: Dict[str, Union[QueryAnswer, int]] = dict(answers or {})
        self.fallback = fallback
        self.asked: List[str] = []
        self.notices: List[tuple] = []

    @classmethod
    def from_config(cls, import_config,
                    fallback: Optional[InteractiveQueries] = None) -> 'ScriptedQueries':
        """Turn "always"/"never" import policies into fixed answers."""
        policies = {
            'always': QueryAnswer.YES_TO_ALL,
            'never': QueryAnswer.NO_TO_ALL,
        }
        answers: Dict[str, Union[QueryAnswer, int]] = {}
        for key, policy in ((SPLIT_SETS, import_config.split_sets),
                            (RECODE_GAPS, import_config.recode_gaps)):
            if policy in policies:
                answers[key] = policies[policy]
        return cls(answers, fallback=fallback)

    def ask_yes_no(self, key: str, title: str, message: str,
                   allow_to_all: bool = False) -> QueryAnswer:
        self.asked.append(key)
        if key in self.answers:
            return self.answers[key]
        if self.fallback is not None:
            return self.fallback.ask_yes_no(key, title, message, allow_to_all=allow_to_all)
        return QueryAnswer.NO

    def ask_yes_no_cancel(self, key: str, title: str, message: str) -> QueryAnswer:
        self.asked.append(key)
        if key in self.answers:
            return self.answers[key]
        if self.fallback is not None:
            return self.fallback.ask_yes_no_cancel(key, title, message)
        return QueryAnswer.CANCEL

    def choose(self, key: str, title: str, message: str,
               choices: List[str]) -> Optional[int]:
        self.asked.append(key)
        if key in self.answers:
            return self.answers[key]
        if self.fallback is not None:
            return self.fallback.choose(key, title, message, choices)
        return 0 if choices else None

    def notify(self, title: str, message: str) -> None:
        self.notices.append((title, message))
        if self.fallback is not None:
            self.fallback.notify(title, message)
        else:
            logger.info(f"{title}: {message}")
