# SPDX-FileCopyrightText: 2025 Mark Liffiton <liffiton@gmail.com>
#
# SPDX-License-Identifier: AGPL-3.0-only

import logging
from typing import Any

from .config import Settings, init_logging, load_settings
from .history import AttemptHistory
from .kvstore import KeyValueStore, MemoryStore, SqliteStore
from .llm import LLM, get_llm
from .mistakes import DocumentStore, MistakeLog
from .session import Debouncer, WritingSession

logger = logging.getLogger(__name__)


class Workspace:
    ''' Everything a learner's session needs, wired together from Settings. '''

    def __init__(self, settings: Settings, store: KeyValueStore):
        self.settings = settings
        self.store = store
        self.mistakes = MistakeLog(store)
        self.document = DocumentStore(store)
        self.attempts = AttemptHistory(store, max_attempts=settings.max_attempts)
        self._llm: LLM | None = None

    @property
    def llm(self) -> LLM:
        """ The configured model, built on first use.
        Raises MissingEnvVarError if no API key is configured.
        """
        if self._llm is None:
            self._llm = get_llm(self.settings)
        return self._llm

    def writing_session(self) -> WritingSession:
        return WritingSession.with_llm(self.llm, self.mistakes, self.document)

    def debouncer(self) -> Debouncer:
        return Debouncer(self.settings.debounce_seconds)


def create_workspace(test_config: dict[str, Any] | None = None, store: KeyValueStore | None = None) -> Workspace:
    ''' Workspace factory.  Load settings, configure logging, and open the store.

    Args:
      test_config: Settings overrides (by field name), applied after the environment.
      store: Use this store instead of the one named by the settings.
    '''
    settings = load_settings(test_config)
    init_logging(testing=settings.testing)

    if store is None:
        if settings.database == ":memory:":
            store = MemoryStore()
        else:
            store = SqliteStore(settings.database, debug=settings.testing)
        logger.info("Using %s for storage (database=%s).", type(store).__name__, settings.database)

    return Workspace(settings, store)
