"""Description-based category assignment.

Public API:
    - :class:`Categorizer` (``categorize(description) -> category_id``)
    - :class:`ExternalCategorizer` and :class:`ExternalCategorizerConfig`

The cascade is keyword match, then fuzzy match, then the optional external
categorizer, then ``uncategorized``. ``categorize`` never raises and only
returns ids present in the catalog.

No side effects occur at import time (no client creation, no environment
reads).
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from typing import Any

from openai import OpenAI
from openai.types.responses import ResponseTextConfigParam
from rapidfuzz import fuzz, process

from . import prompting
from .categories import UNCATEGORIZED, CategoryCatalog, load_catalog
from .logging_setup import get_logger
from .models import CategoryReply
from .text import normalize, significant_words

_logger = get_logger("household_ledger.categorize")

API_KEY_ENV = "OPENAI_API_KEY"
MODEL_ENV = "HOUSEHOLD_LEDGER_OPENAI_MODEL"
TIMEOUT_ENV = "HOUSEHOLD_LEDGER_OPENAI_TIMEOUT"
DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TIMEOUT_SEC = 10.0

# Normalized distance (1 - similarity) must stay below this to accept a fuzzy hit.
FUZZY_MAX_DISTANCE = 0.5


# ---- External fallback -------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ExternalCategorizerConfig:
    api_key: str
    model: str = DEFAULT_MODEL
    timeout: float = DEFAULT_TIMEOUT_SEC

    @classmethod
    def from_env(cls) -> ExternalCategorizerConfig | None:
        """Return a config when ``OPENAI_API_KEY`` is set, else ``None``.

        Raises
        ------
        ValueError
            If ``HOUSEHOLD_LEDGER_OPENAI_TIMEOUT`` is set but not a positive number.
        """

        key = (os.getenv(API_KEY_ENV) or "").strip()
        if not key:
            return None
        model = (os.getenv(MODEL_ENV) or "").strip() or DEFAULT_MODEL
        raw_timeout = (os.getenv(TIMEOUT_ENV) or "").strip()
        timeout = DEFAULT_TIMEOUT_SEC
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError as e:
                raise ValueError(f"{TIMEOUT_ENV} must be a number, got {raw_timeout!r}") from e
            if timeout <= 0:
                raise ValueError(f"{TIMEOUT_ENV} must be positive, got {raw_timeout!r}")
        return cls(api_key=key, model=model, timeout=timeout)


class ExternalCategorizer:
    """Single-shot classification through the OpenAI Responses API.

    The request carries the closed list of category ids and a strict JSON
    schema; the SDK is built with a bounded timeout and no retries. Transport
    errors, timeouts and replies outside the allowed ids all mean "no
    answer" (``None``).
    """

    def __init__(
        self,
        config: ExternalCategorizerConfig,
        catalog: CategoryCatalog,
        *,
        client: Any | None = None,
    ) -> None:
        self._config = config
        self._categories = catalog.categorizable()
        self._allowed = frozenset(c.id for c in self._categories)
        self._instructions = prompting.build_system_instructions(self._categories)
        self._text_cfg: ResponseTextConfigParam = {
            "format": prompting.build_response_format([c.id for c in self._categories])
        }
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = OpenAI(
                api_key=self._config.api_key,
                timeout=self._config.timeout,
                max_retries=0,
            )
        return self._client

    def suggest(self, description: str) -> str | None:
        t0 = time.perf_counter()
        try:
            resp = self._get_client().responses.create(
                model=self._config.model,
                instructions=self._instructions,
                input=prompting.build_user_content(description),
                text=self._text_cfg,
            )
            text = getattr(resp, "output_text", None)
            if not text or not isinstance(text, str):
                raise ValueError("Unexpected Responses API shape; no text output")
            reply = CategoryReply.model_validate_json(text)
        except Exception as e:  # noqa: BLE001 - any failure degrades to "no answer"
            _logger.warning(
                "external_categorize:failed latency_ms=%.2f error=%s",
                (time.perf_counter() - t0) * 1000.0,
                e.__class__.__name__,
            )
            return None

        category = reply.category.lower()
        if category != UNCATEGORIZED and category not in self._allowed:
            _logger.warning("external_categorize:unknown_id category=%r", reply.category)
            return None
        _logger.debug(
            "external_categorize:done category=%s latency_ms=%.2f",
            category,
            (time.perf_counter() - t0) * 1000.0,
        )
        return category


# ---- Cascade -----------------------------------------------------------------


class Categorizer:
    """Keyword → fuzzy → external → ``uncategorized``."""

    def __init__(
        self,
        catalog: CategoryCatalog,
        external: ExternalCategorizer | None = None,
    ) -> None:
        self.catalog = catalog
        self.external = external
        categories = catalog.categorizable()

        # (category_id, [significant words of one keyword phrase]) in catalog order.
        self._keyword_index: list[tuple[str, list[str]]] = []
        for c in categories:
            for phrase in c.keywords:
                words = significant_words(phrase)
                if words:
                    self._keyword_index.append((c.id, words))

        # One fuzzy entry per category name and per keyword phrase.
        self._fuzzy_choices: list[str] = []
        self._fuzzy_ids: list[str] = []
        for c in categories:
            for text in (c.name, *c.keywords):
                entry = " ".join(significant_words(text))
                if entry:
                    self._fuzzy_choices.append(entry)
                    self._fuzzy_ids.append(c.id)

    @classmethod
    def from_env(cls, catalog: CategoryCatalog | None = None) -> Categorizer:
        """Build a categorizer, enabling the external stage when configured."""

        catalog = catalog or load_catalog()
        config = ExternalCategorizerConfig.from_env()
        external = ExternalCategorizer(config, catalog) if config is not None else None
        return cls(catalog, external)

    def keyword_match(self, description: str) -> str | None:
        norm = normalize(description)
        if not norm:
            return None
        for category_id, words in self._keyword_index:
            if all(w in norm for w in words):
                return category_id
        return None

    def fuzzy_match(self, description: str) -> str | None:
        query = " ".join(significant_words(description))
        if not query or not self._fuzzy_choices:
            return None
        best = process.extractOne(
            query,
            self._fuzzy_choices,
            scorer=fuzz.token_set_ratio,
            processor=None,
        )
        if best is None:
            return None
        _choice, score, index = best
        if 1.0 - score / 100.0 < FUZZY_MAX_DISTANCE:
            return self._fuzzy_ids[index]
        return None

    def categorize(self, description: str | None) -> str:
        description = description or ""
        found = self.keyword_match(description)
        if found is not None:
            _logger.debug("categorize stage=keyword category=%s", found)
            return found
        found = self.fuzzy_match(description)
        if found is not None:
            _logger.debug("categorize stage=fuzzy category=%s", found)
            return found
        if self.external is not None and description.strip():
            found = self.external.suggest(normalize(description))
            if found is not None:
                return found
        return UNCATEGORIZED


__all__ = [
    "Categorizer",
    "ExternalCategorizer",
    "ExternalCategorizerConfig",
    "FUZZY_MAX_DISTANCE",
]
