"""Test helpers to stub the OpenAI Responses client used by categorize.py.

The stub extracts the quoted description from the user content and returns
``{"category": ...}`` as chosen by a ``decide`` callable, so tests stay
focused on inputs and outputs.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

PREFIX = 'Transaction: "'


def _extract_description(user_content: str) -> str:
    if not user_content.startswith(PREFIX) or not user_content.endswith('"'):
        raise AssertionError("categorize: user content missing quoted description")
    return user_content[len(PREFIX) : -1]


class OpenAIStub:
    """Minimal stub matching ``openai.OpenAI`` shape for ``categorize.py``.

    Parameters
    ----------
    decide:
        Receives the description and returns the raw ``category`` string to
        reply with.
    calls_out:
        A list appended with each call's kwargs so tests can assert on the
        request (model, schema, input).
    raises:
        When set, ``responses.create`` raises this exception instead.
    """

    def __init__(
        self,
        decide: Callable[[str], str] | None = None,
        calls_out: list[dict[str, Any]] | None = None,
        raises: BaseException | None = None,
        output_text: str | None = None,
    ) -> None:
        self._decide = decide or (lambda _d: "uncategorized")
        self._calls = calls_out if calls_out is not None else []
        self._raises = raises
        self._output_text = output_text

        class _Responses:
            def __init__(self, outer: OpenAIStub) -> None:
                self._outer = outer

            def create(self, **kwargs):
                self._outer._calls.append(kwargs)
                if self._outer._raises is not None:
                    raise self._outer._raises

                class _Resp:
                    output_text: str

                resp = _Resp()
                if self._outer._output_text is not None:
                    resp.output_text = self._outer._output_text
                else:
                    description = _extract_description(kwargs["input"])
                    resp.output_text = json.dumps({"category": self._outer._decide(description)})
                return resp

        self.responses = _Responses(self)

    @property
    def calls(self) -> list[dict[str, Any]]:
        return self._calls
