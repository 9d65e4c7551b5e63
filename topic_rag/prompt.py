"""Prompt templates and placeholder substitution for the LLM stage."""

from __future__ import annotations

import re
from textwrap import dedent

DEFAULT_CLASSIFICATION_PROMPT = dedent(
    """
    I am providing you a query, based on the query your work is detect whether that is related to marks, events or general information.

    Query: {query}

    Please type marks, events or general based on the query.

    Please type only one of the three words and dont type any other text.

    If you are not sure, you can type general. Write your lowercase only, never put anything in uppercase
    """
).strip()

DEFAULT_RESPONSE_PROMPT = (
    'You are a helpful assistant. Based on this context: "{context}", please answer '
    'this question: "{query}". If you cannot find a relevant answer in the context, '
    "please say so."
)

_PLACEHOLDER_PATTERN = re.compile(r"\{(query|context)\}")


def fill_template(template: str, *, query: str, context: str | None = None) -> str:
    """Substitute the named placeholders in ``template`` in a single pass.

    Only ``{query}`` and ``{context}`` are touched, so templates may contain
    other literal braces. Substituted values are never re-scanned, which keeps
    a query containing ``{context}`` literal.
    """

    values = {"query": query, "context": context}

    def _replace(match: re.Match[str]) -> str:
        value = values[match.group(1)]
        return match.group(0) if value is None else value

    return _PLACEHOLDER_PATTERN.sub(_replace, template)


def build_classification_prompt(template: str, query: str) -> str:
    return fill_template(template, query=query)


def build_response_prompt(template: str, query: str, context: str) -> str:
    return fill_template(template, query=query, context=context)
