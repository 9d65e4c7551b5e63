"""Topic classification of user queries."""

from __future__ import annotations

from . import logger
from .config import DEFAULT_CATEGORY
from .llm import ChatProvider, complete_prompt
from .prompt import build_classification_prompt


class QueryClassifier:
    """Ask the chat model for a single topic label.

    The label is advisory free text: it is not checked against a closed set,
    and callers should treat unknown labels as opaque strings.
    """

    def __init__(self, provider: ChatProvider, model: str, default_label: str = DEFAULT_CATEGORY) -> None:
        self.provider = provider
        self.model = model
        self.default_label = default_label

    def classify(self, query: str, template: str) -> str:
        prompt = build_classification_prompt(template, query)
        label = complete_prompt(self.provider, prompt, self.model)
        if label is None:
            logger.warning("Classifier returned no content, using default label", "classifier.classify")
            return self.default_label
        logger.debug(f"Query classified as '{label}'", "classifier.classify")
        return label
