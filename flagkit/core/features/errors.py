"""
Feature flag errors.

Absence of a feature or override is not an error for the evaluator;
these exceptions cover rejected writes and storage failures.
"""


class FeatureFlagError(Exception):
    """Base class for feature flag errors."""


class ValidationError(FeatureFlagError):
    """Write rejected before reaching storage."""

    def __init__(self, messages: list[str]):
        self.messages = list(messages)
        super().__init__(self.sentence)

    @property
    def sentence(self) -> str:
        """Messages joined as a sentence ("a, b, and c")."""
        if len(self.messages) <= 2:
            return " and ".join(self.messages)
        return ", ".join(self.messages[:-1]) + f", and {self.messages[-1]}"


class ConflictError(FeatureFlagError):
    """Write would violate a uniqueness constraint."""


class FeatureNotFoundError(FeatureFlagError):
    """Administrative operation referenced a feature that does not exist."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Feature '{key}' not found")


class StoreUnavailableError(FeatureFlagError):
    """The underlying store could not be reached or failed mid-operation."""
