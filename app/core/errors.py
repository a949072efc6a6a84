"""
Application errors.

The knowledge store and the LLM providers raise ServiceUnavailableError when
they are misconfigured or unreachable. The agent never lets it reach the
client: retrieval turns it into the "no information" result, streaming turns
it into the fallback answer.
"""


class ServiceUnavailableError(Exception):
    """A collaborator (`dependency`: "milvus", "openai", "huggingface") cannot be used."""

    def __init__(self, dependency: str, message: str) -> None:
        self.dependency = dependency
        self.message = message
        super().__init__(f"{dependency}: {message}")
