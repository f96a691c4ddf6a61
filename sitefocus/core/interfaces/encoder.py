"""
Encoder and topic labeller interfaces for the sitefocus project.

An encoder turns page text into a fixed-dimension vector; a topic
labeller gives the page a short topic name and a one-sentence summary.
Both are remote or model-backed and therefore asynchronous.

Example:
    ```python
    class OpenAIEncoder(Encoder):
        async def encode(self, text: str) -> List[float]:
            response = await self.client.embeddings.create(
                input=text,
                model="text-embedding-3-small"
            )
            return response.data[0].embedding
    ```
"""
from typing import Protocol, List, NamedTuple

class TopicLabel(NamedTuple):
    """Topic name and short summary for a single page."""
    topic: str = "General"
    summary: str = ""

class Encoder(Protocol):
    """
    Interface for encoding text into vectors.

    Implementations raise on failure; the page analyzer turns the
    exception into a skipped URL.
    """

    async def encode(self, text: str) -> List[float]:
        """
        Encode a text into a vector.

        Args:
            text: The page text to encode

        Returns:
            The embedding as a list of floats
        """
        ...

class TopicLabeller(Protocol):
    """Interface for labelling a page with a short topic."""

    async def label(self, url: str, text: str) -> TopicLabel:
        """
        Return the topic and summary for a page.

        Implementations should not raise for unparseable model output;
        they fall back to ``TopicLabel()`` instead.
        """
        ...
