"""
Sentence-transformers implementation of the Encoder interface.

This module embeds page text with a local sentence-transformers model.
It is the offline alternative to the Gemini encoder: no API key, smaller
vectors, and the model runs in a worker thread so the event loop keeps
serving the rest of the batch.

Example:
    ```python
    encoder = SentenceEncoder()
    vector = await encoder.encode("Hello world")
    assert len(vector) == encoder.dim
    ```
"""
import asyncio
from typing import List
from sentence_transformers import SentenceTransformer
from sitefocus.config.settings import MODEL_CONFIG
from sitefocus.core.interfaces.encoder import Encoder, TopicLabeller, TopicLabel

class SentenceEncoder(Encoder):
    """
    Local sentence-transformers text encoder.

    Attributes:
        dim: The dimensionality of the output vectors
        _model: The underlying sentence-transformers model
    """

    def __init__(self, session=None, model_name: str = MODEL_CONFIG["name"]):
        """
        Initialize the encoder.

        Args:
            session: Unused; accepted so the class can be built like the remote encoders
            model_name: Name of the sentence-transformers model to use
        """
        self._model = SentenceTransformer(model_name)
        self.dim = self._model.get_sentence_embedding_dimension()

    def encode_sync(self, text: str) -> List[float]:
        return self._model.encode(
            text,
            normalize_embeddings=True,
            show_progress_bar=False
        ).tolist()

    async def encode(self, text: str) -> List[float]:
        return await asyncio.to_thread(self.encode_sync, text)

class StaticTopicLabeller(TopicLabeller):
    """Labeller used when no generative model is configured."""

    def __init__(self, session=None, topic: str = "General"):
        self.topic = topic

    async def label(self, url: str, text: str) -> TopicLabel:
        return TopicLabel(topic=self.topic, summary="")
