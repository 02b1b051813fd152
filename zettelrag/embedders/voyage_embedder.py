import numpy as np
import voyageai


class VoyageEmbedder:
    def __init__(self, api_key: str, model: str = "voyage-3", input_type: str = "document"):
        self.client = voyageai.Client(api_key=api_key)
        self.model = model
        self.input_type = input_type

    def embed(self, text: str) -> np.ndarray:
        result = self.client.embed(texts=[text], model=self.model, input_type=self.input_type)
        return np.array(result.embeddings[0], dtype=np.float32)
