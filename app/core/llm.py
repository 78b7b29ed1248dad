"""
Model API Client
Handles embedding and chat-completion calls against an OpenAI-compatible API
"""
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

import httpx

from app.core.config import LLMConfig
from app.core.errors import PermanentDependencyError, TransientDependencyError

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are an analytics assistant. Answer questions about website analytics "
    "based on the provided event data. Be concise and cite specific data points."
)

_TRANSIENT_STATUS = {408, 409, 425, 429, 500, 502, 503, 504}


class ModelClient:
    """Client for the embedding and generation models"""

    def __init__(self, config: Optional[LLMConfig] = None, http_client: Optional[httpx.Client] = None):
        self.config = config or LLMConfig()
        self._http = http_client or httpx.Client(
            base_url=self.config.BASE_URL,
            timeout=httpx.Timeout(self.config.TIMEOUT),
        )

    @property
    def dimensions(self) -> int:
        return self.config.EMBEDDING_DIMENSIONS

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.API_KEY.get_secret_value()}",
            "Content-Type": "application/json",
        }

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST with bounded retries on transient failures"""
        attempts = self.config.MAX_RETRIES + 1
        last_error: Optional[Exception] = None
        for attempt in range(attempts):
            try:
                response = self._http.post(path, headers=self._headers(), json=payload)
            except httpx.TimeoutException as e:
                last_error = TransientDependencyError(
                    "Model API timed out", details={"path": path}
                )
                logger.warning(f"Model call {path} attempt {attempt + 1} timed out: {e}")
            except httpx.TransportError as e:
                last_error = TransientDependencyError(
                    "Model API unreachable", details={"path": path}
                )
                logger.warning(f"Model call {path} attempt {attempt + 1} failed: {e}")
            else:
                if response.status_code in _TRANSIENT_STATUS:
                    last_error = TransientDependencyError(
                        "Model API temporarily unavailable",
                        details={"path": path, "status": response.status_code},
                    )
                    logger.warning(
                        f"Model call {path} attempt {attempt + 1} returned {response.status_code}"
                    )
                elif response.status_code >= 400:
                    raise PermanentDependencyError(
                        "Model API rejected the request",
                        details={"path": path, "status": response.status_code},
                    )
                else:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise PermanentDependencyError(
                            "Model API returned malformed JSON", details={"path": path}
                        ) from e

            if attempt < attempts - 1:
                time.sleep(0.2 * (attempt + 1))

        raise last_error

    def embed(self, text: str) -> List[float]:
        """Embed one text into a vector of ``dimensions`` floats"""
        if not isinstance(text, str) or not text.strip():
            raise PermanentDependencyError("Cannot embed empty text")

        data = self._post("/embeddings", {
            "model": self.config.EMBEDDING_MODEL,
            "input": text,
        })
        try:
            vector = [float(x) for x in data["data"][0]["embedding"]]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise PermanentDependencyError("Unexpected embedding payload") from e

        if len(vector) != self.dimensions:
            raise PermanentDependencyError(
                "Embedding has wrong dimensionality",
                details={"expected": self.dimensions, "got": len(vector)},
            )
        return vector

    def generate(self, question: str, context: Sequence[str]) -> str:
        """Answer ``question`` grounded in the ``context`` strings"""
        context_text = "\n\n".join(context)
        data = self._post("/chat/completions", {
            "model": self.config.CHAT_MODEL,
            "messages": [
                {"role": "system", "content": self.config.SYSTEM_PROMPT or DEFAULT_SYSTEM_PROMPT},
                {"role": "user", "content": f"Context:\n{context_text}\n\nQuestion: {question}"},
            ],
        })
        try:
            content = data["choices"][0]["message"].get("content")
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise PermanentDependencyError("Unexpected completion payload") from e
        return content or "I couldn't generate a response."

    def close(self):
        self._http.close()
