"""
HuggingFace Inference REST client for classification and similarity models.
"""
import logging
from typing import Optional, Dict, Any, List

import requests

from ...config import HUGGINGFACE_BASE_URL, SERVICE_TIMEOUT
from ...errors import ServiceError, TransientServiceError, MalformedResponseError

logger = logging.getLogger("inference_client")

RETRYABLE_STATUS = {408, 429, 500, 502, 503, 504}


class HuggingFaceInferenceClient:
    """REST-based client for hosted HuggingFace inference models."""

    def __init__(self,
                 api_key: str,
                 base_url: str = HUGGINGFACE_BASE_URL,
                 timeout: float = SERVICE_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, model: str, payload: Dict[str, Any]) -> Any:
        url = f"{self.base_url}/{model}"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            resp = self.session.post(url, headers=headers, json=payload, timeout=self.timeout)
        except (requests.Timeout, requests.ConnectionError) as e:
            raise TransientServiceError(f"HuggingFace request to {model} failed: {e}", service=model) from e
        except requests.RequestException as e:
            raise ServiceError(f"HuggingFace request to {model} failed: {e}", service=model) from e

        # 503 is also returned while a cold model is loading
        if resp.status_code in RETRYABLE_STATUS:
            raise TransientServiceError(f"HuggingFace error {resp.status_code}: {resp.text}", service=model)
        if resp.status_code >= 400:
            raise ServiceError(f"HuggingFace error {resp.status_code}: {resp.text}", service=model)

        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"HuggingFace returned non-JSON body for {model}", service=model, raw=resp.text
            ) from e

        logger.debug("HuggingFace %s response: %s", model, repr(data)[:500])
        return data

    def classify(self, text: str, model: str) -> List[Dict[str, Any]]:
        """
        Text classification. Returns [{label, score}] sorted by score descending.
        The API nests results one level per input; that nesting is flattened.
        """
        data = self._post(model, {"inputs": text})

        if isinstance(data, list) and data and isinstance(data[0], list):
            data = data[0]
        if not isinstance(data, list):
            raise MalformedResponseError(f"Unexpected classification payload from {model}", service=model, raw=repr(data))

        labels = []
        for item in data:
            if not isinstance(item, dict) or "label" not in item or "score" not in item:
                raise MalformedResponseError(f"Classification item missing label/score from {model}",
                                             service=model, raw=repr(data))
            labels.append({"label": str(item["label"]), "score": float(item["score"])})

        labels.sort(key=lambda x: x["score"], reverse=True)
        return labels

    def similarity(self, source: str, candidates: List[str], model: str) -> List[float]:
        """Sentence similarity between source and each candidate, in candidate order."""
        data = self._post(model, {"inputs": {"source_sentence": source, "sentences": list(candidates)}})

        if not isinstance(data, list) or len(data) != len(candidates):
            raise MalformedResponseError(f"Unexpected similarity payload from {model}", service=model, raw=repr(data))
        try:
            return [float(score) for score in data]
        except (TypeError, ValueError) as e:
            raise MalformedResponseError(f"Non-numeric similarity from {model}", service=model, raw=repr(data)) from e

    def zero_shot(self, text: str, labels: List[str], model: str) -> Dict[str, List[Any]]:
        """
        Zero-shot classification. Returns {"labels": [...], "scores": [...]}
        ordered descending by score whichever shape the endpoint returns.
        """
        data = self._post(model, {"inputs": text, "parameters": {"candidate_labels": list(labels)}})

        if isinstance(data, dict) and "labels" in data and "scores" in data:
            pairs = list(zip(data["labels"], data["scores"]))
        elif isinstance(data, list) and all(isinstance(x, dict) and "label" in x for x in data):
            pairs = [(x["label"], x.get("score", 0.0)) for x in data]
        else:
            raise MalformedResponseError(f"Unexpected zero-shot payload from {model}", service=model, raw=repr(data))

        if not pairs:
            raise MalformedResponseError(f"Empty zero-shot result from {model}", service=model, raw=repr(data))

        try:
            pairs = sorted(((str(label), float(score)) for label, score in pairs), key=lambda p: p[1], reverse=True)
        except (TypeError, ValueError) as e:
            raise MalformedResponseError(f"Non-numeric zero-shot score from {model}", service=model, raw=repr(data)) from e

        return {"labels": [p[0] for p in pairs], "scores": [p[1] for p in pairs]}
