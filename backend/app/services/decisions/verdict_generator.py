"""
Verdict Generation Collaborator

The LLM-backed generator lives outside this backend. Services depend only
on this interface; implementations raise InferenceError on failure.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

from ...models.decision import DecisionContext, InferenceResult, ModelMeta


class VerdictGenerator(ABC):
    """Produces verdicts and infers context from a company website."""

    @abstractmethod
    def generate_verdict(
        self,
        website_url: str,
        context: DecisionContext,
        timeout: Optional[float] = None,
    ) -> Tuple[Dict[str, Any], ModelMeta]:
        """Return (verdict payload, model metadata)."""

    @abstractmethod
    def infer_context_from_website(
        self,
        website_url: str,
        timeout: Optional[float] = None,
    ) -> Tuple[InferenceResult, Optional[Dict[str, Any]]]:
        """Return (inference result, inference artifacts)."""


def extract_company_name(website_url: str) -> str:
    """
    Company name guessed from a URL.

    "https://www.acme.io/pricing" -> "Acme"
    """
    host = website_url.strip()
    for prefix in ("https://", "http://", "www."):
        if host.startswith(prefix):
            host = host[len(prefix):]

    host = host.split("/", 1)[0].split("?", 1)[0]
    name = host.split(".")[0]
    if name:
        return name[:1].upper() + name[1:]
    return "Unknown"
