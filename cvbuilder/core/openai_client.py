from openai import OpenAI

from ..core.config import settings


def get_openai_client(api_key: str) -> OpenAI:
    """
    Factory function to create an OpenAI client for one user-supplied key.
    Centralized so services never construct clients directly.
    """
    return OpenAI(
        api_key=api_key,
        timeout=settings.openai_timeout_s,
        max_retries=0,
    )
