"""
Gemini client for advisory text generation.
Minimal REST client with timeout. Fail closed on any transport or payload problem.
"""

import os
import json
import requests
from typing import Any, Dict, Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

DEFAULT_BASE_URL = 'https://generativelanguage.googleapis.com/v1beta'
DEFAULT_MODEL = 'gemini-2.5-flash'
DEFAULT_TIMEOUT_S = 60


class GeminiError(Exception):
    """Base exception for Gemini client errors."""
    pass


class GeminiTimeoutError(GeminiError):
    """Raised when a Gemini request times out."""
    pass


def gemini_request(
    prompt: str,
    api_key: str,
    model: Optional[str] = None,
    timeout: Optional[int] = None
) -> str:
    """
    Make a generateContent request to Gemini.

    Args:
        prompt: User prompt for the model
        api_key: Gemini API key
        model: Model name (defaults to env GEMINI_MODEL)
        timeout: Request timeout in seconds (defaults to env GEMINI_TIMEOUT_S)

    Returns:
        Generated text response

    Raises:
        GeminiError: If request fails or the response carries no text
        GeminiTimeoutError: If request times out
    """
    if not api_key:
        raise GeminiError("API key is required")

    base_url = os.getenv('GEMINI_BASE_URL', DEFAULT_BASE_URL)
    model = model or os.getenv('GEMINI_MODEL', DEFAULT_MODEL)
    timeout = timeout or int(os.getenv('GEMINI_TIMEOUT_S', str(DEFAULT_TIMEOUT_S)))

    url = f"{base_url.rstrip('/')}/models/{model}:generateContent"
    payload = {
        'contents': [
            {'role': 'user', 'parts': [{'text': prompt}]}
        ]
    }

    try:
        response = requests.post(
            url,
            json=payload,
            timeout=timeout,
            headers={
                'Content-Type': 'application/json',
                'x-goog-api-key': api_key
            }
        )

        if response.status_code != 200:
            raise GeminiError(f"HTTP {response.status_code}: {response.text}")

        try:
            response_data = response.json()
        except json.JSONDecodeError:
            raise GeminiError(f"Invalid JSON response: {response.text}")

        generated_text = extract_text(response_data)

        if not generated_text or generated_text.strip() == '':
            raise GeminiError("Empty response from model")

        return generated_text.strip()

    except requests.exceptions.Timeout:
        raise GeminiTimeoutError(f"Request timed out after {timeout}s")

    except requests.exceptions.RequestException as e:
        raise GeminiError(f"Request failed: {e}")


def extract_text(response_data: Dict[str, Any]) -> str:
    """
    Join the text parts of the first candidate.

    Args:
        response_data: Decoded generateContent response

    Returns:
        Concatenated text (empty when the candidate has no text parts)

    Raises:
        GeminiError: If the response has no candidates
    """
    candidates = response_data.get('candidates') or []
    if not candidates:
        raise GeminiError(f"Missing 'candidates' field in: {response_data}")

    parts = candidates[0].get('content', {}).get('parts', [])
    return ''.join(part.get('text', '') for part in parts)
