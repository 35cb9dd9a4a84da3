import json
from typing import Any, Dict, Optional

import httpx

from utils.logger import logger


def _error_message(response: httpx.Response) -> str:
    try:
        error_details = response.json()
        if isinstance(error_details, dict):
            error = error_details.get("error", {})
            if isinstance(error, dict):
                return error.get("message", response.text)
            return str(error)
        return response.text
    except (json.JSONDecodeError, ValueError):
        return response.text


class HTTPProvider:
    """
    Shared HTTP plumbing for the backends.

    A fresh `httpx.AsyncClient` is opened for each call so that the
    timeout, and any credential in the headers, live only as long as the call.
    """

    display_name = "backend"
    api_key_env: Optional[str] = None

    async def _post(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Dict[str, str],
        timeout_sec: float,
    ) -> Optional[Any]:
        """
        Sends a JSON POST request and decodes the JSON response.

        Returns:
            The decoded body, or None on timeouts, network errors,
            non-success statuses and non-JSON bodies.
        """
        try:
            async with httpx.AsyncClient(timeout=timeout_sec) as client:
                response = await client.post(url, json=payload, headers=headers)
                response.raise_for_status()
                return response.json()
        except httpx.TimeoutException as e:
            logger.warning(f"Request to {self.display_name} timed out after {timeout_sec:g}s: {e}")
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"{self.display_name} API error ({e.response.status_code}): {_error_message(e.response)}"
            )
        except httpx.RequestError as e:
            logger.warning(f"An unexpected network error occurred with {self.display_name}: {e}")
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"{self.display_name} returned a body that is not JSON: {e}")
        return None
