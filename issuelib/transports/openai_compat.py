"""
OpenAI-compatible chat completions transport.
"""

from __future__ import annotations

# Standard Library
import os

# local repo modules
from issuelib import analysis_errors
from issuelib.transports import transport_utils


DEFAULT_TIMEOUT_SECONDS = 60


class OpenAICompatTransport:
	name = "OpenAI-compatible API"

	def __init__(
		self,
		model: str,
		base_url: str,
		api_key_env: str = "",
		timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
	) -> None:
		self.model = model
		self.base_url = base_url.rstrip("/")
		self.api_key_env = api_key_env
		self.timeout_seconds = float(timeout_seconds)

	def _headers(self) -> dict[str, str]:
		if not self.api_key_env:
			return {}
		token = os.getenv(self.api_key_env, "").strip()
		if not token:
			return {}
		return {"Authorization": f"Bearer {token}"}

	def generate(
		self,
		messages: list[dict[str, str]],
		*,
		temperature: float,
		max_output_tokens: int,
	) -> str:
		payload: dict[str, object] = {
			"model": self.model,
			"messages": messages,
			"temperature": temperature,
			"max_tokens": max_output_tokens,
		}
		endpoint = transport_utils.build_endpoint(self.base_url, "chat/completions", self.name)
		response = transport_utils.post_json(
			endpoint,
			payload,
			self.name,
			self.timeout_seconds,
			headers=self._headers(),
		)
		snippet = transport_utils.create_snippet(response.text)
		if response.status_code == 404:
			raise analysis_errors.provider_model(response.status_code, self.model)
		if response.status_code >= 400:
			raise analysis_errors.provider_response(response.status_code, snippet)
		parsed = transport_utils.parse_json_body(response, snippet)
		content = transport_utils.extract_text(parsed).strip()
		if not content:
			raise analysis_errors.provider_response(response.status_code, snippet)
		return content
