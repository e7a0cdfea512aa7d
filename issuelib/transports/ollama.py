"""
Ollama chat transport.
"""

from __future__ import annotations

# local repo modules
from issuelib import analysis_errors
from issuelib.transports import transport_utils


DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_TIMEOUT_SECONDS = 60


class OllamaTransport:
	name = "Ollama"

	def __init__(
		self,
		model: str,
		base_url: str = DEFAULT_BASE_URL,
		timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
	) -> None:
		self.model = model
		self.base_url = base_url.rstrip("/")
		self.timeout_seconds = float(timeout_seconds)

	def _validated_chat_endpoint(self) -> str:
		return transport_utils.build_endpoint(self.base_url, "api/chat", self.name)

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
			"stream": False,
			"options": {
				"temperature": temperature,
				"num_predict": max_output_tokens,
			},
		}
		response = transport_utils.post_json(
			self._validated_chat_endpoint(),
			payload,
			self.name,
			self.timeout_seconds,
		)
		snippet = transport_utils.create_snippet(response.text)
		if response.status_code == 404:
			raise analysis_errors.provider_model(response.status_code, self.model)
		if response.status_code >= 400:
			raise analysis_errors.provider_response(response.status_code, snippet)
		parsed = transport_utils.parse_json_body(response, snippet)
		assistant_message = transport_utils.extract_text(parsed).strip()
		if not assistant_message:
			raise analysis_errors.provider_response(response.status_code, snippet)
		return assistant_message
