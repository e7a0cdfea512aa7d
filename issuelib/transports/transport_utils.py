"""
Response helpers shared by the HTTP transports.
"""

from __future__ import annotations

# Standard Library
import re
import urllib.parse

# PIP3 modules
import requests

# local repo modules
from issuelib import analysis_errors


SNIPPET_MAX_CHARS = 200


#============================================
def create_snippet(value: str) -> str:
	"""
	Collapse whitespace and cap response text for error messages.
	"""
	cleaned = re.sub(r"\s+", " ", value or "").strip()
	if not cleaned:
		return "<empty response>"
	if len(cleaned) <= SNIPPET_MAX_CHARS:
		return cleaned
	return cleaned[:SNIPPET_MAX_CHARS - 3] + "..."


#============================================
def build_endpoint(base_url: str, path: str, provider_name: str) -> str:
	"""
	Join and validate an HTTP endpoint under base_url.
	"""
	parsed = urllib.parse.urlparse(base_url)
	if parsed.scheme not in {"http", "https"}:
		raise RuntimeError(f"{provider_name} base_url must use http or https: {base_url}")
	if not parsed.netloc:
		raise RuntimeError(f"{provider_name} base_url must include a host: {base_url}")
	return urllib.parse.urljoin(base_url.rstrip("/") + "/", path)


#============================================
def post_json(
	endpoint: str,
	payload: dict,
	provider_name: str,
	timeout_seconds: float,
	headers: dict[str, str] | None = None,
) -> requests.Response:
	"""
	POST a JSON payload; connection failures and timeouts become connection errors.
	"""
	request_headers = {"Content-Type": "application/json"}
	if headers:
		request_headers.update(headers)
	try:
		return requests.post(
			endpoint,
			json=payload,
			headers=request_headers,
			timeout=timeout_seconds,
		)
	except requests.RequestException as error:
		raise analysis_errors.provider_connection(provider_name, str(error)) from error


#============================================
def parse_json_body(response: requests.Response, snippet: str):
	"""
	Decode a response body; malformed JSON is a response error.
	"""
	if not response.text:
		raise analysis_errors.provider_response(response.status_code, snippet)
	try:
		return response.json()
	except ValueError as error:
		raise analysis_errors.provider_response(response.status_code, snippet) from error


#============================================
def extract_text(payload) -> str:
	"""
	Pull generated text out of the common chat response shapes.
	"""
	if not isinstance(payload, dict):
		return ""
	message = payload.get("message")
	if isinstance(message, dict) and isinstance(message.get("content"), str):
		return message["content"]
	for key in ("response", "text"):
		if isinstance(payload.get(key), str):
			return payload[key]
	choices = payload.get("choices")
	if isinstance(choices, list):
		parts = []
		for choice in choices:
			if not isinstance(choice, dict):
				continue
			if isinstance(choice.get("text"), str):
				parts.append(choice["text"])
				continue
			choice_message = choice.get("message")
			if isinstance(choice_message, dict) and isinstance(choice_message.get("content"), str):
				parts.append(choice_message["content"])
		return "".join(parts)
	return ""
