"""Closed set of failure kinds raised by planning and generation."""

# Standard Library
import enum


#============================================
class ErrorKind(enum.Enum):
	PROMPT_TOO_LONG = "PROMPT_TOO_LONG"
	CONTEXT_BUDGET_EXCEEDED = "CONTEXT_BUDGET_EXCEEDED"
	PROVIDER_CONNECTION = "llm.connection_error"
	PROVIDER_RESPONSE = "llm.response_error"
	PROVIDER_MODEL = "llm.model_error"


PROVIDER_KINDS = (
	ErrorKind.PROVIDER_CONNECTION,
	ErrorKind.PROVIDER_RESPONSE,
	ErrorKind.PROVIDER_MODEL,
)


#============================================
class AnalysisError(RuntimeError):
	"""
	Raised for every classified analysis failure.

	The kind decides which optional fields are set: max_chars and
	actual_chars for PROMPT_TOO_LONG, status and snippet for
	PROVIDER_RESPONSE, status and model for PROVIDER_MODEL.
	"""

	def __init__(
		self,
		kind: ErrorKind,
		message: str,
		max_chars: int | None = None,
		actual_chars: int | None = None,
		status: int | None = None,
		snippet: str | None = None,
		model: str | None = None,
	):
		super().__init__(message)
		self.kind = kind
		self.max_chars = max_chars
		self.actual_chars = actual_chars
		self.status = status
		self.snippet = snippet
		self.model = model

	@property
	def code(self) -> str:
		return self.kind.value

	@property
	def is_provider_failure(self) -> bool:
		return self.kind in PROVIDER_KINDS


#============================================
def prompt_too_long(max_chars: int, actual_chars: int) -> AnalysisError:
	return AnalysisError(
		ErrorKind.PROMPT_TOO_LONG,
		f"Prompt length {actual_chars} exceeds the allowed {max_chars} characters",
		max_chars=max_chars,
		actual_chars=actual_chars,
	)


#============================================
def context_budget_exceeded(hint: str) -> AnalysisError:
	return AnalysisError(ErrorKind.CONTEXT_BUDGET_EXCEEDED, hint)


#============================================
def provider_connection(provider_name: str, detail: str = "") -> AnalysisError:
	message = f"Start {provider_name} and ensure its base_url in settings.yaml is correct"
	if detail:
		message += f" ({detail})"
	return AnalysisError(ErrorKind.PROVIDER_CONNECTION, message)


#============================================
def provider_response(status: int, snippet: str) -> AnalysisError:
	return AnalysisError(
		ErrorKind.PROVIDER_RESPONSE,
		f"LLM responded with {status}. Response snippet: {snippet}",
		status=status,
		snippet=snippet,
	)


#============================================
def provider_model(status: int, model: str) -> AnalysisError:
	return AnalysisError(
		ErrorKind.PROVIDER_MODEL,
		f'Model "{model}" unavailable. Pull the model locally (e.g., ollama pull {model})',
		status=status,
		model=model,
	)
