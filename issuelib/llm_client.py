# local repo modules
from issuelib.transports.ollama import OllamaTransport
from issuelib.transports.openai_compat import OpenAICompatTransport


SUPPORTED_PROVIDERS = ("ollama", "openai")


#============================================
def describe_llm_execution_path(provider_name: str, model: str) -> str:
	"""
	Describe the configured provider for progress output.
	"""
	model_label = model or "auto"
	if provider_name == "ollama":
		return f"ollama(model={model_label})"
	if provider_name == "openai":
		return f"openai-compatible(model={model_label})"
	return provider_name


#============================================
def create_transport(
	provider_name: str,
	model: str,
	base_url: str,
	timeout_seconds: float,
	api_key_env: str = "",
):
	"""
	Create the generation transport for one provider name.
	"""
	if not model:
		raise RuntimeError(f"No model configured for llm provider: {provider_name}")
	if provider_name == "ollama":
		return OllamaTransport(model=model, base_url=base_url, timeout_seconds=timeout_seconds)
	if provider_name == "openai":
		if not base_url:
			raise RuntimeError("llm.providers.openai.base_url is required for the openai provider.")
		return OpenAICompatTransport(
			model=model,
			base_url=base_url,
			api_key_env=api_key_env,
			timeout_seconds=timeout_seconds,
		)
	raise RuntimeError(f"Unsupported llm provider: {provider_name}")
