# Standard Library
import os


_PROMPT_CACHE = {}
PROMPT_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "prompts")


#============================================
def load_prompt(prompt_name: str) -> str:
	"""
	Load a prompt template from issuelib/prompts/.
	"""
	if not prompt_name:
		raise ValueError("prompt_name is required")
	path = os.path.join(PROMPT_DIR, prompt_name)
	if path in _PROMPT_CACHE:
		return _PROMPT_CACHE[path]
	if not os.path.exists(path):
		raise FileNotFoundError(f"Prompt file not found: {path}")
	with open(path, "r", encoding="utf-8") as handle:
		text = handle.read().strip()
	_PROMPT_CACHE[path] = text
	return text


#============================================
def render_prompt(template: str, values: dict[str, str]) -> str:
	"""
	Replace {{token}} placeholders with supplied values.
	"""
	if not template:
		return ""
	rendered = template
	for key, value in values.items():
		token = "{{" + key + "}}"
		replacement = value if value is not None else ""
		rendered = rendered.replace(token, replacement)
	return rendered


#============================================
def build_system_message() -> dict[str, str]:
	return {"role": "system", "content": load_prompt("analysis_system.txt")}


#============================================
def build_map_user_message(user_prompt: str, issues_block: str) -> dict[str, str]:
	"""
	User message asking for a summary of one block of issues.
	"""
	content = render_prompt(load_prompt("analysis_map.txt"), {
		"user_prompt": user_prompt,
		"issues_block": issues_block,
	})
	return {"role": "user", "content": content}


#============================================
def build_reduce_user_message(user_prompt: str, chunk_summaries: str) -> dict[str, str]:
	"""
	User message asking to consolidate labeled chunk summaries.
	"""
	content = render_prompt(load_prompt("analysis_reduce.txt"), {
		"user_prompt": user_prompt,
		"chunk_summaries": chunk_summaries,
	})
	return {"role": "user", "content": content}
