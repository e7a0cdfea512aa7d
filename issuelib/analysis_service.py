"""Caller-facing analysis operation with structured failures.

Every failure kind maps to a fixed status, code, and message so that a
command line or HTTP front end can report it without inspecting the
exception further.
"""

# Standard Library
import time

# local repo modules
from issuelib import analysis_runner
from issuelib import issue_source
from issuelib.analysis_errors import AnalysisError
from issuelib.analysis_errors import ErrorKind
from issuelib.issue_types import MODE_MAP_REDUCE


NO_ISSUES_MESSAGE = "No open issues cached for this repo."
REPO_NOT_SCANNED_MESSAGE = "Repo not scanned yet; cache its issues before analyzing."
PROVIDER_UNAVAILABLE_MESSAGE = "LLM provider unavailable; ensure the provider service is running and configured."
PROVIDER_RESPONSE_MESSAGE = "LLM provider returned an unexpected response; try again shortly."


#============================================
def build_error(status: int, code: str, message: str) -> dict:
	return {"status": status, "code": code, "message": message}


#============================================
def map_analysis_error(error: Exception) -> dict:
	"""
	Classify an analysis failure into a user-facing status payload.

	Args:
		error: exception raised by planning or orchestration.

	Returns:
		Dict with status, code, and message keys.
	"""
	if not isinstance(error, AnalysisError):
		return build_error(500, "UNEXPECTED_ERROR", "Unable to analyze issues right now")
	if error.kind == ErrorKind.PROMPT_TOO_LONG:
		return build_error(
			400,
			error.code,
			f"Prompt exceeds {error.max_chars} characters ({error.actual_chars} provided)",
		)
	if error.kind == ErrorKind.CONTEXT_BUDGET_EXCEEDED:
		return build_error(
			400,
			error.code,
			f"{error} Consider lowering analysis.max_issues or analysis.issue_body_max_chars "
			+ "or increasing analysis.context_max_tokens.",
		)
	if error.kind in (ErrorKind.PROVIDER_CONNECTION, ErrorKind.PROVIDER_MODEL):
		return build_error(503, error.code, PROVIDER_UNAVAILABLE_MESSAGE)
	return build_error(502, error.code, PROVIDER_RESPONSE_MESSAGE)


#============================================
def analyze_repo(
	repo_key: str,
	prompt: str,
	source,
	provider,
	budget_config,
	temperature: float = 0.2,
	map_concurrency: int = 1,
	log_fn=None,
) -> dict:
	"""
	Analyze one repository's cached issues and never raise for known failures.

	Args:
		repo_key: owner/repository key.
		prompt: free-text analysis prompt.
		source: object with load_issues(repo_key) -> list[CachedIssue] or None
			when the repository has not been cached.
		provider: generation transport.
		budget_config: BudgetConfig limits.
		temperature: sampling temperature.
		map_concurrency: maximum concurrent map calls.
		log_fn: optional callable for progress logging.

	Returns:
		{"ok": True, "analysis": ...} on success, or
		{"ok": False, "error": {"status", "code", "message"}}.
	"""
	repo_key = (repo_key or "").strip()
	prompt = (prompt or "").strip()
	if not issue_source.validate_repo_key(repo_key):
		return {"ok": False, "error": build_error(
			400, "INVALID_REPO", "Invalid repo format, expected owner/repository (single slash)",
		)}
	if not prompt:
		return {"ok": False, "error": build_error(400, "INVALID_PROMPT", "Prompt must not be empty")}

	try:
		issues = source.load_issues(repo_key)
	except Exception as error:
		mapped = map_analysis_error(error)
		if log_fn is not None:
			log_fn(f"Issue cache unreadable for {repo_key} [{mapped['code']}]: {error}")
		return {"ok": False, "error": mapped}
	if issues is None:
		return {"ok": False, "error": build_error(404, "REPO_NOT_SCANNED", REPO_NOT_SCANNED_MESSAGE)}
	if not issues:
		return {
			"ok": True,
			"analysis": NO_ISSUES_MESSAGE,
			"mode": None,
			"chunk_count": 0,
			"issue_count": 0,
			"duration_seconds": 0.0,
		}

	plan_info = {"mode": None, "chunk_count": 0}

	def record_plan(plan) -> None:
		plan_info["mode"] = plan.mode
		if plan.mode == MODE_MAP_REDUCE:
			plan_info["chunk_count"] = len(plan.chunks or ())

	start_time = time.time()
	try:
		analysis_text = analysis_runner.run_analysis(
			budget_config,
			provider,
			prompt,
			issues,
			temperature=temperature,
			map_concurrency=map_concurrency,
			on_plan=record_plan,
			log_fn=log_fn,
		)
	except Exception as error:
		mapped = map_analysis_error(error)
		if log_fn is not None:
			log_fn(f"Analysis failed for {repo_key} [{mapped['code']}]: {error}")
		return {"ok": False, "error": mapped}

	duration = time.time() - start_time
	if log_fn is not None:
		log_fn(
			f"Repository analysis complete: repo={repo_key}, issues={len(issues)}, "
			+ f"mode={plan_info['mode']}, chunks={plan_info['chunk_count']}, duration={duration:.2f}s"
		)
	return {
		"ok": True,
		"analysis": analysis_text,
		"mode": plan_info["mode"],
		"chunk_count": plan_info["chunk_count"],
		"issue_count": len(issues),
		"duration_seconds": duration,
	}
