"""Decide between one provider call and map-reduce for an analysis request.

Limits are applied the same way in both modes: issues are sorted
newest-first, the oldest are dropped past analysis.max_issues, and every
kept body is truncated before tokens are estimated. The token total seen
here is therefore exactly what the chunk builder will pack.
"""

# Standard Library
import dataclasses
from datetime import datetime
from datetime import timezone

# local repo modules
from issuelib import analysis_errors
from issuelib.chunk_builder import build_map_reduce_chunks
from issuelib.chunk_builder import compute_overhead_tokens
from issuelib.issue_format import format_issue_for_llm
from issuelib.issue_format import normalize_prompt
from issuelib.issue_format import truncate_issue_body
from issuelib.issue_types import MODE_MAP_REDUCE
from issuelib.issue_types import MODE_SINGLE
from issuelib.issue_types import BudgetConfig
from issuelib.issue_types import BudgetPlan
from issuelib.token_estimate import estimate_tokens


OLDEST_TIMESTAMP = datetime.min.replace(tzinfo=timezone.utc)


#============================================
def parse_created_at(value: str) -> datetime:
	"""
	Parse an ISO-8601 timestamp to aware UTC; unparsable values sort oldest.
	"""
	if not value:
		return OLDEST_TIMESTAMP
	try:
		parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
	except ValueError:
		return OLDEST_TIMESTAMP
	if parsed.tzinfo is None:
		return parsed.replace(tzinfo=timezone.utc)
	try:
		return parsed.astimezone(timezone.utc)
	except OverflowError:
		# offsets that push the instant outside the datetime range
		return OLDEST_TIMESTAMP


#============================================
def sort_newest_first(issues) -> list:
	"""
	Stable sort by creation time, newest first.
	"""
	return sorted(issues, key=lambda issue: parse_created_at(issue.created_at), reverse=True)


#============================================
def build_budget_plan(config: BudgetConfig, prompt: str, issues) -> BudgetPlan:
	"""
	Build the execution plan for one analysis request.

	Args:
		config: budget limits for this call.
		prompt: raw user prompt; its length is checked before normalizing.
		issues: cached issues in any order.

	Returns:
		BudgetPlan in single mode when everything fits one call, otherwise
		in map-reduce mode with chunks.

	Raises:
		AnalysisError: PROMPT_TOO_LONG for an oversized raw prompt, or
			CONTEXT_BUDGET_EXCEEDED from the chunk builder.
	"""
	if len(prompt) > config.prompt_max_chars:
		raise analysis_errors.prompt_too_long(config.prompt_max_chars, len(prompt))

	normalized_prompt = normalize_prompt(prompt)
	notes = []

	sorted_issues = sort_newest_first(issues)
	dropped_count = max(0, len(sorted_issues) - config.max_issues)
	kept_issues = sorted_issues[:config.max_issues]
	if dropped_count > 0:
		notes.append(
			f"Dropped {dropped_count} oldest issue(s) to respect analysis.max_issues ({config.max_issues})."
		)

	prepared_issues = []
	for issue in kept_issues:
		original_body = issue.body or ""
		if len(original_body) > config.issue_body_max_chars:
			notes.append(
				f"Truncated body for issue #{issue.number} to {config.issue_body_max_chars} characters."
			)
		truncated_body = truncate_issue_body(issue.body, config.issue_body_max_chars)
		prepared_issues.append(dataclasses.replace(issue, body=truncated_body))

	issue_payload_tokens = 0
	for issue in prepared_issues:
		issue_payload_tokens += estimate_tokens(format_issue_for_llm(issue), config.chars_per_token)
	total_tokens = compute_overhead_tokens(config, normalized_prompt) + issue_payload_tokens
	notes.append(
		f"Estimated total tokens: {total_tokens} (context limit {config.context_max_tokens})."
	)

	if total_tokens <= config.context_max_tokens:
		return BudgetPlan(
			mode=MODE_SINGLE,
			prompt=normalized_prompt,
			issues_used=tuple(prepared_issues),
			issues_dropped_count=dropped_count,
			body_max_chars_applied=config.issue_body_max_chars,
			chunks=None,
			notes=tuple(notes),
		)

	chunks, chunk_notes = build_map_reduce_chunks(config, normalized_prompt, prepared_issues)
	return BudgetPlan(
		mode=MODE_MAP_REDUCE,
		prompt=normalized_prompt,
		issues_used=tuple(prepared_issues),
		issues_dropped_count=dropped_count,
		body_max_chars_applied=config.issue_body_max_chars,
		chunks=tuple(chunks),
		notes=tuple(notes + chunk_notes),
	)
