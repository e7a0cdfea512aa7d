"""Greedy first-fit packing of issues into map-reduce chunks.

Issues are never reordered, so the newest-first order chosen by the
planner carries across chunk boundaries into the reduce step.
"""

# local repo modules
from issuelib import analysis_errors
from issuelib.issue_format import format_issue_for_llm
from issuelib.issue_format import normalize_prompt
from issuelib.issue_types import BudgetChunk
from issuelib.issue_types import BudgetConfig
from issuelib.token_estimate import estimate_tokens


#============================================
def compute_overhead_tokens(config: BudgetConfig, prompt: str) -> int:
	"""
	Tokens reserved in every call for system text, prompt, and output.
	"""
	prompt_tokens = estimate_tokens(prompt, config.chars_per_token)
	return config.system_token_reserve + prompt_tokens + config.max_output_tokens


#============================================
def compute_per_chunk_budget(config: BudgetConfig, prompt: str) -> int:
	"""
	Tokens left for formatted issues inside one provider call.
	"""
	return config.context_max_tokens - compute_overhead_tokens(config, prompt)


#============================================
def build_map_reduce_chunks(
	config: BudgetConfig,
	prompt: str,
	issues,
) -> tuple[list[BudgetChunk], list[str]]:
	"""
	Partition issues into chunks that each fit the per-chunk budget.

	Args:
		config: budget limits for this call.
		prompt: user prompt, normalized again here so callers may pass raw text.
		issues: issues in the order they should appear across chunks.

	Returns:
		Tuple of (chunks, notes). Chunk indices start at 1.

	Raises:
		AnalysisError: CONTEXT_BUDGET_EXCEEDED when the reserved overhead
			fills the context window, or one issue alone is over budget.
	"""
	normalized_prompt = normalize_prompt(prompt)
	overhead = compute_overhead_tokens(config, normalized_prompt)
	per_chunk_budget = config.context_max_tokens - overhead
	if per_chunk_budget <= 0:
		raise analysis_errors.context_budget_exceeded(
			"Configured prompt/output tokens exceed the context window; "
			+ "lower the prompt or llm.max_output_tokens, or increase analysis.context_max_tokens."
		)

	entries = []
	for issue in issues:
		tokens = estimate_tokens(format_issue_for_llm(issue), config.chars_per_token)
		entries.append((issue, tokens))

	chunks = []
	notes = [
		f"Map-reduce required; per-chunk issue budget is approx {per_chunk_budget} tokens "
		+ f"(system+prompt+output reserved {overhead} tokens)."
	]
	current_issues = []
	current_tokens = 0

	for issue, tokens in entries:
		if tokens > per_chunk_budget:
			raise analysis_errors.context_budget_exceeded(
				f"Issue #{issue.number} alone exceeds the allowed context after reserves "
				+ f"(~{tokens} > {per_chunk_budget} tokens); lower analysis.issue_body_max_chars "
				+ "or reduce input volume."
			)
		# close the running chunk before it would overflow
		if current_issues and current_tokens + tokens > per_chunk_budget:
			chunks.append(BudgetChunk(chunk_index=len(chunks) + 1, issues=tuple(current_issues)))
			notes.append(f"Chunk {len(chunks)}: {len(current_issues)} issue(s), ~{current_tokens} tokens")
			current_issues = []
			current_tokens = 0
		current_issues.append(issue)
		current_tokens += tokens

	if current_issues:
		chunks.append(BudgetChunk(chunk_index=len(chunks) + 1, issues=tuple(current_issues)))
		notes.append(f"Chunk {len(chunks)}: {len(current_issues)} issue(s), ~{current_tokens} tokens")

	if not chunks:
		notes.append("No issues were chunked because none were provided.")
	return chunks, notes
