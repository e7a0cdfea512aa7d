"""Execute a budget plan against a generation provider.

Single mode issues one call. Map-reduce mode summarizes every chunk
(serially or through a bounded thread pool) and then issues one reduce
call over the labeled summaries. Provider failures are never caught
here: the first one aborts the run and reaches the caller unchanged.
"""

# Standard Library
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import as_completed

# local repo modules
from issuelib import prompt_loader
from issuelib.budget_planner import build_budget_plan
from issuelib.issue_format import format_issue_block
from issuelib.issue_types import MODE_SINGLE
from issuelib.issue_types import BudgetConfig
from issuelib.issue_types import BudgetPlan


CHUNK_SUMMARY_SEPARATOR = "\n---\n"


#============================================
def _log(log_fn, msg: str) -> None:
	if log_fn is not None:
		log_fn(msg)


#============================================
def format_chunk_summaries(summaries: list[str]) -> str:
	"""
	Label summaries by 1-based chunk number and join them for the reduce call.
	"""
	labeled = []
	for index, summary in enumerate(summaries, start=1):
		labeled.append(f"CHUNK {index} SUMMARY:\n{summary}")
	return CHUNK_SUMMARY_SEPARATOR.join(labeled)


#============================================
def _notify_plan(on_plan, plan: BudgetPlan, log_fn) -> None:
	"""
	Hand the plan to the observer; observer errors never stop the run.
	"""
	if on_plan is None:
		return
	try:
		on_plan(plan)
	except Exception as error:
		_log(log_fn, f"Plan observer failed: {error}")


#============================================
def _generate(provider, messages: list[dict[str, str]], temperature: float, max_output_tokens: int) -> str:
	return provider.generate(
		messages,
		temperature=temperature,
		max_output_tokens=max_output_tokens,
	)


#============================================
def run_map_calls(
	provider,
	plan: BudgetPlan,
	temperature: float,
	max_output_tokens: int,
	map_concurrency: int = 1,
	log_fn=None,
) -> list[str]:
	"""
	Summarize every chunk of a map-reduce plan.

	Args:
		provider: object with generate(messages, *, temperature, max_output_tokens).
		plan: map-reduce plan with chunks.
		temperature: sampling temperature for every call.
		max_output_tokens: output limit for every call.
		map_concurrency: maximum concurrent map calls; 1 runs serially.
		log_fn: optional callable for progress logging.

	Returns:
		Chunk summaries ordered by chunk index.
	"""
	chunks = list(plan.chunks or ())
	system_message = prompt_loader.build_system_message()

	def summarize_chunk(chunk) -> str:
		_log(log_fn, f"Map call for chunk {chunk.chunk_index}/{len(chunks)} ({len(chunk.issues)} issue(s))")
		user_message = prompt_loader.build_map_user_message(
			plan.prompt,
			format_issue_block(chunk.issues),
		)
		return _generate(provider, [system_message, user_message], temperature, max_output_tokens)

	if map_concurrency <= 1 or len(chunks) <= 1:
		return [summarize_chunk(chunk) for chunk in chunks]

	summaries = [""] * len(chunks)
	executor = ThreadPoolExecutor(max_workers=min(map_concurrency, len(chunks)))
	try:
		futures = {executor.submit(summarize_chunk, chunk): position for position, chunk in enumerate(chunks)}
		for future in as_completed(futures):
			summaries[futures[future]] = future.result()
	finally:
		# queued map calls are cancelled on failure; calls already running
		# finish in their worker threads and their results are discarded
		executor.shutdown(wait=False, cancel_futures=True)
	return summaries


#============================================
def run_analysis(
	budget_config: BudgetConfig,
	provider,
	prompt: str,
	issues,
	temperature: float = 0.2,
	map_concurrency: int = 1,
	on_plan=None,
	log_fn=None,
) -> str:
	"""
	Plan an analysis request and drive it through the provider.

	Args:
		budget_config: budget limits for this call.
		provider: object with generate(messages, *, temperature, max_output_tokens).
		prompt: raw user prompt.
		issues: cached issues in any order.
		temperature: sampling temperature for every call.
		map_concurrency: maximum concurrent map calls.
		on_plan: optional callable(plan) invoked once before any provider call.
		log_fn: optional callable for progress logging.

	Returns:
		Final analysis text from the single call or the reduce call.
	"""
	plan = build_budget_plan(budget_config, prompt, issues)
	_log(log_fn, f"Analysis plan: mode={plan.mode}, issues={len(plan.issues_used)}, dropped={plan.issues_dropped_count}")
	for note in plan.notes:
		_log(log_fn, note)
	_notify_plan(on_plan, plan, log_fn)

	max_output_tokens = budget_config.max_output_tokens
	system_message = prompt_loader.build_system_message()

	if plan.mode == MODE_SINGLE:
		user_message = prompt_loader.build_map_user_message(
			plan.prompt,
			format_issue_block(plan.issues_used),
		)
		return _generate(provider, [system_message, user_message], temperature, max_output_tokens)

	summaries = run_map_calls(
		provider,
		plan,
		temperature,
		max_output_tokens,
		map_concurrency=map_concurrency,
		log_fn=log_fn,
	)
	_log(log_fn, f"Reduce call over {len(summaries)} chunk summary(ies)")
	user_message = prompt_loader.build_reduce_user_message(
		plan.prompt,
		format_chunk_summaries(summaries),
	)
	return _generate(provider, [system_message, user_message], temperature, max_output_tokens)
