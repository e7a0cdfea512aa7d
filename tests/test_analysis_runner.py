import re
import threading

import pytest

from issuelib import analysis_errors
from issuelib import analysis_runner
from issuelib.analysis_errors import AnalysisError
from issuelib.analysis_errors import ErrorKind
from issuelib.budget_planner import build_budget_plan
from issuelib.issue_types import BudgetConfig
from issuelib.issue_types import CachedIssue


#============================================
class FakeProvider:
	"""
	Records every call; map calls return the issue numbers they saw.
	"""

	def __init__(self, fail_on_call: int | None = None):
		self.calls = []
		self.fail_on_call = fail_on_call
		self._lock = threading.Lock()

	def generate(self, messages, *, temperature, max_output_tokens):
		with self._lock:
			self.calls.append({
				"messages": messages,
				"temperature": temperature,
				"max_output_tokens": max_output_tokens,
			})
			call_number = len(self.calls)
		if self.fail_on_call is not None and call_number == self.fail_on_call:
			raise analysis_errors.provider_connection("Ollama", "connection refused")
		content = messages[-1]["content"]
		if "CHUNK SUMMARIES:" in content:
			return "final answer"
		numbers = re.findall(r"ISSUE #(\d+)", content)
		return "summary of " + ",".join(numbers)


#============================================
def make_issues(count: int, body_length: int = 150) -> list[CachedIssue]:
	issues = []
	for number in range(1, count + 1):
		issues.append(CachedIssue(
			issue_id=number,
			number=number,
			title=f"Issue {number}",
			body="A" * body_length,
			html_url=f"https://example.com/{number}",
			created_at=f"2024-02-0{number}T00:00:00Z",
		))
	return issues


#============================================
def make_config(context_max_tokens: int = 600) -> BudgetConfig:
	return BudgetConfig(
		context_max_tokens=context_max_tokens,
		max_output_tokens=50,
		prompt_max_chars=200,
		max_issues=50,
		issue_body_max_chars=2048,
	)


#============================================
def test_single_mode_issues_one_call() -> None:
	"""
	Single mode sends system plus one user message and returns the text verbatim.
	"""
	provider = FakeProvider()
	result = analysis_runner.run_analysis(
		make_config(context_max_tokens=8000),
		provider,
		"  Which   bugs matter? ",
		make_issues(3),
		temperature=0.3,
	)
	assert result == "summary of 3,2,1"
	assert len(provider.calls) == 1
	messages = provider.calls[0]["messages"]
	assert [message["role"] for message in messages] == ["system", "user"]
	assert "USER PROMPT:\nWhich bugs matter?" in messages[1]["content"]
	assert provider.calls[0]["temperature"] == 0.3
	assert provider.calls[0]["max_output_tokens"] == 50


#============================================
def test_map_reduce_issues_one_call_per_chunk_plus_reduce() -> None:
	"""
	N chunks produce N map calls and one reduce call with labeled summaries.
	"""
	config = make_config()
	issues = make_issues(5)
	plan = build_budget_plan(config, "Prompt", issues)
	chunk_count = len(plan.chunks)
	assert chunk_count > 1

	provider = FakeProvider()
	result = analysis_runner.run_analysis(config, provider, "Prompt", issues)
	assert result == "final answer"
	assert len(provider.calls) == chunk_count + 1

	reduce_content = provider.calls[-1]["messages"][-1]["content"]
	for chunk in plan.chunks:
		numbers = ",".join(str(issue.number) for issue in chunk.issues)
		assert f"CHUNK {chunk.chunk_index} SUMMARY:\nsummary of {numbers}" in reduce_content


#============================================
def test_concurrent_map_calls_keep_chunk_order() -> None:
	"""
	Summaries reach the reduce call in chunk order under concurrency.
	"""
	config = make_config()
	issues = make_issues(7)
	plan = build_budget_plan(config, "Prompt", issues)
	provider = FakeProvider()
	analysis_runner.run_analysis(config, provider, "Prompt", issues, map_concurrency=4)

	reduce_content = provider.calls[-1]["messages"][-1]["content"]
	expected = analysis_runner.format_chunk_summaries([
		"summary of " + ",".join(str(issue.number) for issue in chunk.issues)
		for chunk in plan.chunks
	])
	assert expected in reduce_content
	assert len(provider.calls) == len(plan.chunks) + 1


#============================================
def test_map_failure_aborts_without_reduce() -> None:
	"""
	A failing map call propagates unchanged and no reduce call is made.
	"""
	provider = FakeProvider(fail_on_call=2)
	with pytest.raises(AnalysisError) as excinfo:
		analysis_runner.run_analysis(make_config(), provider, "Prompt", make_issues(5))
	assert excinfo.value.kind == ErrorKind.PROVIDER_CONNECTION
	assert len(provider.calls) == 2
	for call in provider.calls:
		assert "CHUNK SUMMARIES:" not in call["messages"][-1]["content"]


#============================================
def test_concurrent_map_failure_propagates() -> None:
	"""
	A map failure under concurrency still reaches the caller unchanged.
	"""
	provider = FakeProvider(fail_on_call=1)
	with pytest.raises(AnalysisError) as excinfo:
		analysis_runner.run_analysis(make_config(), provider, "Prompt", make_issues(7), map_concurrency=3)
	assert excinfo.value.kind == ErrorKind.PROVIDER_CONNECTION
	for call in provider.calls:
		assert "CHUNK SUMMARIES:" not in call["messages"][-1]["content"]


#============================================
class GatedProvider:
	"""
	Fails on one chunk and holds other chunks until the gate opens.
	"""

	def __init__(self, fail_issue: int, held_issues: set[int]):
		self.fail_issue = fail_issue
		self.held_issues = held_issues
		self.gate = threading.Event()
		self.seen = []
		self._lock = threading.Lock()

	def generate(self, messages, *, temperature, max_output_tokens):
		numbers = {int(number) for number in re.findall(r"ISSUE #(\d+)", messages[-1]["content"])}
		with self._lock:
			self.seen.append(numbers)
		if self.fail_issue in numbers:
			raise analysis_errors.provider_response(500, "boom")
		if numbers & self.held_issues:
			self.gate.wait(timeout=5)
		return "summary"


#============================================
def test_map_failure_cancels_queued_chunks_without_waiting() -> None:
	"""
	A map failure returns while running calls are still held and queued chunks never start.
	"""
	# chunks are [7,6], [5,4], [3,2], [1] with two workers
	provider = GatedProvider(fail_issue=5, held_issues={7, 3})
	try:
		with pytest.raises(AnalysisError) as excinfo:
			analysis_runner.run_analysis(make_config(), provider, "Prompt", make_issues(7), map_concurrency=2)
		assert excinfo.value.kind == ErrorKind.PROVIDER_RESPONSE
		assert not provider.gate.is_set()
		assert all(1 not in numbers for numbers in provider.seen)
	finally:
		provider.gate.set()


#============================================
def test_reduce_failure_propagates() -> None:
	"""
	A failing reduce call aborts the run with its own error kind.
	"""
	config = make_config()
	issues = make_issues(5)
	chunk_count = len(build_budget_plan(config, "Prompt", issues).chunks)

	class ReduceFailingProvider(FakeProvider):
		def generate(self, messages, *, temperature, max_output_tokens):
			if "CHUNK SUMMARIES:" in messages[-1]["content"]:
				raise analysis_errors.provider_response(500, "boom")
			return super().generate(messages, temperature=temperature, max_output_tokens=max_output_tokens)

	provider = ReduceFailingProvider()
	with pytest.raises(AnalysisError) as excinfo:
		analysis_runner.run_analysis(config, provider, "Prompt", issues)
	assert excinfo.value.kind == ErrorKind.PROVIDER_RESPONSE
	assert len(provider.calls) == chunk_count


#============================================
def test_planning_errors_skip_provider() -> None:
	"""
	Prompt-length failures happen before any provider call.
	"""
	provider = FakeProvider()
	config = BudgetConfig(
		context_max_tokens=600,
		max_output_tokens=50,
		prompt_max_chars=5,
		max_issues=10,
		issue_body_max_chars=100,
	)
	with pytest.raises(AnalysisError) as excinfo:
		analysis_runner.run_analysis(config, provider, "far too long", make_issues(2))
	assert excinfo.value.kind == ErrorKind.PROMPT_TOO_LONG
	assert provider.calls == []


#============================================
def test_observer_sees_plan_before_provider_calls() -> None:
	"""
	on_plan runs once, before the first provider call.
	"""
	provider = FakeProvider()
	seen = []

	def on_plan(plan):
		seen.append((plan.mode, len(provider.calls)))

	analysis_runner.run_analysis(make_config(), provider, "Prompt", make_issues(5), on_plan=on_plan)
	assert seen == [("map-reduce", 0)]


#============================================
def test_observer_failure_is_logged_not_raised() -> None:
	"""
	An exception in on_plan is logged and the analysis still completes.
	"""
	messages = []

	def on_plan(plan):
		raise ValueError("telemetry down")

	result = analysis_runner.run_analysis(
		make_config(context_max_tokens=8000),
		FakeProvider(),
		"Prompt",
		make_issues(1),
		on_plan=on_plan,
		log_fn=messages.append,
	)
	assert result == "summary of 1"
	assert "Plan observer failed: telemetry down" in messages


#============================================
def test_log_fn_receives_plan_notes() -> None:
	"""
	Planning notes are emitted through log_fn.
	"""
	messages = []
	analysis_runner.run_analysis(
		make_config(),
		FakeProvider(),
		"Prompt",
		make_issues(5),
		log_fn=messages.append,
	)
	assert messages[0].startswith("Analysis plan: mode=map-reduce")
	assert any(message.startswith("Estimated total tokens:") for message in messages)
	assert any(message.startswith("Reduce call over ") for message in messages)


#============================================
def test_format_chunk_summaries_labels_by_index() -> None:
	"""
	Summaries are labeled from 1 and separated by a rule line.
	"""
	text = analysis_runner.format_chunk_summaries(["alpha", "beta"])
	assert text == "CHUNK 1 SUMMARY:\nalpha\n---\nCHUNK 2 SUMMARY:\nbeta"
