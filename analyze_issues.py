#!/usr/bin/env python3
"""Answer a free-text prompt against a repository's cached open issues.

Loads cached issues for one owner/repository key, plans the context
budget, and runs either one LLM call or a map-reduce pass. With
--dry-run only the budget plan is printed and no provider is called.
"""

# Standard Library
import argparse
import json
import sys
from datetime import datetime

# local repo modules
from issuelib import analysis_service
from issuelib import analysis_settings
from issuelib import issue_source
from issuelib import llm_client
from issuelib.budget_planner import build_budget_plan
from issuelib.issue_source import IssueCacheSource


#============================================
def log_step(message: str) -> None:
	"""
	Print one timestamped progress line.
	"""
	now_text = datetime.now().strftime("%H:%M:%S")
	print(f"[analyze_issues {now_text}] {message}", file=sys.stderr, flush=True)


#============================================
def positive_int(value: str) -> int:
	"""
	Argparse type for integers greater than zero.
	"""
	try:
		number = int(value)
	except ValueError as error:
		raise argparse.ArgumentTypeError(f"expected an integer: {value}") from error
	if number <= 0:
		raise argparse.ArgumentTypeError(f"must be a positive integer: {value}")
	return number


#============================================
def parse_args(argv=None) -> argparse.Namespace:
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Answer a prompt against a repository's cached open issues."
	)
	parser.add_argument(
		'-r', '--repo', dest='repo',
		required=True,
		help="Repository key in owner/repository form.",
	)
	prompt_group = parser.add_mutually_exclusive_group(required=True)
	prompt_group.add_argument(
		'-p', '--prompt', dest='prompt',
		help="Analysis prompt text.",
	)
	prompt_group.add_argument(
		'--prompt-file', dest='prompt_file',
		help="Read the analysis prompt from a text file.",
	)
	parser.add_argument(
		'--settings', dest='settings',
		default="settings.yaml",
		help="YAML settings path for LLM and budget defaults.",
	)
	parser.add_argument(
		'--cache-dir', dest='cache_dir',
		default=None,
		help="Directory of cached issue JSON files (defaults from settings.yaml).",
	)
	parser.add_argument(
		'--llm-provider', dest='llm_provider',
		choices=list(llm_client.SUPPORTED_PROVIDERS),
		default=None,
		help="LLM provider selection (defaults from settings.yaml).",
	)
	parser.add_argument(
		'--llm-model', dest='llm_model',
		default=None,
		help="Optional model override (defaults from settings.yaml).",
	)
	parser.add_argument(
		'--map-concurrency', dest='map_concurrency',
		type=positive_int,
		default=None,
		help="Maximum concurrent map calls (defaults from settings.yaml).",
	)
	parser.add_argument(
		'--dry-run', dest='dry_run',
		action='store_true',
		help="Print the budget plan without calling the LLM.",
	)
	parser.add_argument(
		'--json', dest='json_output',
		action='store_true',
		help="Print the structured result as JSON.",
	)
	args = parser.parse_args(argv)
	return args


#============================================
def read_prompt(args: argparse.Namespace) -> str:
	if args.prompt_file:
		with open(args.prompt_file, "r", encoding="utf-8") as handle:
			return handle.read()
	return args.prompt


#============================================
def describe_plan(plan) -> dict:
	"""
	Summarize a budget plan as a JSON-ready dict.
	"""
	chunks = []
	for chunk in plan.chunks or ():
		chunks.append({
			"chunk_index": chunk.chunk_index,
			"issue_numbers": [issue.number for issue in chunk.issues],
		})
	return {
		"mode": plan.mode,
		"prompt": plan.prompt,
		"issues_used": len(plan.issues_used),
		"issues_dropped_count": plan.issues_dropped_count,
		"body_max_chars_applied": plan.body_max_chars_applied,
		"chunks": chunks,
		"notes": list(plan.notes),
	}


#============================================
def run_dry_run(repo_key: str, prompt: str, source, budget_config) -> dict:
	"""
	Plan without generation and return a structured result.
	"""
	try:
		issues = source.load_issues(repo_key)
		if issues is None:
			return {"ok": False, "error": analysis_service.build_error(
				404, "REPO_NOT_SCANNED", analysis_service.REPO_NOT_SCANNED_MESSAGE,
			)}
		plan = build_budget_plan(budget_config, prompt.strip(), issues)
	except Exception as error:
		return {"ok": False, "error": analysis_service.map_analysis_error(error)}
	return {"ok": True, "plan": describe_plan(plan)}


#============================================
def main(argv=None) -> int:
	args = parse_args(argv)
	settings, settings_path = analysis_settings.load_settings(args.settings)
	log_step(f"Using settings file: {settings_path}")

	budget_config = analysis_settings.get_budget_config(settings)
	cache_dir = args.cache_dir or analysis_settings.get_issues_dir(settings)
	source = IssueCacheSource(cache_dir)
	prompt = read_prompt(args)
	log_step(f"Issue cache: {source.cache_dir}")

	if args.dry_run:
		if not issue_source.validate_repo_key(args.repo.strip()):
			result = {"ok": False, "error": analysis_service.build_error(
				400, "INVALID_REPO", "Invalid repo format, expected owner/repository (single slash)",
			)}
		else:
			result = run_dry_run(args.repo.strip(), prompt, source, budget_config)
	else:
		provider_name = args.llm_provider or analysis_settings.get_enabled_llm_provider(settings)
		model = analysis_settings.get_llm_provider_model(settings, provider_name)
		if args.llm_model is not None:
			model = args.llm_model.strip()
		map_concurrency = args.map_concurrency
		if map_concurrency is None:
			map_concurrency = analysis_settings.get_map_concurrency(settings)
		log_step(f"LLM: {llm_client.describe_llm_execution_path(provider_name, model)}")
		provider = llm_client.create_transport(
			provider_name,
			model,
			analysis_settings.get_llm_provider_base_url(settings, provider_name),
			analysis_settings.get_llm_timeout_seconds(settings),
			api_key_env=analysis_settings.get_llm_provider_api_key_env(settings, provider_name),
		)
		result = analysis_service.analyze_repo(
			args.repo,
			prompt,
			source,
			provider,
			budget_config,
			temperature=analysis_settings.get_llm_temperature(settings),
			map_concurrency=map_concurrency,
			log_fn=log_step,
		)

	if args.json_output:
		print(json.dumps(result, indent=2, ensure_ascii=False))
	elif not result["ok"]:
		error = result["error"]
		print(f"ERROR {error['status']} {error['code']}: {error['message']}", file=sys.stderr)
	elif "plan" in result:
		for note in result["plan"]["notes"]:
			print(note)
		print(f"Mode: {result['plan']['mode']}")
	else:
		print(result["analysis"])
	return 0 if result["ok"] else 1


if __name__ == "__main__":
	sys.exit(main())
