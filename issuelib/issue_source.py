from __future__ import annotations

import json
import os
import re

# local repo modules
from issuelib.issue_types import CachedIssue


REPO_KEY_PATTERN = re.compile(r"^[^/\s]+/[^/\s]+$")


#============================================
def validate_repo_key(repo_key: str) -> bool:
	"""
	Return True for an owner/repository key with a single slash.
	"""
	return bool(REPO_KEY_PATTERN.match(repo_key or ""))


#============================================
def issue_from_payload(payload: dict) -> CachedIssue:
	"""
	Build a CachedIssue from GitHub REST or cached snake-case payloads.
	"""
	issue_id = payload.get("issue_id", payload.get("id", 0))
	html_url = payload.get("html_url", payload.get("url", ""))
	body = payload.get("body")
	return CachedIssue(
		issue_id=int(issue_id or 0),
		number=int(payload.get("number", 0) or 0),
		title=str(payload.get("title", "") or ""),
		body=None if body is None else str(body),
		html_url=str(html_url or ""),
		created_at=str(payload.get("created_at", "") or ""),
	)


#============================================
def is_open_issue(payload: dict) -> bool:
	"""
	Skip pull requests and closed issues.
	"""
	if "pull_request" in payload:
		return False
	state = str(payload.get("state", "open") or "open").strip().lower()
	return state == "open"


#============================================
class IssueCacheSource:
	"""
	Read-only source of cached open issues, one JSON file per repository.
	"""

	def __init__(self, cache_dir: str):
		self.cache_dir = os.path.abspath(cache_dir)

	#============================================
	def cache_path(self, repo_key: str) -> str:
		owner, repo_name = repo_key.split("/", 1)
		return os.path.join(self.cache_dir, f"{owner}__{repo_name}.json")

	#============================================
	def load_issues(self, repo_key: str) -> list[CachedIssue] | None:
		"""
		Load cached open issues for one repository.

		Returns None when the repository has no cache file yet, and an
		empty list when it was cached with no open issues.
		"""
		if not validate_repo_key(repo_key):
			raise ValueError(f"Invalid repo key, expected owner/repository: {repo_key}")
		path = self.cache_path(repo_key)
		if not os.path.isfile(path):
			return None
		with open(path, "r", encoding="utf-8") as handle:
			payload = json.load(handle)
		# accept the {"data": [...]} envelope written by the query cache
		if isinstance(payload, dict):
			payload = payload.get("data", [])
		if not isinstance(payload, list):
			raise RuntimeError(f"Issue cache must contain a list of issues: {path}")
		issues = []
		for entry in payload:
			if not isinstance(entry, dict):
				continue
			if not is_open_issue(entry):
				continue
			issues.append(issue_from_payload(entry))
		return issues
