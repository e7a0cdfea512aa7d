"""Render cached issues into stable text blocks for LLM prompts."""

# Standard Library
import re

# local repo modules
from issuelib.issue_types import CachedIssue


EMPTY_BODY_PLACEHOLDER = "(empty)"
ISSUE_SEPARATOR = "---"


#============================================
def normalize_prompt(prompt: str) -> str:
	"""
	Collapse whitespace runs to one space and trim the ends.
	"""
	return re.sub(r"\s+", " ", prompt).strip()


#============================================
def truncate_issue_body(body: str | None, max_chars: int) -> str:
	"""
	Cut an issue body to at most max_chars characters.

	Args:
		body: raw issue body, may be None.
		max_chars: character limit.

	Returns:
		Empty string for a missing body, the body itself when it fits,
		otherwise its first max_chars characters.
	"""
	if not body:
		return ""
	if len(body) <= max_chars:
		return body
	return body[:max_chars]


#============================================
def format_issue_for_llm(issue: CachedIssue) -> str:
	"""
	Render one issue as a fixed multi-line block ending in a separator.
	"""
	body = issue.body if issue.body else EMPTY_BODY_PLACEHOLDER
	lines = [
		f"ISSUE #{issue.number}",
		f"Title: {issue.title}",
		f"Created: {issue.created_at}",
		f"URL: {issue.html_url}",
		f"Body: {body}",
		ISSUE_SEPARATOR,
	]
	return "\n".join(lines)


#============================================
def format_issue_block(issues) -> str:
	"""
	Join formatted issues into one newline-separated block.
	"""
	return "\n".join(format_issue_for_llm(issue) for issue in issues)
