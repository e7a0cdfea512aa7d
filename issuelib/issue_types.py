"""Value types shared by the budget planner, chunk builder, and runner."""

from __future__ import annotations

# Standard Library
from dataclasses import dataclass
from dataclasses import field


MODE_SINGLE = "single"
MODE_MAP_REDUCE = "map-reduce"


#============================================
@dataclass(frozen=True)
class CachedIssue:
	"""
	One open issue as read from the issue cache.
	"""
	issue_id: int
	number: int
	title: str
	body: str | None
	html_url: str
	created_at: str


#============================================
@dataclass(frozen=True)
class BudgetConfig:
	"""
	Per-call limits used for context planning.
	"""
	context_max_tokens: int
	max_output_tokens: int
	prompt_max_chars: int
	max_issues: int
	issue_body_max_chars: int
	system_token_reserve: int = 400
	chars_per_token: int = 4


#============================================
@dataclass(frozen=True)
class BudgetChunk:
	"""
	One provider-call-sized group of issues, chunk_index starts at 1.
	"""
	chunk_index: int
	issues: tuple[CachedIssue, ...]


#============================================
@dataclass(frozen=True)
class BudgetPlan:
	"""
	Resolved execution strategy plus the bounded input it applies to.
	"""
	mode: str
	prompt: str
	issues_used: tuple[CachedIssue, ...]
	issues_dropped_count: int
	body_max_chars_applied: int
	chunks: tuple[BudgetChunk, ...] | None = None
	notes: tuple[str, ...] = field(default_factory=tuple)
