from issuelib import token_estimate


#============================================
def test_estimate_tokens_empty_and_none() -> None:
	"""
	Empty or missing text costs zero tokens.
	"""
	assert token_estimate.estimate_tokens("") == 0
	assert token_estimate.estimate_tokens(None) == 0


#============================================
def test_estimate_tokens_rounds_up() -> None:
	"""
	Token count is ceil(length / 4).
	"""
	assert token_estimate.estimate_tokens("a") == 1
	assert token_estimate.estimate_tokens("abcd") == 1
	assert token_estimate.estimate_tokens("abcde") == 2
	assert token_estimate.estimate_tokens("x" * 400) == 100


#============================================
def test_estimate_tokens_monotonic() -> None:
	"""
	Longer text never estimates fewer tokens.
	"""
	previous = 0
	for length in range(0, 50):
		current = token_estimate.estimate_tokens("z" * length)
		assert current >= previous
		previous = current


#============================================
def test_estimate_tokens_custom_ratio() -> None:
	"""
	chars_per_token overrides the default divisor.
	"""
	assert token_estimate.estimate_tokens("x" * 10, chars_per_token=3) == 4
	assert token_estimate.estimate_tokens("x" * 10, chars_per_token=10) == 1
