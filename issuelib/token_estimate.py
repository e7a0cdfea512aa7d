import math


CHARS_PER_TOKEN = 4


#============================================
def estimate_tokens(text: str | None, chars_per_token: int = CHARS_PER_TOKEN) -> int:
	"""
	Approximate model tokens as ceil(characters / chars_per_token).
	"""
	if not text:
		return 0
	return math.ceil(len(text) / chars_per_token)
