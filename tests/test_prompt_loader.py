from issuelib import prompt_loader


#============================================
def test_load_prompt_returns_string() -> None:
	"""
	load_prompt should return a non-empty string for an existing prompt file.
	"""
	text = prompt_loader.load_prompt("analysis_system.txt")
	assert isinstance(text, str)
	assert len(text) > 50


#============================================
def test_load_prompt_missing_file_raises() -> None:
	"""
	load_prompt should raise FileNotFoundError for missing prompt files.
	"""
	raised = False
	try:
		prompt_loader.load_prompt("nonexistent_prompt_file.txt")
	except FileNotFoundError:
		raised = True
	assert raised


#============================================
def test_render_prompt_preserves_unreplaced_tokens() -> None:
	"""
	render_prompt should leave unknown tokens intact.
	"""
	template = "Value: {{known}} and {{unknown}}"
	result = prompt_loader.render_prompt(template, {"known": "yes"})
	assert result == "Value: yes and {{unknown}}"


#============================================
def test_map_user_message_layout() -> None:
	"""
	Map messages carry the prompt, the issues block, and the task.
	"""
	message = prompt_loader.build_map_user_message("top bugs?", "ISSUE #1\n---")
	assert message["role"] == "user"
	assert message["content"].startswith("USER PROMPT:\ntop bugs?\n\nISSUES:\nISSUE #1\n---")
	assert "TASK: Summarize the findings" in message["content"]
	assert "{{" not in message["content"]


#============================================
def test_reduce_user_message_layout() -> None:
	"""
	Reduce messages carry the prompt, the chunk summaries, and the task.
	"""
	message = prompt_loader.build_reduce_user_message("top bugs?", "CHUNK 1 SUMMARY:\nx")
	assert "CHUNK SUMMARIES:\nCHUNK 1 SUMMARY:\nx" in message["content"]
	assert "P0/P1/P2" in message["content"]


#============================================
def test_system_message_role() -> None:
	"""
	The system message uses the system role and mentions issue URLs.
	"""
	message = prompt_loader.build_system_message()
	assert message["role"] == "system"
	assert "issue URLs" in message["content"]
