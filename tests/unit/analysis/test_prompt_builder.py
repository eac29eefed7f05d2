from insightmap.services.analysis.prompt_builder import build_prompt


class TestPromptBuilder:

    def test_deterministic(self):
        assert build_prompt("Checkout is slow.") == build_prompt("Checkout is slow.")

    def test_text_is_embedded_in_user_instructions(self):
        prompt = build_prompt("Checkout is slow.")

        assert 'Text to analyze: """Checkout is slow."""' in prompt.user_instructions
        assert "Checkout is slow." not in prompt.system_instructions

    def test_declares_extraction_schema(self):
        prompt = build_prompt("anything")
        combined = prompt.system_instructions + prompt.user_instructions

        for key in ("quotes", "nodes", "edges", "quote_node_links", "from_node_id", "to_node_id"):
            assert key in combined
